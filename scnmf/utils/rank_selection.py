"""
Rank Selection via Stability Across Restarts

Joint NMF is non-convex, so different random initializations converge to
different solutions. At a well-chosen rank the cell loadings found by
independent restarts agree closely; at a poor rank they do not. This
module scores that agreement with the Amari-type distance between factor
sets and selects the most stable rank:

1. Run joint NMF n_repeats times per candidate rank
2. Compute pairwise stability of the cell loadings H
3. Pick the highest local maximum of the stability curve
"""

import numpy as np
import pandas as pd
from typing import Dict, List, Optional, Sequence, Tuple, Union
from scipy.signal import find_peaks
from sklearn.utils import check_random_state

from scnmf.joint_nmf import perform_nmf


def amari_distance(A: np.ndarray) -> float:
    r"""
    Compute Amari distance from a factor correlation matrix.

    Smaller values = better correspondence between the two factor sets.

    Parameters
    ----------
    A : np.ndarray
        Correlation matrix (r1 × r2) between two factor sets

    Returns
    -------
    dist : float
        Amari distance (0-1)
    """
    n, m = A.shape
    if n == 1 and m == 1:
        return float(A[0, 0] == 0)

    max_col = np.max(np.abs(A), axis=0)
    col_error = 1 - max_col

    max_row = np.max(np.abs(A), axis=1)
    row_error = 1 - max_row

    return float((np.mean(row_error) + np.mean(col_error)) / 2)


def stability_between_solutions(H1: np.ndarray, H2: np.ndarray) -> float:
    r"""
    Stability between two cell loading matrices (k × cells).

    Returns
    -------
    stability : float
        1 - Amari distance of the row-wise cosine similarities (0-1,
        higher = more similar)
    """
    H1_norm = H1 / (np.linalg.norm(H1, axis=1, keepdims=True) + 1e-10)
    H2_norm = H2 / (np.linalg.norm(H2, axis=1, keepdims=True) + 1e-10)

    corr_matrix = np.abs(H1_norm @ H2_norm.T)

    return 1.0 - amari_distance(corr_matrix)


def rank_stability_score(H_list: List[np.ndarray]) -> float:
    r"""
    Average pairwise stability of the solutions found at one rank.
    """
    n_runs = len(H_list)
    if n_runs < 2:
        return 0.0

    scores = [
        stability_between_solutions(H_list[i], H_list[j])
        for i in range(n_runs)
        for j in range(i + 1, n_runs)
    ]
    return float(np.mean(scores))


def select_rank(
    rna_df: pd.DataFrame,
    atac_df: pd.DataFrame,
    ranks: Sequence[int],
    n_repeats: int = 5,
    random_state: Optional[Union[int, np.random.RandomState]] = None,
    verbose: int = 0,
    **nmf_kwargs
) -> Tuple[int, Dict[int, float]]:
    r"""
    Select the rank whose cell loadings are most stable across restarts.

    Parameters
    ----------
    rna_df, atac_df : pd.DataFrame
        Labeled RNA and ATAC tables, as for :func:`scnmf.perform_nmf`
    ranks : sequence of int
        Candidate ranks, in increasing order
    n_repeats : int
        Restarts per rank. Default: 5
    random_state : int, RandomState or None
        Seeds the restarts
    verbose : int
        Verbosity level
    **nmf_kwargs
        Passed to :func:`scnmf.perform_nmf` (n_iter, lambda_, ...)

    Returns
    -------
    best_rank : int
        Rank at the highest local maximum of the stability curve, or at
        the global maximum if the curve has no interior peak
    scores : dict
        rank -> stability score
    """
    if n_repeats < 2:
        raise ValueError(f"n_repeats must be at least 2, got {n_repeats}")

    rng = check_random_state(random_state)
    ranks = list(ranks)
    scores = {}

    if verbose >= 1:
        print(f"Joint NMF rank sweep over ranks {ranks} ({n_repeats} repeats)...")

    for rank in ranks:
        H_list = []
        for rep in range(n_repeats):
            seed = rng.randint(np.iinfo(np.int32).max)
            H, _, _, _, _, _ = perform_nmf(
                rna_df, atac_df, rank, random_state=seed, **nmf_kwargs
            )
            H_list.append(H)

        scores[rank] = rank_stability_score(H_list)

        if verbose >= 1:
            print(f"  Rank {rank}: stability = {scores[rank]:.4f}")

    values = np.array([scores[r] for r in ranks])
    peaks, _ = find_peaks(values)

    if len(peaks) > 0:
        best_idx = peaks[np.argmax(values[peaks])]
    else:
        best_idx = int(np.argmax(values))

    best_rank = ranks[best_idx]

    if verbose >= 1:
        print(f"Selected rank: {best_rank}")

    return best_rank, scores
