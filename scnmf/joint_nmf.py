"""
Joint Non-negative Matrix Factorization of scRNA-seq and scATAC-seq data

This module implements the optimization driver that factorizes paired
RNA expression and chromatin accessibility measurements of the same cells
into a shared low-dimensional representation.

Mathematical Background:
-----------------------
Problem: Given X_rna (genes × cells) and X_atac (loci × cells), find
nonnegative H, W_rna, W_atac, Z such that

.. math::
    X_{rna} ≈ W_{rna} H, \\quad X_{atac} (Z \\circ R) ≈ W_{atac} H

where:
- H (k × cells): Cell loadings, shared by both modalities
- W_rna (genes × k): Gene loadings
- W_atac (loci × k): Locus loadings
- Z (cells × cells): Aggregation matrix pooling ATAC signal across similar cells
- R (cells × cells): Fixed binary mask limiting which cell pairs may aggregate

ATAC data is sparse per cell, so each cell's accessibility profile is
replaced by a weighted combination of the profiles of related cells,
X_atac (Z ∘ R). Z is pulled toward the cell similarity HᵀH implied by
the shared loadings.

Objective:

.. math::
    \\alpha \\|X_{rna} - W_{rna} H\\|_F^2 + \\|X_{atac}(Z \\circ R) - W_{atac} H\\|_F^2
    + \\lambda \\|Z - H^T H\\|_F + \\gamma \\sum_j (\\sum_i H_{ij})^2

Algorithm:
----------
Each iteration runs, in this order:

1. Normalize the rows of H to sum to one
2. Update W_rna
3. Update W_atac
4. Update H
5. Update Z
6. Record the objective value

All updates are multiplicative (see :mod:`scnmf.updates`). The order is
part of the algorithm: later rules read matrices earlier rules replaced.
"""

import numpy as np
import pandas as pd
import time
import warnings
from typing import Tuple, Optional, List, Union

from scnmf.data import df_to_array, loadings_to_df
from scnmf.exceptions import InvalidInputError, NumericalInstabilityWarning
from scnmf.objective import compute_objective, objective_terms
from scnmf.state import FactorizationState, initialize_state, validate_parameters
from scnmf.updates import (
    normalize_rows,
    update_W_rna,
    update_W_atac,
    update_H,
    update_Z,
)


def run_iteration(
    state: FactorizationState,
    X_rna: np.ndarray,
    X_atac: np.ndarray
) -> float:
    r"""
    Advance ``state`` by one iteration in place and return the objective.

    R is only read; H, W_rna, W_atac and Z are replaced.
    """
    s = state
    s.H = normalize_rows(s.H)
    s.W_rna = update_W_rna(s.W_rna, X_rna, s.H)
    s.W_atac = update_W_atac(s.W_atac, X_atac, s.H, s.Z, s.R)
    s.H = update_H(s.W_rna, s.W_atac, X_rna, X_atac, s.H, s.Z, s.R,
                   s.alpha, s.lambda_, s.gamma)
    s.Z = update_Z(s.W_atac, X_atac, s.H, s.Z, s.R, s.lambda_)

    return compute_objective(X_rna, X_atac, s.W_rna, s.W_atac, s.H, s.Z, s.R,
                             s.alpha, s.lambda_, s.gamma)


def joint_nmf(
    X_rna: np.ndarray,
    X_atac: np.ndarray,
    k: int,
    dropout_prob: float = 0.25,
    n_iter: int = 500,
    alpha: float = 1.0,
    lambda_: float = 100000.0,
    gamma: float = 1.0,
    verbose: int = 0,
    random_state: Optional[Union[int, np.random.RandomState]] = None,
    max_time: Optional[float] = None
) -> Tuple[FactorizationState, List[float]]:
    r"""
    Joint NMF on plain matrices.

    Same algorithm as :func:`perform_nmf` without the table conversion.

    Parameters
    ----------
    X_rna : np.ndarray
        RNA matrix of shape (n_genes, n_cells).

    X_atac : np.ndarray
        ATAC matrix of shape (n_loci, n_cells).

    k, dropout_prob, n_iter, alpha, lambda_, gamma, verbose, random_state, max_time
        See :func:`perform_nmf`.

    Returns
    -------
    state : FactorizationState
        Final matrices.

    obj_history : list of float
        Objective value after every iteration.
    """
    # ============================================================================
    # Input Validation
    # ============================================================================
    validate_parameters(k, dropout_prob, n_iter)

    X_rna = np.asarray(X_rna, dtype=np.float64)
    X_atac = np.asarray(X_atac, dtype=np.float64)

    if X_rna.ndim != 2 or X_atac.ndim != 2:
        raise InvalidInputError(
            f"X_rna and X_atac must be 2D matrices, got shapes "
            f"{X_rna.shape} and {X_atac.shape}"
        )

    if X_rna.shape[1] != X_atac.shape[1]:
        raise InvalidInputError(
            f"RNA and ATAC data must describe the same cells, got "
            f"{X_rna.shape[1]} and {X_atac.shape[1]} cells"
        )

    if np.any(X_rna < 0) or np.any(X_atac < 0):
        warnings.warn("Input contains negative values. They will be clipped to 0.",
                      UserWarning)
        X_rna = np.clip(X_rna, 0, None)
        X_atac = np.clip(X_atac, 0, None)

    n_genes, n_cells = X_rna.shape
    n_loci = X_atac.shape[0]

    # ============================================================================
    # Initialization
    # ============================================================================
    state = initialize_state(
        n_genes, n_loci, n_cells, k,
        dropout_prob=dropout_prob,
        alpha=alpha,
        lambda_=lambda_,
        gamma=gamma,
        random_state=random_state
    )

    obj_history = []
    start_time = time.time()

    # ============================================================================
    # Main Iterative Loop
    # ============================================================================
    for iteration in range(n_iter):
        current_obj = run_iteration(state, X_rna, X_atac)
        obj_history.append(current_obj)

        if verbose:
            print(f"Iter {iteration + 1:4d}: objective = {current_obj:.6e}")
            if verbose >= 2:
                terms = objective_terms(X_rna, X_atac, state.W_rna, state.W_atac,
                                        state.H, state.Z, state.R,
                                        alpha, lambda_, gamma)
                print("           " + ", ".join(
                    f"{name} = {value:.4e}" for name, value in terms.items()))

        if max_time is not None and time.time() - start_time >= max_time:
            if verbose:
                print(f"Time limit of {max_time}s reached at iteration {iteration + 1}")
            break

    elapsed = time.time() - start_time

    if not np.isfinite(obj_history[-1]):
        warnings.warn(
            f"Objective is not finite after {len(obj_history)} iterations; "
            f"lambda = {lambda_} may be too large for the data scale.",
            NumericalInstabilityWarning
        )

    if verbose >= 2:
        print(f"\n=== Final Result ===")
        print(f"Total iterations: {len(obj_history)}")
        print(f"Final objective: {obj_history[-1]:.6e}")
        print(f"Total elapsed time: {elapsed:.3f}s")

    return state, obj_history


def perform_nmf(
    rna_df: pd.DataFrame,
    atac_df: pd.DataFrame,
    k: int,
    dropout_prob: float = 0.25,
    n_iter: int = 500,
    alpha: float = 1.0,
    lambda_: float = 100000.0,
    gamma: float = 1.0,
    verbose: int = 0,
    random_state: Optional[Union[int, np.random.RandomState]] = None,
    max_time: Optional[float] = None,
    gene_col: str = "gene_name",
    locus_col: str = "locus_name"
) -> Tuple[np.ndarray, pd.DataFrame, pd.DataFrame, np.ndarray, np.ndarray, List[float]]:
    r"""
    Joint NMF of scRNA-seq and scATAC-seq tables.

    Returns cell loadings shared by both modalities and modality-specific
    feature loadings. The choice of ``k`` can reflect prior knowledge about
    the major sources of variability in both datasets, or be selected
    empirically (see :func:`scnmf.utils.rank_selection.select_rank`).

    Parameters
    ----------
    rna_df : pd.DataFrame
        RNA table with genes in rows and cells in columns.
        Must include the ``gene_col`` column.

    atac_df : pd.DataFrame
        ATAC table with loci in rows and cells in columns.
        Must include the ``locus_col`` column. Cell columns must match
        ``rna_df`` in number and order.

    k : int
        Dimensionality of the shared representation. Must be positive.

    dropout_prob : float, optional
        Probability that a cell pair is permitted in ATAC aggregation.
        Lower values give a sparser mask and less over-aggregation. Must be in [0, 1]. Default: 0.25

    n_iter : int, optional
        Number of iterations. Default: 500

    alpha : float, optional
        Weight of the RNA reconstruction term. Default: 1.0

    lambda_ : float, optional
        Weight of the Z ≈ HᵀH consistency term. Default: 100000.0

    gamma : float, optional
        Weight of the per-cell loading mass penalty on H. Default: 1.0

    verbose : int, optional
        Verbosity level. Default: 0.
        - 0: No output
        - 1: Print the objective every iteration
        - 2: Also print each objective term and a final summary

    random_state : int, RandomState or None, optional
        Seed for the random initialization. Runs with the same seed and
        inputs give identical results. Default: None

    max_time : float, optional
        Wall-clock budget in seconds, checked between iterations. When
        exceeded the run stops early and the history is shorter than
        ``n_iter``. Default: None (no limit)

    gene_col, locus_col : str, optional
        Names of the identifier columns.

    Returns
    -------
    H : np.ndarray
        Cell loading matrix of shape (k, n_cells). This is the H produced by
        the last update, so its rows need not sum to one.

    W_rna_df : pd.DataFrame
        Gene loadings, columns ``factor_1 .. factor_k`` plus ``gene_col``.

    W_atac_df : pd.DataFrame
        Locus loadings, columns ``factor_1 .. factor_k`` plus ``locus_col``.

    Z : np.ndarray
        ATAC aggregation matrix of shape (n_cells, n_cells).

    R : np.ndarray
        Boolean aggregation mask of shape (n_cells, n_cells).

    obj_history : list of float
        Objective value after each iteration.

    Raises
    ------
    InvalidArgumentError
        If k <= 0, dropout_prob is outside [0, 1] or n_iter <= 0.

    InvalidInputError
        If an identifier column is missing, a table holds non-numeric
        values, or the tables have different numbers of cells.

    Notes
    -----
    The objective is not guaranteed to decrease monotonically: the
    aggregation term uses an unsquared norm, which the multiplicative
    updates do not minimize exactly. Inspect ``obj_history`` to judge
    convergence.

    Very large ``lambda_`` relative to the data scale can overflow
    intermediate products. A :class:`NumericalInstabilityWarning` is emitted
    when the final objective is not finite; results are still returned.

    Examples
    --------
    >>> import pandas as pd
    >>> from scnmf import perform_nmf
    >>> rna_df = pd.DataFrame({'gene_name': ['g1', 'g2', 'g3'],
    ...                        'c1': [1, 0, 2], 'c2': [0, 3, 1],
    ...                        'c3': [2, 2, 0], 'c4': [1, 1, 1]})
    >>> atac_df = pd.DataFrame({'locus_name': ['l1', 'l2'],
    ...                         'c1': [1, 0], 'c2': [0, 1],
    ...                         'c3': [1, 1], 'c4': [0, 2]})
    >>> H, W_rna, W_atac, Z, R, hist = perform_nmf(
    ...     rna_df, atac_df, k=2, n_iter=5, lambda_=10, dropout_prob=0,
    ...     random_state=0
    ... )
    >>> H.shape, Z.shape, len(hist)
    ((2, 4), (4, 4), 5)
    """
    validate_parameters(k, dropout_prob, n_iter)

    X_rna, gene_names = df_to_array(rna_df, gene_col)
    X_atac, locus_names = df_to_array(atac_df, locus_col)

    state, obj_history = joint_nmf(
        X_rna, X_atac, k,
        dropout_prob=dropout_prob,
        n_iter=n_iter,
        alpha=alpha,
        lambda_=lambda_,
        gamma=gamma,
        verbose=verbose,
        random_state=random_state,
        max_time=max_time
    )

    W_rna_df = loadings_to_df(state.W_rna, gene_names, gene_col)
    W_atac_df = loadings_to_df(state.W_atac, locus_names, locus_col)

    return state.H, W_rna_df, W_atac_df, state.Z, state.R, obj_history
