"""
Utility Functions for Joint NMF Results

This module provides functions for evaluating and comparing factorizations:
reconstruction quality, sparsity of loadings, and matching factors between
runs started from different seeds or run on different backends.
"""

import numpy as np
from typing import Tuple
from scipy.optimize import linear_sum_assignment


def compute_reconstruction_error(
    X: np.ndarray,
    W: np.ndarray,
    H: np.ndarray,
    norm_type: str = 'frobenius'
) -> float:
    r"""
    Compute reconstruction error: ||X - WH||

    Parameters
    ----------
    X : np.ndarray
        Original data matrix
    W : np.ndarray
        Loading matrix
    H : np.ndarray
        Cell loading matrix
    norm_type : str
        Type of norm: 'frobenius' or 'l1'

    Returns
    -------
    float
        Reconstruction error
    """
    residual = X - W @ H

    if norm_type == 'frobenius':
        return float(np.linalg.norm(residual, 'fro'))
    elif norm_type == 'l1':
        return float(np.sum(np.abs(residual)))
    else:
        raise ValueError(f"Unknown norm type: {norm_type}")


def relative_error(X: np.ndarray, W: np.ndarray, H: np.ndarray) -> float:
    """Frobenius reconstruction error relative to ||X||_F."""
    return compute_reconstruction_error(X, W, H) / (np.linalg.norm(X, 'fro') + 1e-10)


def sparsity(X: np.ndarray) -> float:
    r"""
    Compute sparsity of matrix X.

    Sparsity is defined as: (√N - ||X||_1 / ||X||_2) / (√N - 1)
    where N is number of elements.

    Ranges from 0 (dense) to 1 (sparse).
    """
    N = X.size
    if N <= 1:
        return 0.0

    norm_L1 = np.sum(np.abs(X))
    norm_L2 = np.sqrt(np.sum(X ** 2))

    if norm_L2 == 0:
        return 0.0

    return float((np.sqrt(N) - norm_L1 / norm_L2) / (np.sqrt(N) - 1))


def match_factors(
    H1: np.ndarray,
    H2: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    r"""
    Match the factors of two cell loading matrices one-to-one.

    Factors are rows of H (k × cells). Rows are compared by cosine
    similarity and paired with the Hungarian algorithm.

    Parameters
    ----------
    H1, H2 : np.ndarray
        Cell loading matrices with the same number of cells

    Returns
    -------
    order : np.ndarray
        order[i] is the row of H2 matched to row i of H1
    similarities : np.ndarray
        Cosine similarity of each matched pair
    """
    H1_n = H1 / (np.linalg.norm(H1, axis=1, keepdims=True) + 1e-10)
    H2_n = H2 / (np.linalg.norm(H2, axis=1, keepdims=True) + 1e-10)

    sim = H1_n @ H2_n.T
    row_idx, col_idx = linear_sum_assignment(-sim)

    return col_idx, sim[row_idx, col_idx]


def normalize_factors(
    W: np.ndarray,
    H: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    r"""
    Scale W to unit-sum columns and move the scale into H.

    The product W @ H is unchanged.
    """
    col_sums = W.sum(axis=0)
    col_sums[col_sums == 0] = 1
    return W / col_sums, H * col_sums[:, np.newaxis]
