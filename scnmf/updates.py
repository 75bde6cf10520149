"""
Multiplicative update rules for joint RNA + ATAC NMF.

Every rule has the form

.. math::
    M \\leftarrow M \\circ \\frac{\\nabla^-}{\\nabla^+ + \\epsilon}

where the numerator and denominator are the negative and positive parts of
the gradient of the objective with respect to M. Both parts are sums of
products of nonnegative matrices, so nonnegative inputs give nonnegative
outputs. ε is float64 machine epsilon; it keeps denominators away from zero
and lets an entry that reached exactly zero grow back.

The aggregation mask R enters every ATAC term as Z ∘ R. All functions are
pure and return new arrays.
"""

import numpy as np

EPS = np.finfo(np.float64).eps


def normalize_rows(H: np.ndarray) -> np.ndarray:
    """Scale every row of H to sum to one over cells."""
    return H / H.sum(axis=1, keepdims=True)


def update_W_rna(
    W_rna: np.ndarray,
    X_rna: np.ndarray,
    H: np.ndarray
) -> np.ndarray:
    r"""
    Update gene loadings so that X_rna ≈ W_rna H.

    .. math::
        W_{rna} \\leftarrow W_{rna} \\circ \\frac{X_{rna} H^T}{W_{rna} H H^T + \\epsilon}
    """
    return W_rna * (X_rna @ H.T) / (W_rna @ H @ H.T + EPS)


def update_W_atac(
    W_atac: np.ndarray,
    X_atac: np.ndarray,
    H: np.ndarray,
    Z: np.ndarray,
    R: np.ndarray
) -> np.ndarray:
    r"""
    Update locus loadings against the aggregated ATAC signal X_atac (Z ∘ R).

    .. math::
        W_{atac} \\leftarrow W_{atac} \\circ
            \\frac{X_{atac} (Z \\circ R) H^T}{W_{atac} H H^T + \\epsilon}
    """
    return W_atac * (X_atac @ (Z * R) @ H.T) / (W_atac @ H @ H.T + EPS)


def update_H(
    W_rna: np.ndarray,
    W_atac: np.ndarray,
    X_rna: np.ndarray,
    X_atac: np.ndarray,
    H: np.ndarray,
    Z: np.ndarray,
    R: np.ndarray,
    alpha: float,
    lambda_: float,
    gamma: float
) -> np.ndarray:
    r"""
    Update the shared cell loadings.

    H couples both modalities and the aggregation structure:

    .. math::
        H \\leftarrow H \\circ
            \\frac{\\alpha W_{rna}^T X_{rna} + W_{atac}^T X_{atac} (Z \\circ R)
                  + \\lambda H (Z + Z^T)}
                 {(\\alpha W_{rna}^T W_{rna} + W_{atac}^T W_{atac}
                  + 2 \\lambda H H^T + \\gamma 1_{k \\times k}) H + \\epsilon}

    Parameters
    ----------
    alpha : float
        Weight of the RNA reconstruction term.
    lambda_ : float
        Weight of the Z ≈ HᵀH consistency term.
    gamma : float
        Weight of the per-cell loading mass penalty.
    """
    k = H.shape[0]

    numerator = (alpha * W_rna.T @ X_rna
                 + W_atac.T @ X_atac @ (Z * R)
                 + lambda_ * H @ (Z + Z.T))
    denominator = (alpha * W_rna.T @ W_rna
                   + W_atac.T @ W_atac
                   + 2 * lambda_ * H @ H.T
                   + gamma * np.ones((k, k))) @ H

    return H * numerator / (denominator + EPS)


def update_Z(
    W_atac: np.ndarray,
    X_atac: np.ndarray,
    H: np.ndarray,
    Z: np.ndarray,
    R: np.ndarray,
    lambda_: float
) -> np.ndarray:
    r"""
    Update the aggregation matrix.

    .. math::
        Z \\leftarrow Z \\circ
            \\frac{(X_{atac}^T W_{atac} H) \\circ R + \\lambda H^T H}
                 {(X_{atac}^T X_{atac} (Z \\circ R)) \\circ R + \\lambda Z + \\epsilon}

    R gates the data terms twice in the denominator. Where R is 0 only the
    λ terms remain, pulling Z toward HᵀH.
    """
    numerator = (X_atac.T @ W_atac @ H) * R + lambda_ * H.T @ H
    denominator = (X_atac.T @ X_atac @ (Z * R)) * R + lambda_ * Z

    return Z * numerator / (denominator + EPS)
