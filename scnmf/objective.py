"""
Objective function of joint RNA + ATAC NMF.

.. math::
    J = \\alpha \\|X_{rna} - W_{rna} H\\|_F^2
        + \\|X_{atac} (Z \\circ R) - W_{atac} H\\|_F^2
        + \\lambda \\|Z - H^T H\\|_F
        + \\gamma \\sum_j \\left(\\sum_i H_{ij}\\right)^2

The aggregation term uses the plain (not squared) Frobenius norm. The value
is diagnostic only: it is recorded once per iteration and never fed back
into the updates.
"""

import numpy as np
from typing import Dict


def objective_terms(
    X_rna: np.ndarray,
    X_atac: np.ndarray,
    W_rna: np.ndarray,
    W_atac: np.ndarray,
    H: np.ndarray,
    Z: np.ndarray,
    R: np.ndarray,
    alpha: float,
    lambda_: float,
    gamma: float
) -> Dict[str, float]:
    r"""
    Weighted terms of the objective.

    Returns
    -------
    dict
        - 'rna': α ‖X_rna − W_rna H‖²_F
        - 'atac': ‖X_atac (Z∘R) − W_atac H‖²_F
        - 'aggregation': λ ‖Z − HᵀH‖_F
        - 'mass': γ Σ_cells (Σ_factors H)²
    """
    return {
        'rna': alpha * np.linalg.norm(X_rna - W_rna @ H) ** 2,
        'atac': np.linalg.norm(X_atac @ (Z * R) - W_atac @ H) ** 2,
        'aggregation': lambda_ * np.linalg.norm(Z - H.T @ H),
        'mass': gamma * np.sum(np.sum(H, axis=0) ** 2),
    }


def compute_objective(
    X_rna: np.ndarray,
    X_atac: np.ndarray,
    W_rna: np.ndarray,
    W_atac: np.ndarray,
    H: np.ndarray,
    Z: np.ndarray,
    R: np.ndarray,
    alpha: float,
    lambda_: float,
    gamma: float
) -> float:
    """Scalar objective J; the sum of :func:`objective_terms`."""
    terms = objective_terms(X_rna, X_atac, W_rna, W_atac, H, Z, R,
                            alpha, lambda_, gamma)
    return float(sum(terms.values()))
