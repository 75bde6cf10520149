"""
Factorization state for joint RNA + ATAC NMF.

The state bundles the five matrices that co-evolve during one
optimization run together with the regularization weights:

- H (k × n_cells): shared cell loadings
- W_rna (n_genes × k): gene loadings
- W_atac (n_loci × k): locus loadings
- Z (n_cells × n_cells): ATAC aggregation weights
- R (n_cells × n_cells): binary aggregation mask, fixed after sampling

Only H, W_rna, W_atac and Z are replaced across iterations. R is sampled
once and read by every update that touches the aggregation term.
"""

import numbers
import numpy as np
from dataclasses import dataclass
from typing import Optional, Union

from sklearn.utils import check_random_state

from scnmf.exceptions import InvalidArgumentError


@dataclass
class FactorizationState:
    """Mutable record of one joint factorization run."""
    H: np.ndarray
    W_rna: np.ndarray
    W_atac: np.ndarray
    Z: np.ndarray
    R: np.ndarray
    k: int
    alpha: float = 1.0
    lambda_: float = 100000.0
    gamma: float = 1.0

    def copy(self) -> "FactorizationState":
        return FactorizationState(
            H=self.H.copy(),
            W_rna=self.W_rna.copy(),
            W_atac=self.W_atac.copy(),
            Z=self.Z.copy(),
            R=self.R.copy(),
            k=self.k,
            alpha=self.alpha,
            lambda_=self.lambda_,
            gamma=self.gamma,
        )


def validate_parameters(k, dropout_prob: float, n_iter) -> None:
    r"""
    Check rank, dropout probability and iteration count.

    Raises
    ------
    InvalidArgumentError
        If k is not a positive integer, dropout_prob is not a number in [0, 1],
        or n_iter is not a positive integer.
    """
    if not isinstance(k, numbers.Integral) or isinstance(k, bool) or k <= 0:
        raise InvalidArgumentError(f"k must be a positive integer, got {k!r}")

    if (not isinstance(dropout_prob, numbers.Real) or isinstance(dropout_prob, bool)
            or not 0.0 <= dropout_prob <= 1.0):
        raise InvalidArgumentError(
            f"dropout_prob must be between 0 and 1, got {dropout_prob!r}"
        )

    if not isinstance(n_iter, numbers.Integral) or isinstance(n_iter, bool) or n_iter <= 0:
        raise InvalidArgumentError(f"n_iter must be a positive integer, got {n_iter!r}")


def sample_mask(
    n_cells: int,
    dropout_prob: float,
    random_state: np.random.RandomState
) -> np.ndarray:
    """
    Sample the binary aggregation mask R.

    Each entry is an independent Bernoulli(``dropout_prob``) draw: True
    with probability ``dropout_prob``, so 0 gives an empty mask and 1
    permits every cell pair.
    """
    return random_state.uniform(size=(n_cells, n_cells)) < dropout_prob


def initialize_state(
    n_genes: int,
    n_loci: int,
    n_cells: int,
    k: int,
    dropout_prob: float = 0.25,
    alpha: float = 1.0,
    lambda_: float = 100000.0,
    gamma: float = 1.0,
    random_state: Optional[Union[int, np.random.RandomState]] = None
) -> FactorizationState:
    r"""
    Randomly initialize a factorization state.

    Continuous matrices are drawn from U(0,1); R from the dropout mask.
    Sampling order is H, Z, R, W_rna, W_atac, so a fixed seed always
    reproduces the same state.

    Parameters
    ----------
    n_genes, n_loci, n_cells : int
        Row counts of the RNA and ATAC matrices and their shared cell count.

    k : int
        Rank of the shared representation.

    dropout_prob : float, optional
        Probability that a cell pair is permitted in aggregation. Default: 0.25

    alpha, lambda_, gamma : float, optional
        Regularization weights stored on the state.

    random_state : int, RandomState or None, optional
        Seed or generator used for every draw.

    Returns
    -------
    FactorizationState
    """
    rng = check_random_state(random_state)

    H = rng.uniform(size=(k, n_cells))
    Z = rng.uniform(size=(n_cells, n_cells))
    R = sample_mask(n_cells, dropout_prob, rng)
    W_rna = rng.uniform(size=(n_genes, k))
    W_atac = rng.uniform(size=(n_loci, k))

    return FactorizationState(
        H=H, W_rna=W_rna, W_atac=W_atac, Z=Z, R=R, k=k,
        alpha=alpha, lambda_=lambda_, gamma=gamma
    )
