"""
scnmf: Joint NMF of single-cell RNA and ATAC data

A Python package for non-negative matrix factorization of paired
scRNA-seq and scATAC-seq measurements. Both modalities share one cell
loading matrix; ATAC signal is pooled across related cells through a
learned aggregation matrix before it is fitted.

- **perform_nmf**: Joint factorization of two labeled tables
  Returns cell loadings, gene and locus loadings, the aggregation
  matrix Z, the binary mask R and the objective history

- **reduce_dims_atac**: UMAP embedding of (aggregated) ATAC signal

- **select_rank**: Choose k by stability of cell loadings across restarts

Available Implementations
==========================

- **CPU Version**: NumPy/SciPy implementation (scnmf.perform_nmf)
- **GPU Version**: PyTorch implementation with the same results (from scnmf.gpu)

Typical Usage
=============

1. Joint factorization:

    >>> import pandas as pd
    >>> from scnmf import perform_nmf
    >>> rna_df = pd.read_csv("rna.csv")    # gene_name, cell_1, cell_2, ...
    >>> atac_df = pd.read_csv("atac.csv")  # locus_name, cell_1, cell_2, ...
    >>> H, W_rna, W_atac, Z, R, hist = perform_nmf(
    ...     rna_df, atac_df, k=10, n_iter=500, random_state=0
    ... )

2. Embedding of aggregated ATAC signal:

    >>> from scnmf import reduce_dims_atac
    >>> emb = reduce_dims_atac(atac_df, Z, R)   # shape (2, n_cells)
    >>> emb_raw = reduce_dims_atac(atac_df)     # no aggregation

3. GPU factorization:

    >>> from scnmf.gpu import gpu_perform_nmf
    >>> H, W_rna, W_atac, Z, R, hist = gpu_perform_nmf(rna_df, atac_df, k=10)

Mathematical Background
=======================

Joint NMF minimizes:

    α ||X_rna - W_rna H||_F^2 + ||X_atac (Z∘R) - W_atac H||_F^2
        + λ ||Z - HᵀH||_F + γ Σ_cells (Σ_factors H)^2

subject to H, W_rna, W_atac, Z ≥ 0, with R a fixed random binary mask.

License: MIT

"""

__version__ = "1.0.0"
__all__ = [
    # Factorization
    'perform_nmf',
    'joint_nmf',
    'initialize_state',
    'FactorizationState',
    # Embedding
    'reduce_dims_atac',
    # Data
    'df_to_array',
    # Errors
    'InvalidArgumentError',
    'InvalidInputError',
    'NumericalInstabilityWarning',
    # Utilities
    'compute_reconstruction_error',
    'match_factors',
    'select_rank',
    'plot_objective_history',
    'plot_embedding',
    # GPU subpackage (optional)
    'gpu',
]

from .exceptions import InvalidArgumentError, InvalidInputError, NumericalInstabilityWarning
from .data import df_to_array
from .state import FactorizationState, initialize_state
from .joint_nmf import perform_nmf, joint_nmf
from .embedding import reduce_dims_atac
from .utils.evaluation import compute_reconstruction_error, match_factors
from .utils.rank_selection import select_rank
from .utils.plotting import plot_objective_history, plot_embedding

# Optional GPU module import (graceful degradation if PyTorch not installed)
try:
    from . import gpu
except ImportError:
    gpu = None
    import warnings
    warnings.warn(
        "GPU module not available. Install PyTorch to enable GPU acceleration: "
        "pip install torch",
        UserWarning
    )
