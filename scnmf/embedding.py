"""
Two-dimensional embedding of scATAC-seq data.

The ATAC matrix can first be aggregated with the Z and R matrices returned
by :func:`scnmf.perform_nmf`: every cell is replaced by a weighted average
of the cells it aggregates from. The (possibly aggregated) matrix is then
embedded with UMAP using correlation distance between cells.
"""

import numpy as np
import pandas as pd
import umap
from typing import Optional, Union

from scnmf.data import df_to_array
from scnmf.exceptions import InvalidInputError

N_NEIGHBORS = 30


def aggregation_weights(Z: np.ndarray, R: np.ndarray) -> np.ndarray:
    r"""
    Column-normalized Z ∘ R.

    Column j holds the weights with which every cell contributes to cell j;
    the weights of each column sum to one.

    Raises
    ------
    InvalidInputError
        If a column of Z ∘ R sums to zero (a cell with no contributing cell).
    """
    ZR = Z * R
    col_sums = ZR.sum(axis=0, keepdims=True)

    if np.any(col_sums <= 0):
        empty = np.flatnonzero(col_sums.ravel() <= 0)
        raise InvalidInputError(
            f"Aggregation weights are empty for cells {empty.tolist()}; "
            f"Z * R must have a positive sum in every column"
        )

    return ZR / col_sums


def aggregate_atac(X_atac: np.ndarray, Z: np.ndarray, R: np.ndarray) -> np.ndarray:
    """Aggregated ATAC signal X_atac · normalize(Z ∘ R)."""
    return X_atac @ aggregation_weights(Z, R)


def reduce_dims_atac(
    atac_df: pd.DataFrame,
    Z: Optional[np.ndarray] = None,
    R: Optional[np.ndarray] = None,
    n_neighbors: int = N_NEIGHBORS,
    random_state: Optional[Union[int, np.random.RandomState]] = None,
    locus_col: str = "locus_name"
) -> np.ndarray:
    r"""
    Reduce dimensions of an ATAC-seq table using UMAP.

    Parameters
    ----------
    atac_df : pd.DataFrame
        ATAC table with loci in rows and cells in columns.
        Must include the ``locus_col`` column.

    Z : np.ndarray, optional
        Aggregation matrix returned by :func:`scnmf.perform_nmf`.

    R : np.ndarray, optional
        Binary aggregation mask returned by :func:`scnmf.perform_nmf`.
        If Z and R are both omitted no aggregation is performed.

    n_neighbors : int, optional
        UMAP neighborhood size. Default: 30. Truncated to n_cells - 1 for
        small datasets.

    random_state : int, RandomState or None, optional
        Seed passed to UMAP.

    locus_col : str, optional
        Name of the identifier column. Default: 'locus_name'

    Returns
    -------
    np.ndarray
        Embedding of shape (2, n_cells).

    Raises
    ------
    InvalidInputError
        If only one of Z and R is given, their shapes do not match the
        number of cells, or a column of Z ∘ R sums to zero.
    """
    X_atac, _ = df_to_array(atac_df, locus_col)
    n_cells = X_atac.shape[1]

    if (Z is None) != (R is None):
        raise InvalidInputError("Z and R must be given together")

    if Z is None:
        Z = np.eye(n_cells)
        R = np.eye(n_cells, dtype=bool)

    Z = np.asarray(Z, dtype=np.float64)
    R = np.asarray(R)
    if Z.shape != (n_cells, n_cells) or R.shape != (n_cells, n_cells):
        raise InvalidInputError(
            f"Z and R must have shape ({n_cells}, {n_cells}), got "
            f"{Z.shape} and {R.shape}"
        )

    X_agg = aggregate_atac(X_atac, Z, R)

    # spectral initialization fails on graphs smaller than the neighborhood
    init = "spectral" if n_cells > n_neighbors else "random"
    n_neighbors = max(2, min(n_neighbors, n_cells - 1))

    reducer = umap.UMAP(
        n_components=2,
        n_neighbors=n_neighbors,
        metric="correlation",
        init=init,
        random_state=random_state
    )

    # UMAP embeds rows, cells are columns
    embedding = reducer.fit_transform(X_agg.T)

    return np.asarray(embedding, dtype=np.float64).T
