"""
Conversion of labeled feature tables into factorization input.

Single-cell tables arrive as DataFrames with one identifier column
(``gene_name`` for RNA, ``locus_name`` for ATAC) and one numeric column
per cell. The factorization works on plain float matrices, so the
identifier column is split off and kept aside to label the loadings.
"""

import numpy as np
import pandas as pd
from typing import Tuple

from scnmf.exceptions import InvalidInputError


def df_to_array(
    df: pd.DataFrame,
    feature_name: str
) -> Tuple[np.ndarray, np.ndarray]:
    r"""
    Split a labeled table into a dense matrix and its feature labels.

    Parameters
    ----------
    df : pd.DataFrame
        Table with features in rows and cells in columns.
        Must contain the column ``feature_name``.

    feature_name : str
        Name of the identifier column (e.g. ``'gene_name'``).

    Returns
    -------
    X : np.ndarray
        Float64 matrix of shape (n_features, n_cells) holding every column
        except ``feature_name``, rows in the original order.

    features : np.ndarray
        Identifier values, in the original row order.

    Raises
    ------
    InvalidInputError
        If ``feature_name`` is not a column of ``df``, or if any remaining
        value is missing or cannot be converted to float.

    Examples
    --------
    >>> df = pd.DataFrame({'gene_name': ['A', 'B'], 'c1': [1, 0], 'c2': [2, 3]})
    >>> X, names = df_to_array(df, 'gene_name')
    >>> X.shape
    (2, 2)
    """
    if feature_name not in df.columns:
        raise InvalidInputError(
            f"Column '{feature_name}' not found in table with columns "
            f"{list(df.columns)}"
        )

    features = df[feature_name].to_numpy()
    values = df.drop(columns=[feature_name])

    try:
        X = values.to_numpy(dtype=np.float64)
    except (TypeError, ValueError) as err:
        raise InvalidInputError(
            f"Non-numeric values found in table keyed by '{feature_name}': {err}"
        ) from err

    if np.isnan(X).any():
        rows, cols = np.nonzero(np.isnan(X))
        raise InvalidInputError(
            f"Missing values in table keyed by '{feature_name}', first at "
            f"feature '{features[rows[0]]}', cell '{values.columns[cols[0]]}'"
        )

    return X, features


def loadings_to_df(
    W: np.ndarray,
    features: np.ndarray,
    feature_name: str
) -> pd.DataFrame:
    """Wrap a loading matrix as a table with the identifier column reattached."""
    W_df = pd.DataFrame(W, columns=[f"factor_{j + 1}" for j in range(W.shape[1])])
    W_df[feature_name] = features
    return W_df
