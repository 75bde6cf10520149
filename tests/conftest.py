import numpy as np
import pandas as pd
import pytest


def make_table(X: np.ndarray, feature_name: str, prefix: str) -> pd.DataFrame:
    df = pd.DataFrame(X, columns=[f"cell_{j + 1}" for j in range(X.shape[1])])
    df.insert(0, feature_name, [f"{prefix}{i + 1}" for i in range(X.shape[0])])
    return df


@pytest.fixture
def small_tables():
    """3 genes × 4 cells RNA and 2 loci × 4 cells ATAC."""
    X_rna = np.array([
        [1.0, 0.0, 2.0, 1.0],
        [0.0, 3.0, 2.0, 1.0],
        [2.0, 1.0, 0.0, 1.0],
    ])
    X_atac = np.array([
        [1.0, 0.0, 1.0, 0.0],
        [0.0, 1.0, 1.0, 2.0],
    ])
    return make_table(X_rna, "gene_name", "gene"), make_table(X_atac, "locus_name", "locus")


@pytest.fixture
def synthetic_tables():
    """Two cell groups with distinct RNA and ATAC programs."""
    rng = np.random.RandomState(42)
    n_cells = 20

    H_true = np.zeros((2, n_cells))
    H_true[0, :10] = 1.0
    H_true[1, 10:] = 1.0
    H_true += 0.05 * rng.rand(2, n_cells)

    X_rna = rng.exponential(1.0, (30, 2)) @ H_true + 0.1 * rng.rand(30, n_cells)
    X_atac = rng.exponential(1.0, (15, 2)) @ H_true + 0.1 * rng.rand(15, n_cells)

    return make_table(X_rna, "gene_name", "gene"), make_table(X_atac, "locus_name", "locus")
