import numpy as np
import pytest

from conftest import make_table
from scnmf import perform_nmf, reduce_dims_atac
from scnmf.embedding import aggregation_weights, aggregate_atac
from scnmf.exceptions import InvalidInputError


def _atac_table(n_loci: int = 4, n_cells: int = 5, seed: int = 0):
    X = np.random.RandomState(seed).rand(n_loci, n_cells)
    return make_table(X, 'locus_name', 'locus')


def test_identity_weights_leave_signal_unchanged() -> None:
    X = np.random.RandomState(0).rand(3, 4)

    np.testing.assert_allclose(aggregate_atac(X, np.eye(4), np.eye(4, dtype=bool)), X)


def test_weights_are_column_normalized() -> None:
    rng = np.random.RandomState(1)
    Z = rng.rand(6, 6)
    R = rng.rand(6, 6) > 0.3
    np.fill_diagonal(R, True)

    W = aggregation_weights(Z, R)

    np.testing.assert_allclose(W.sum(axis=0), 1.0)
    assert np.all(W[~R] == 0)


def test_aggregation_by_hand() -> None:
    X = np.array([[1.0, 3.0]])
    Z = np.array([[1.0, 1.0], [0.0, 3.0]])
    R = np.ones((2, 2), dtype=bool)

    # column 2 weights: [1/4, 3/4]
    np.testing.assert_allclose(aggregate_atac(X, Z, R), [[1.0, 2.5]])


def test_empty_column_is_rejected() -> None:
    Z = np.ones((3, 3))
    R = np.ones((3, 3), dtype=bool)
    R[:, 1] = False

    with pytest.raises(InvalidInputError, match=r'\[1\]'):
        aggregation_weights(Z, R)


def test_embedding_shape_without_aggregation() -> None:
    emb = reduce_dims_atac(_atac_table(), random_state=0)

    assert emb.shape == (2, 5)
    assert np.all(np.isfinite(emb))


def test_embedding_with_aggregation(synthetic_tables) -> None:
    rna_df, atac_df = synthetic_tables
    *_, Z, R, _ = perform_nmf(rna_df, atac_df, k=2, n_iter=10, dropout_prob=1.0,
                              lambda_=10.0, random_state=0)

    emb = reduce_dims_atac(atac_df, Z, R, random_state=0)

    assert emb.shape == (2, 20)


def test_z_and_r_must_come_together() -> None:
    with pytest.raises(InvalidInputError):
        reduce_dims_atac(_atac_table(), Z=np.eye(5))


def test_wrong_shape_is_rejected() -> None:
    with pytest.raises(InvalidInputError, match='shape'):
        reduce_dims_atac(_atac_table(), Z=np.eye(4), R=np.eye(4, dtype=bool))
