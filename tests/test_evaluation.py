import numpy as np
import pytest

from scnmf.utils.evaluation import (
    compute_reconstruction_error,
    relative_error,
    sparsity,
    match_factors,
    normalize_factors,
)


def test_reconstruction_error() -> None:
    X = np.array([[1.0, 2.0], [3.0, 4.0]])
    W = np.array([[1.0], [1.0]])
    H = np.array([[1.0, 2.0]])

    # residual [[0, 0], [2, 2]]
    assert compute_reconstruction_error(X, W, H) == pytest.approx(np.sqrt(8))
    assert compute_reconstruction_error(X, W, H, norm_type='l1') == pytest.approx(4.0)
    assert relative_error(X, W, H) == pytest.approx(np.sqrt(8) / np.sqrt(30))

    with pytest.raises(ValueError):
        compute_reconstruction_error(X, W, H, norm_type='max')


def test_sparsity_extremes() -> None:
    assert sparsity(np.ones((4, 4))) == pytest.approx(0.0)

    one_hot = np.zeros((4, 4))
    one_hot[0, 0] = 5.0
    assert sparsity(one_hot) == pytest.approx(1.0)
    assert sparsity(np.zeros((3, 3))) == 0.0


def test_match_factors_recovers_permutation() -> None:
    H = np.random.RandomState(0).rand(3, 10)
    permuted = H[[2, 0, 1]] * 4.0

    order, sims = match_factors(H, permuted)

    np.testing.assert_array_equal(order, [1, 2, 0])
    np.testing.assert_allclose(sims, 1.0)


def test_normalize_factors_keeps_product() -> None:
    rng = np.random.RandomState(0)
    W, H = rng.rand(5, 2), rng.rand(2, 4)

    W_n, H_n = normalize_factors(W, H)

    np.testing.assert_allclose(W_n.sum(axis=0), 1.0)
    np.testing.assert_allclose(W_n @ H_n, W @ H)
