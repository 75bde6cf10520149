import numpy as np

from scnmf.state import initialize_state
from scnmf.updates import (
    EPS,
    normalize_rows,
    update_W_rna,
    update_W_atac,
    update_H,
    update_Z,
)


def _random_problem(seed: int = 0, dropout_prob: float = 0.25):
    rng = np.random.RandomState(seed)
    X_rna = rng.rand(6, 5)
    X_atac = rng.rand(4, 5)
    state = initialize_state(6, 4, 5, 3, dropout_prob=dropout_prob, random_state=rng)
    return X_rna, X_atac, state


def test_eps_is_machine_epsilon() -> None:
    assert EPS == np.finfo(np.float64).eps


def test_normalize_rows() -> None:
    H = np.array([[1.0, 3.0], [2.0, 2.0]])

    np.testing.assert_allclose(normalize_rows(H), [[0.25, 0.75], [0.5, 0.5]])


def test_update_W_rna_by_hand() -> None:
    X_rna = np.array([[1.0, 2.0], [3.0, 4.0]])
    W_rna = np.array([[1.0], [1.0]])
    H = np.array([[0.5, 0.5]])

    # X Hᵀ = [1.5, 3.5], W H Hᵀ = [0.5, 0.5]
    np.testing.assert_allclose(update_W_rna(W_rna, X_rna, H), [[3.0], [7.0]])


def test_update_W_atac_uses_aggregated_signal() -> None:
    X_atac = np.array([[1.0, 0.0], [0.0, 2.0]])
    W_atac = np.array([[1.0], [1.0]])
    H = np.array([[0.5, 0.5]])
    Z = np.array([[0.0, 1.0], [1.0, 0.0]])
    R = np.ones((2, 2), dtype=bool)

    # X (Z∘R) = [[0, 1], [2, 0]], times Hᵀ = [0.5, 1.0]
    np.testing.assert_allclose(update_W_atac(W_atac, X_atac, H, Z, R), [[1.0], [2.0]])


def test_update_W_atac_with_empty_mask_is_zero() -> None:
    X_rna, X_atac, s = _random_problem(dropout_prob=0.0)

    W_atac = update_W_atac(s.W_atac, X_atac, s.H, s.Z, s.R)

    assert np.all(W_atac == 0)


def test_update_H_matches_formula() -> None:
    X_rna, X_atac, s = _random_problem(1)
    alpha, lambda_, gamma = 2.0, 3.0, 0.5
    ZR = s.Z * s.R

    numerator = (alpha * s.W_rna.T.dot(X_rna) + s.W_atac.T.dot(X_atac).dot(ZR)
                 + lambda_ * s.H.dot(s.Z + s.Z.T))
    denominator = (alpha * s.W_rna.T.dot(s.W_rna) + s.W_atac.T.dot(s.W_atac)
                   + 2 * lambda_ * s.H.dot(s.H.T) + gamma * np.ones((3, 3))).dot(s.H)
    expected = s.H * numerator / (denominator + EPS)

    H = update_H(s.W_rna, s.W_atac, X_rna, X_atac, s.H, s.Z, s.R, alpha, lambda_, gamma)

    np.testing.assert_allclose(H, expected, rtol=1e-12)


def test_update_Z_with_empty_mask_approaches_HtH() -> None:
    _, X_atac, s = _random_problem(2, dropout_prob=0.0)

    Z = update_Z(s.W_atac, X_atac, s.H, s.Z, s.R, lambda_=10.0)

    np.testing.assert_allclose(Z, s.H.T @ s.H, rtol=1e-10)


def test_update_Z_matches_formula() -> None:
    _, X_atac, s = _random_problem(3, dropout_prob=0.5)
    lambda_ = 5.0
    R = s.R.astype(float)

    numerator = X_atac.T.dot(s.W_atac).dot(s.H) * R + lambda_ * s.H.T.dot(s.H)
    denominator = X_atac.T.dot(X_atac).dot(s.Z * R) * R + lambda_ * s.Z
    expected = s.Z * numerator / (denominator + EPS)

    np.testing.assert_allclose(update_Z(s.W_atac, X_atac, s.H, s.Z, s.R, lambda_),
                               expected, rtol=1e-12)


def test_updates_preserve_nonnegativity() -> None:
    X_rna, X_atac, s = _random_problem(4)

    W_rna = update_W_rna(s.W_rna, X_rna, s.H)
    W_atac = update_W_atac(s.W_atac, X_atac, s.H, s.Z, s.R)
    H = update_H(W_rna, W_atac, X_rna, X_atac, s.H, s.Z, s.R, 1.0, 100.0, 1.0)
    Z = update_Z(W_atac, X_atac, H, s.Z, s.R, 100.0)

    for M in (W_rna, W_atac, H, Z):
        assert np.all(M >= 0)


def test_updates_do_not_modify_inputs() -> None:
    X_rna, X_atac, s = _random_problem(5)
    before = s.copy()

    update_W_rna(s.W_rna, X_rna, s.H)
    update_W_atac(s.W_atac, X_atac, s.H, s.Z, s.R)
    update_H(s.W_rna, s.W_atac, X_rna, X_atac, s.H, s.Z, s.R, 1.0, 1.0, 1.0)
    update_Z(s.W_atac, X_atac, s.H, s.Z, s.R, 1.0)

    for name in ('H', 'Z', 'R', 'W_rna', 'W_atac'):
        np.testing.assert_array_equal(getattr(s, name), getattr(before, name))


def test_zero_entry_stays_finite() -> None:
    X_rna = np.array([[1.0, 2.0], [3.0, 4.0]])
    W_rna = np.array([[0.0], [1.0]])
    H = np.array([[0.0, 0.0]])

    W = update_W_rna(W_rna, X_rna, H)

    assert np.all(np.isfinite(W))
