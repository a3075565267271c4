"""Tests for the core-Hamiltonian initial guess."""

from __future__ import annotations

import numpy as np
import pytest

from electron.hf import (
    DimensionMismatchError,
    GuessError,
    SingularOverlapError,
    TooManyElectronsError,
    guess_hcore,
    initial_density,
)
from electron.hf.guess import _ascending_order


def _h2():
    """H2-like STO-3G matrices at ~1.4 Bohr."""
    S = np.array([[1.0, 0.5], [0.5, 1.0]])
    T = np.array([[0.760, 0.236], [0.236, 0.760]])
    V = np.array([[-1.883, -1.190], [-1.190, -1.883]])
    return S, T, V


def _three_by_three():
    S = np.eye(3)
    T = np.array([[1.0, 0.2, 0.1], [0.2, 1.5, 0.3], [0.1, 0.3, 2.0]])
    V = np.array([[-3.0, -0.4, -0.2], [-0.4, -2.5, -0.5], [-0.2, -0.5, -2.0]])
    return S, T, V


def _random_spd(n: int, seed: int):
    rng = np.random.default_rng(seed)
    A = rng.standard_normal((n, n))
    S = A @ A.T + n * np.eye(n)
    d = 1.0 / np.sqrt(np.diag(S))
    S = S * d[:, None] * d[None, :]
    B = rng.standard_normal((n, n))
    T = B @ B.T
    W = rng.standard_normal((n, n))
    V = -(W + W.T)
    return S, T, V


def _assert_orthonormal(C, S, tol=1e-6):
    CtSC = C.T @ S @ C
    assert np.allclose(CtSC, np.eye(C.shape[1]), atol=tol)


def test_h2_orbitals_are_s_orthonormal():
    S, T, V = _h2()
    C = guess_hcore(S, T, V, 1, 1)
    assert C.shape == (2, 2)
    _assert_orthonormal(C, S)


def test_columns_sorted_by_ascending_energy():
    S = np.eye(2)
    T = np.array([[0.2, 0.0], [0.0, 0.0]])
    V = np.array([[0.0, 0.0], [0.0, -1.5]])
    C = guess_hcore(S, T, V, 1, 1)

    e = np.diag(C.T @ (T + V) @ C)
    assert e[0] < e[1]
    assert e[0] == pytest.approx(-1.5, abs=1e-6)
    assert e[1] == pytest.approx(0.2, abs=1e-6)


def test_identity_overlap_diagonalizes_hcore():
    S = np.eye(3)
    T = np.diag([1.0, 0.0, 0.0])
    V = np.diag([0.0, -2.0, -0.5])
    C = guess_hcore(S, T, V, 1, 1)

    ChC = C.T @ (T + V) @ C
    assert np.allclose(np.diag(ChC), [-2.0, -0.5, 1.0], atol=1e-6)
    assert np.allclose(ChC - np.diag(np.diag(ChC)), 0.0, atol=1e-10)


@pytest.mark.parametrize("n,seed", [(2, 0), (5, 1), (8, 2), (13, 3)])
def test_general_overlap_orthonormal_and_sorted(n, seed):
    S, T, V = _random_spd(n, seed)
    C = guess_hcore(S, T, V, 1, 0)

    _assert_orthonormal(C, S)
    e = np.diag(C.T @ (T + V) @ C)
    assert np.all(np.diff(e) >= -1e-10)


def test_energies_match_generalized_eigenproblem():
    S, T, V = _random_spd(6, 7)
    C = guess_hcore(S, T, V, 2, 2)

    # H C = S C diag(e)
    H = T + V
    e = np.diag(C.T @ H @ C)
    assert np.allclose(H @ C, S @ C * e[None, :], atol=1e-8)


def test_one_by_one_system():
    C = guess_hcore(np.array([[1.0]]), np.array([[0.5]]), np.array([[-1.5]]), 1, 0)
    assert C.shape == (1, 1)
    assert abs(C[0, 0]) == pytest.approx(1.0, abs=1e-9)


def test_one_by_one_scales_with_overlap():
    C = guess_hcore(np.array([[4.0]]), np.array([[0.5]]), np.array([[-1.5]]), 0, 0)
    assert abs(C[0, 0]) == pytest.approx(0.5, abs=1e-12)


def test_zero_electrons_accepted():
    S, T, V = _three_by_three()
    C = guess_hcore(S, T, V, 0, 0)
    assert C.shape == (3, 3)
    _assert_orthonormal(C, S)


def test_fully_occupied_accepted():
    S, T, V = _three_by_three()
    C = guess_hcore(S, T, V, 3, 3)
    assert C.shape == (3, 3)


def test_unrestricted_counts_accepted():
    S = np.eye(4)
    T = np.array(
        [
            [1.0, 0.1, 0.05, 0.02],
            [0.1, 1.5, 0.08, 0.03],
            [0.05, 0.08, 2.0, 0.1],
            [0.02, 0.03, 0.1, 2.5],
        ]
    )
    V = np.array(
        [
            [-3.0, -0.2, -0.1, -0.05],
            [-0.2, -2.5, -0.15, -0.06],
            [-0.1, -0.15, -2.0, -0.2],
            [-0.05, -0.06, -0.2, -1.5],
        ]
    )
    C = guess_hcore(S, T, V, 3, 2)
    assert C.shape == (4, 4)
    _assert_orthonormal(C, S)


def test_empty_basis_returns_empty_matrix():
    empty = np.zeros((0, 0))
    C = guess_hcore(empty, empty, empty, 0, 0)
    assert C.shape == (0, 0)


def test_inputs_are_not_modified():
    S, T, V = _h2()
    S0, T0, V0 = S.copy(), T.copy(), V.copy()
    C = guess_hcore(S, T, V, 1, 1)

    assert np.array_equal(S, S0)
    assert np.array_equal(T, T0)
    assert np.array_equal(V, V0)
    assert C is not S and C is not T and C is not V


def test_accepts_nested_lists():
    C = guess_hcore([[1.0, 0.5], [0.5, 1.0]], [[0.76, 0.236], [0.236, 0.76]], [[-1.883, -1.19], [-1.19, -1.883]], 1, 1)
    assert isinstance(C, np.ndarray)
    assert C.shape == (2, 2)


@pytest.mark.parametrize(
    "s_shape,t_shape,v_shape",
    [
        ((3, 3), (2, 2), (3, 3)),
        ((3, 3), (3, 3), (4, 4)),
        ((3, 2), (3, 3), (3, 3)),
        ((3, 3), (3, 2), (3, 3)),
        ((3, 3), (3, 3), (2, 3)),
    ],
)
def test_dimension_mismatch_reports_all_shapes(s_shape, t_shape, v_shape):
    with pytest.raises(DimensionMismatchError) as info:
        guess_hcore(np.zeros(s_shape), np.zeros(t_shape), np.zeros(v_shape), 0, 0)

    err = info.value
    assert err.s_shape == s_shape
    assert err.t_shape == t_shape
    assert err.v_shape == v_shape


def test_dimension_mismatch_takes_priority_over_electron_count():
    with pytest.raises(DimensionMismatchError):
        guess_hcore(np.zeros((3, 3)), np.zeros((2, 2)), np.zeros((3, 3)), 5, 5)


def test_non_matrix_input_is_a_dimension_mismatch():
    with pytest.raises(DimensionMismatchError):
        guess_hcore(np.zeros(3), np.zeros(3), np.zeros(3), 0, 0)


@pytest.mark.parametrize("n_alpha,n_beta", [(4, 1), (1, 4), (4, 4)])
def test_too_many_electrons(n_alpha, n_beta):
    S, T, V = _three_by_three()
    with pytest.raises(TooManyElectronsError) as info:
        guess_hcore(S, T, V, n_alpha, n_beta)

    err = info.value
    assert (err.n_alpha, err.n_beta, err.n_basis) == (n_alpha, n_beta, 3)


def test_empty_basis_still_checks_electron_count():
    empty = np.zeros((0, 0))
    with pytest.raises(TooManyElectronsError):
        guess_hcore(empty, empty, empty, 1, 0)


def test_negative_electron_count_rejected():
    S, T, V = _three_by_three()
    with pytest.raises(ValueError, match="must be >= 0"):
        guess_hcore(S, T, V, -1, 0)


def test_zero_eigenvalue_is_singular():
    S = np.diag([1.0, 0.0])
    with pytest.raises(SingularOverlapError) as info:
        guess_hcore(S, np.eye(2), np.zeros((2, 2)), 0, 0)
    assert info.value.min_eigenvalue == 0.0


def test_negative_definite_overlap_is_singular():
    S = -np.eye(2)
    with pytest.raises(SingularOverlapError):
        guess_hcore(S, np.eye(2), np.zeros((2, 2)), 0, 0)


def test_rank_deficient_overlap_is_singular():
    v = np.array([1.0, 2.0, 3.0])
    S = np.outer(v, v) - np.diag([0.0, 0.0, 1.0])
    with pytest.raises(SingularOverlapError):
        guess_hcore(S, np.eye(3), np.zeros((3, 3)), 0, 0)


def test_singular_overlap_stops_before_core_hamiltonian(monkeypatch):
    calls = []
    eigh = np.linalg.eigh

    def _recording_eigh(a, *args, **kwargs):
        calls.append(np.array(a, copy=True))
        return eigh(a, *args, **kwargs)

    monkeypatch.setattr(np.linalg, "eigh", _recording_eigh)
    S = np.array([[1.0, 2.0], [2.0, 1.0]])
    T = np.array([[np.nan, 0.0], [0.0, np.nan]])
    with pytest.raises(SingularOverlapError):
        guess_hcore(S, T, np.zeros((2, 2)), 1, 1)

    # only S was diagonalized; the transformed core Hamiltonian never was
    assert len(calls) == 1
    assert np.array_equal(calls[0], S)


def test_guess_errors_share_a_base():
    assert issubclass(DimensionMismatchError, GuessError)
    assert issubclass(TooManyElectronsError, GuessError)
    assert issubclass(SingularOverlapError, GuessError)
    assert issubclass(GuessError, ValueError)


def test_ascending_order_is_stable_on_ties():
    assert _ascending_order(np.array([0.5, -1.0, 0.5, -1.0])) == [1, 3, 0, 2]


def test_ascending_order_completes_with_nan():
    order = _ascending_order(np.array([1.0, np.nan, -1.0]))
    assert sorted(order) == [0, 1, 2]


def test_degenerate_energies_keep_orthonormal_columns():
    S = np.eye(3)
    H = np.diag([-1.0, -1.0, 0.5])
    C = guess_hcore(S, H, np.zeros((3, 3)), 2, 2)

    _assert_orthonormal(C, S)
    e = np.diag(C.T @ H @ C)
    assert np.allclose(e, [-1.0, -1.0, 0.5], atol=1e-10)


def test_initial_density_occupies_leading_columns():
    S, T, V = _h2()
    C = guess_hcore(S, T, V, 1, 1)
    Da, Db = initial_density(C, 1, 0)

    assert Da.shape == (2, 2)
    assert np.allclose(Da, np.outer(C[:, 0], C[:, 0]))
    assert np.allclose(Db, 0.0)
    # tr(D S) counts electrons
    assert np.trace(Da @ S) == pytest.approx(1.0, abs=1e-10)


def test_initial_density_rejects_excess_electrons():
    C = np.eye(2)
    with pytest.raises(TooManyElectronsError):
        initial_density(C, 3, 0)
