from __future__ import annotations

"""Core-Hamiltonian initial guess.

Takes already-built AO one-electron integrals

- Overlap S (nao, nao)
- Kinetic T (nao, nao)
- Nuclear attraction V (nao, nao)

and returns MO coefficients C diagonalizing H = T + V in the S metric, via
canonical orthogonalization:

    S = U diag(s) U^T,   X = U diag(s^-1/2)      (X^T S X = I)
    H' = X^T H X = U' diag(e) U'^T
    C = X U'   (columns sorted by ascending e)

so that C^T S C = I. Inputs are never modified.
"""

from functools import cmp_to_key

import numpy as np


class GuessError(ValueError):
    """Base class for initial-guess failures."""


class DimensionMismatchError(GuessError):
    def __init__(self, s_shape: tuple[int, ...], t_shape: tuple[int, ...], v_shape: tuple[int, ...]):
        self.s_shape = s_shape
        self.t_shape = t_shape
        self.v_shape = v_shape
        super().__init__(
            f"S, T and V must share one square shape; got S{s_shape}, T{t_shape}, V{v_shape}"
        )


class TooManyElectronsError(GuessError):
    def __init__(self, n_alpha: int, n_beta: int, n_basis: int):
        self.n_alpha = n_alpha
        self.n_beta = n_beta
        self.n_basis = n_basis
        super().__init__(f"n_alpha={n_alpha}, n_beta={n_beta} exceed the number of basis functions ({n_basis})")


class SingularOverlapError(GuessError):
    def __init__(self, min_eigenvalue: float):
        self.min_eigenvalue = min_eigenvalue
        super().__init__(f"S is not positive definite (smallest eigenvalue {min_eigenvalue:.3e})")


def _shape(a: np.ndarray) -> tuple[int, ...]:
    return tuple(int(x) for x in a.shape)


def _is_square(shape: tuple[int, ...]) -> bool:
    return len(shape) == 2 and shape[0] == shape[1]


def _cmp_energy(a: float, b: float) -> int:
    # Unordered pairs (NaN) compare equal so the sort always completes.
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def _ascending_order(energies: np.ndarray) -> list[int]:
    """Stable ascending permutation of `energies`."""

    vals = [float(e) for e in energies]
    return sorted(range(len(vals)), key=cmp_to_key(lambda i, j: _cmp_energy(vals[i], vals[j])))


def _canonical_orthogonalizer(S: np.ndarray) -> np.ndarray:
    """Return X = U diag(s^-1/2) from eigh(S); X.T @ S @ X = I."""

    s, U = np.linalg.eigh(S)
    if np.any(~(s > 0.0)):
        raise SingularOverlapError(float(np.min(s)))
    return U * (s ** (-0.5))[None, :]


def guess_hcore(S, T, V, n_alpha: int, n_beta: int) -> np.ndarray:
    """Initial MO coefficients from diagonalizing the core Hamiltonian.

    Parameters
    ----------
    S, T, V : array_like
        AO overlap, kinetic and nuclear-attraction matrices, all (n, n), in
        the basis-function order of the `AoBasis` they were built from.
    n_alpha, n_beta : int
        Electron counts; the caller occupies the first n_alpha / n_beta
        columns of the result.

    Returns
    -------
    np.ndarray
        C, shape (n, n), with S-orthonormal columns ordered by ascending
        one-electron orbital energy.

    Raises
    ------
    DimensionMismatchError
        S, T, V are not square or differ in size. Checked first.
    TooManyElectronsError
        n_alpha or n_beta exceeds n.
    SingularOverlapError
        S has an eigenvalue <= 0.
    """

    S = np.asarray(S, dtype=np.float64)
    T = np.asarray(T, dtype=np.float64)
    V = np.asarray(V, dtype=np.float64)
    s_shape, t_shape, v_shape = _shape(S), _shape(T), _shape(V)
    if not (_is_square(s_shape) and s_shape == t_shape == v_shape):
        raise DimensionMismatchError(s_shape, t_shape, v_shape)

    nao = int(s_shape[0])
    n_alpha = int(n_alpha)
    n_beta = int(n_beta)
    if n_alpha < 0 or n_beta < 0:
        raise ValueError("n_alpha/n_beta must be >= 0")
    if n_alpha > nao or n_beta > nao:
        raise TooManyElectronsError(n_alpha, n_beta, nao)

    if nao == 0:
        return np.zeros((0, 0), dtype=np.float64)

    X = _canonical_orthogonalizer(S)
    h = T + V
    hp = X.T @ h @ X
    e, Up = np.linalg.eigh(hp)

    order = _ascending_order(e)
    return X @ Up[:, order]


def initial_density(C, n_alpha: int, n_beta: int) -> tuple[np.ndarray, np.ndarray]:
    """Spin densities D_a, D_b from the first n_alpha / n_beta columns of C."""

    C = np.asarray(C, dtype=np.float64)
    if C.ndim != 2:
        raise ValueError("C must be 2D")
    nmo = int(C.shape[1])
    n_alpha = int(n_alpha)
    n_beta = int(n_beta)
    if n_alpha < 0 or n_beta < 0:
        raise ValueError("n_alpha/n_beta must be >= 0")
    if n_alpha > nmo or n_beta > nmo:
        raise TooManyElectronsError(n_alpha, n_beta, nmo)

    Ca = C[:, :n_alpha]
    Cb = C[:, :n_beta]
    return Ca @ Ca.T, Cb @ Cb.T


__all__ = [
    "DimensionMismatchError",
    "GuessError",
    "SingularOverlapError",
    "TooManyElectronsError",
    "guess_hcore",
    "initial_density",
]
