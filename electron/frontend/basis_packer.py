from __future__ import annotations

"""Packing per-element basis shells into a flat Cartesian `AoBasis`.

Input
-----
- a `Geometry` (atom-ordered symbols, coordinates in Bohr)
- a per-element lookup `load_fn(symbol) -> BasisSet`, or an already loaded
  `{symbol: BasisSet}` map

Output
------
`AoBasis`, a structure-of-arrays view of every Cartesian basis function.
Ordering is atom-major, then shell (definition order), then Cartesian
component (`electron.cart.cartesian_components`). AO index i of any S/T/V
matrix built from it refers to basis function i here.
"""

from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, Mapping

import numpy as np

from electron.cart import cartesian_components

from .basis_bse import BasisSet, load_basis
from .molecule import Geometry, Molecule


class BasisLoadError(RuntimeError):
    """Loading the basis definition of `element` failed; the cause is chained."""

    def __init__(self, element: str, source: BaseException):
        self.element = element
        self.source = source
        super().__init__(f"failed to load basis for element {element}: {source}")


@dataclass(frozen=True, eq=False)
class AoBasis:
    """Structure-of-arrays representation of a contracted Cartesian AO basis.

    Per basis function (length `n_basis`)
        center_x, center_y, center_z : float64 centre of the owning atom
        lx, ly, lz : int32 Cartesian exponents, `lx + ly + lz = l`
        shell_index, atom_index : int32 owning shell / atom
    Per shell (length `n_shells`)
        prim_offset, n_primitives : int32 slice into the primitive arrays
        shell_l : int32 angular momentum
        shell_ao_start : int32 index of the shell's first basis function
    Per primitive (flat)
        exponents, coefficients : float64, as given by the basis definition
    """

    n_basis: int
    n_shells: int
    center_x: np.ndarray
    center_y: np.ndarray
    center_z: np.ndarray
    lx: np.ndarray
    ly: np.ndarray
    lz: np.ndarray
    shell_index: np.ndarray
    atom_index: np.ndarray
    prim_offset: np.ndarray
    n_primitives: np.ndarray
    shell_l: np.ndarray
    shell_ao_start: np.ndarray
    exponents: np.ndarray
    coefficients: np.ndarray

    def __post_init__(self) -> None:
        n_basis = int(self.n_basis)
        n_shells = int(self.n_shells)
        for name, n, dt in (
            ("center_x", n_basis, np.float64),
            ("center_y", n_basis, np.float64),
            ("center_z", n_basis, np.float64),
            ("lx", n_basis, np.int32),
            ("ly", n_basis, np.int32),
            ("lz", n_basis, np.int32),
            ("shell_index", n_basis, np.int32),
            ("atom_index", n_basis, np.int32),
            ("prim_offset", n_shells, np.int32),
            ("n_primitives", n_shells, np.int32),
            ("shell_l", n_shells, np.int32),
            ("shell_ao_start", n_shells, np.int32),
        ):
            arr = getattr(self, name)
            if arr.dtype != dt:
                raise TypeError(f"{name} must be {np.dtype(dt).name}")
            if arr.shape != (n,):
                raise ValueError(f"{name} must have shape ({n},), got {arr.shape}")
        if self.exponents.dtype != np.float64 or self.coefficients.dtype != np.float64:
            raise TypeError("exponents/coefficients must be float64")
        if self.exponents.ndim != 1 or self.exponents.shape != self.coefficients.shape:
            raise ValueError("exponents and coefficients must be 1D arrays with identical shape")

    @property
    def n_prim(self) -> int:
        return int(self.exponents.shape[0])

    @property
    def centers(self) -> np.ndarray:
        """Basis-function centres as an (n_basis, 3) array."""

        return np.stack([self.center_x, self.center_y, self.center_z], axis=1)

    def shell_primitives(self, shell: int) -> tuple[np.ndarray, np.ndarray]:
        """Return (exponents, coefficients) views of one shell."""

        shell = int(shell)
        if not 0 <= shell < int(self.n_shells):
            raise IndexError(f"shell index {shell} out of range for {self.n_shells} shells")
        p0 = int(self.prim_offset[shell])
        p1 = p0 + int(self.n_primitives[shell])
        return self.exponents[p0:p1], self.coefficients[p0:p1]


def load_unique_basis_sets(symbols: Iterable[str], load_fn: Callable[[str], BasisSet]) -> dict[str, BasisSet]:
    """Call `load_fn` once per distinct symbol (first-occurrence order).

    Raises `BasisLoadError` for the first symbol whose load fails.
    """

    out: dict[str, BasisSet] = {}
    for sym in dict.fromkeys(symbols):
        try:
            out[sym] = load_fn(sym)
        except Exception as exc:
            raise BasisLoadError(sym, exc) from exc
    return out


def pack_ao_basis(geometry: Geometry, basis_sets: Mapping[str, BasisSet]) -> AoBasis:
    """Flatten atoms x shells x Cartesian components into an `AoBasis`."""

    center_x: list[float] = []
    center_y: list[float] = []
    center_z: list[float] = []
    comp_l: list[tuple[int, int, int]] = []
    shell_index: list[int] = []
    atom_index: list[int] = []

    prim_offset: list[int] = []
    n_primitives: list[int] = []
    shell_l: list[int] = []
    shell_ao_start: list[int] = []
    prim_exp: list[float] = []
    prim_coef: list[float] = []

    for ia, (sym, xyz) in enumerate(geometry.atoms_bohr):
        bs = basis_sets.get(sym)
        if bs is None:
            raise KeyError(f"missing basis set for element {sym!r}")
        cx, cy, cz = (float(v) for v in np.asarray(xyz, dtype=np.float64).reshape((3,)))
        for shell in bs.shells:
            ish = len(prim_offset)
            l = int(shell.angular_momentum)
            prim_offset.append(len(prim_exp))
            n_primitives.append(int(shell.nprim))
            shell_l.append(l)
            shell_ao_start.append(len(comp_l))
            prim_exp.extend(float(x) for x in shell.exponents)
            prim_coef.extend(float(x) for x in shell.coefficients)

            for comp in cartesian_components(l):
                center_x.append(cx)
                center_y.append(cy)
                center_z.append(cz)
                comp_l.append(comp)
                shell_index.append(ish)
                atom_index.append(ia)

    lxyz = np.asarray(comp_l, dtype=np.int32).reshape((-1, 3))
    return AoBasis(
        n_basis=len(comp_l),
        n_shells=len(prim_offset),
        center_x=np.asarray(center_x, dtype=np.float64),
        center_y=np.asarray(center_y, dtype=np.float64),
        center_z=np.asarray(center_z, dtype=np.float64),
        lx=np.ascontiguousarray(lxyz[:, 0]),
        ly=np.ascontiguousarray(lxyz[:, 1]),
        lz=np.ascontiguousarray(lxyz[:, 2]),
        shell_index=np.asarray(shell_index, dtype=np.int32),
        atom_index=np.asarray(atom_index, dtype=np.int32),
        prim_offset=np.asarray(prim_offset, dtype=np.int32),
        n_primitives=np.asarray(n_primitives, dtype=np.int32),
        shell_l=np.asarray(shell_l, dtype=np.int32),
        shell_ao_start=np.asarray(shell_ao_start, dtype=np.int32),
        exponents=np.asarray(prim_exp, dtype=np.float64),
        coefficients=np.asarray(prim_coef, dtype=np.float64),
    )


def build_ao_basis(geometry: Geometry, load_fn: Callable[[str], BasisSet]) -> AoBasis:
    """Build the AO basis of `geometry`, loading each element's basis once."""

    basis_sets = load_unique_basis_sets(geometry.elements, load_fn)
    return pack_ao_basis(geometry, basis_sets)


def init_basis(
    geometry: Geometry,
    basis_name: str,
    *,
    cache_root=None,
    load_fn: Callable[[str], BasisSet] | None = None,
) -> AoBasis:
    """Build the AO basis of `geometry` in the named basis set.

    By default definitions come from `basis_bse.load_basis` (BSE + disk cache);
    `load_fn` replaces that lookup entirely.
    """

    if load_fn is None:
        load_fn = partial(load_basis, basis_name=str(basis_name), cache_root=cache_root)
    return build_ao_basis(geometry, load_fn)


def init_molecule_basis(
    molecule: Molecule,
    basis_name: str | None = None,
    *,
    cache_root=None,
    load_fn: Callable[[str], BasisSet] | None = None,
) -> AoBasis:
    """`init_basis` for a `Molecule`; `basis_name` defaults to `molecule.basis`."""

    name = molecule.basis if basis_name is None else basis_name
    if load_fn is None and not name:
        raise ValueError("no basis set given and the molecule does not name one")
    return init_basis(molecule.cartesian_geometry, str(name), cache_root=cache_root, load_fn=load_fn)


__all__ = [
    "AoBasis",
    "BasisLoadError",
    "build_ao_basis",
    "init_basis",
    "init_molecule_basis",
    "load_unique_basis_sets",
    "pack_ao_basis",
]
