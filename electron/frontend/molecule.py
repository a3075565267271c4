from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from .periodic_table import atomic_number, normalize_symbol

ANGSTROM_TO_BOHR = 1.8897259886


def _parse_atom_string(atom: str) -> list[tuple[str, np.ndarray]]:
    atoms: list[tuple[str, np.ndarray]] = []
    for frag in str(atom).replace("\n", ";").split(";"):
        frag = frag.strip()
        if not frag:
            continue
        tok = frag.split()
        if len(tok) != 4:
            raise ValueError(f"invalid atom fragment: {frag!r} (expected: 'El x y z')")
        xyz = np.asarray([float(tok[1]), float(tok[2]), float(tok[3])], dtype=np.float64)
        atoms.append((tok[0], xyz))
    return atoms


def _parse_atoms(atoms: Any) -> list[tuple[str, np.ndarray]]:
    if isinstance(atoms, str):
        return _parse_atom_string(atoms)
    if isinstance(atoms, (list, tuple)):
        out: list[tuple[str, np.ndarray]] = []
        for item in atoms:
            if isinstance(item, str):
                out.extend(_parse_atom_string(item))
            elif isinstance(item, (list, tuple)) and len(item) == 2:
                xyz = np.asarray(item[1], dtype=np.float64).reshape((3,))
                out.append((str(item[0]), xyz))
            else:
                raise ValueError(f"invalid atom entry: {item!r}")
        return out
    raise TypeError("atoms must be an 'El x y z; ...' string or a list of (sym, (x,y,z))")


def _unit_scale(unit: str) -> float:
    unit_norm = str(unit).strip().lower()
    if unit_norm in ("bohr", "a0", "au"):
        return 1.0
    if unit_norm in ("angstrom", "ang", "a"):
        return ANGSTROM_TO_BOHR
    raise ValueError("unit must be 'Bohr' or 'Angstrom'")


@dataclass(frozen=True, eq=False)
class Geometry:
    """Atom-ordered element symbols with Cartesian coordinates in Bohr.

    Symbols are stored in canonical title case. Atom order is significant:
    the AO basis built from a geometry is atom-major in this order.
    """

    atoms_bohr: tuple[tuple[str, np.ndarray], ...] = ()

    @classmethod
    def from_atoms(cls, atoms: Any, *, unit: str = "Bohr") -> "Geometry":
        scale = _unit_scale(unit)
        atoms_bohr = tuple(
            (normalize_symbol(sym), np.array(xyz, dtype=np.float64) * scale) for sym, xyz in _parse_atoms(atoms)
        )
        return cls(atoms_bohr=atoms_bohr)

    @property
    def elements(self) -> tuple[str, ...]:
        return tuple(sym for sym, _ in self.atoms_bohr)

    @property
    def natm(self) -> int:
        return int(len(self.atoms_bohr))

    @property
    def coords_bohr(self) -> np.ndarray:
        """Return atomic coordinates as an array (natm,3) in Bohr."""

        if not self.atoms_bohr:
            return np.zeros((0, 3), dtype=np.float64)
        return np.asarray([xyz for _sym, xyz in self.atoms_bohr], dtype=np.float64)

    @property
    def atom(self) -> str:
        parts = [f"{sym} {xyz[0]:.16g} {xyz[1]:.16g} {xyz[2]:.16g}" for sym, xyz in self.atoms_bohr]
        return "; ".join(parts)


@dataclass(frozen=True)
class ZMatrixRow:
    """One Z-matrix row; reference atoms are 1-based indices of earlier rows.

    Row 0 carries only a symbol, row 1 a bond, row 2 a bond and an angle,
    later rows a bond, an angle and a dihedral. Lengths are in Bohr.
    """

    symbol: str
    bond_atom: int | None = None
    bond_length_bohr: float | None = None
    angle_atom: int | None = None
    angle_deg: float | None = None
    dihedral_atom: int | None = None
    dihedral_deg: float | None = None


def _unit(v: np.ndarray) -> np.ndarray:
    return v / np.linalg.norm(v)


def _perpendicular(u: np.ndarray) -> np.ndarray:
    ref = np.array([0.0, 0.0, 1.0])
    if np.linalg.norm(np.cross(u, ref)) < 1e-8:
        ref = np.array([0.0, 1.0, 0.0])
    return _unit(ref - np.dot(ref, u) * u)


@dataclass(frozen=True)
class ZMatrixGeometry:
    """Internal-coordinate geometry, converted on demand by `to_geometry`."""

    rows: tuple[ZMatrixRow, ...] = ()

    @property
    def elements(self) -> tuple[str, ...]:
        return tuple(row.symbol for row in self.rows)

    @property
    def natm(self) -> int:
        return int(len(self.rows))

    def to_geometry(self) -> Geometry:
        """Cartesian coordinates (Bohr).

        Atom 1 sits at the origin, atom 2 on +x and atom 3 in the xz plane;
        later atoms are placed from their bond, angle and dihedral (NeRF).
        """

        coords: list[np.ndarray] = []
        for i, row in enumerate(self.rows):
            if i == 0:
                coords.append(np.zeros(3))
                continue
            c = coords[int(row.bond_atom) - 1]
            r = float(row.bond_length_bohr)
            if i == 1:
                coords.append(c + np.array([r, 0.0, 0.0]))
                continue

            b = coords[int(row.angle_atom) - 1]
            theta = np.deg2rad(float(row.angle_deg))
            u = _unit(b - c)  # bond atom -> angle atom
            if i == 2:
                v = _perpendicular(u)
                coords.append(c + r * (np.cos(theta) * u + np.sin(theta) * v))
                continue

            a = coords[int(row.dihedral_atom) - 1]
            phi = np.deg2rad(float(row.dihedral_deg))
            bc = -u
            n = np.cross(b - a, bc)
            if np.linalg.norm(n) < 1e-8:
                # dihedral undefined for collinear references
                n = np.cross(bc, _perpendicular(bc))
            n = _unit(n)
            m = np.cross(n, bc)
            d = -np.cos(theta) * bc + np.sin(theta) * np.cos(phi) * m + np.sin(theta) * np.sin(phi) * n
            coords.append(c + r * d)

        return Geometry(atoms_bohr=tuple((row.symbol, xyz) for row, xyz in zip(self.rows, coords)))


@dataclass(frozen=True)
class Molecule:
    """Geometry plus the electronic state the initial guess is built for."""

    geometry: Geometry | ZMatrixGeometry
    charge: int = 0
    multiplicity: int = 1  # 2S + 1
    basis: str | None = None

    @classmethod
    def from_atoms(
        cls,
        atoms: Any,
        *,
        unit: str = "Bohr",
        charge: int = 0,
        multiplicity: int = 1,
        basis: str | None = None,
    ) -> "Molecule":
        geometry = Geometry.from_atoms(atoms, unit=unit)
        return cls(geometry=geometry, charge=int(charge), multiplicity=int(multiplicity), basis=basis)

    @property
    def cartesian_geometry(self) -> Geometry:
        geom = self.geometry
        if isinstance(geom, ZMatrixGeometry):
            return geom.to_geometry()
        return geom

    @property
    def nelectron(self) -> int:
        zsum = sum(atomic_number(sym) for sym in self.geometry.elements)
        return int(zsum - int(self.charge))

    @property
    def nalpha_nbeta(self) -> tuple[int, int]:
        """Return (n_alpha, n_beta) implied by charge and multiplicity."""

        nelec = self.nelectron
        if nelec < 0:
            raise ValueError(f"charge {self.charge} leaves a negative electron count")
        if self.multiplicity < 1:
            raise ValueError("multiplicity must be >= 1")
        nunpaired = int(self.multiplicity) - 1
        if (nelec - nunpaired) % 2 != 0:
            raise ValueError(f"multiplicity {self.multiplicity} is incompatible with {nelec} electrons")
        nbeta = (nelec - nunpaired) // 2
        if nbeta < 0:
            raise ValueError(f"multiplicity {self.multiplicity} needs more than {nelec} electrons")
        return nbeta + nunpaired, nbeta

    @property
    def n_alpha(self) -> int:
        return self.nalpha_nbeta[0]

    @property
    def n_beta(self) -> int:
        return self.nalpha_nbeta[1]


__all__ = ["ANGSTROM_TO_BOHR", "Geometry", "Molecule", "ZMatrixGeometry", "ZMatrixRow"]
