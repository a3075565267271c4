from __future__ import annotations

"""YAML simulation input files.

A file has four top-level blocks::

    driver: energy | gradient | hessian | md
    molecule:
      symbols: [O, H, H]              # Cartesian ...
      geometry: [x0, y0, z0, x1, ...]
      # ... or z_matrix: [{symbol: O}, {symbol: H, bond_atom: 1, bond_length: 0.96}, ...]
      units: angstrom | bohr          # default angstrom
      charge: 0
      multiplicity: 1
    model:
      method: hf
      basis: sto-3g
    keywords:                         # required (and only read) for driver: md
      timestep_fs: 0.5
      n_steps: 100
      temperature_k: 300.0            # default 0
      thermostat: none | velocity_rescaling

Everything is validated up front; lengths are stored in Bohr.
"""

import logging
import os
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

import numpy as np
import yaml

from .molecule import ANGSTROM_TO_BOHR, Geometry, Molecule, ZMatrixGeometry, ZMatrixRow
from .periodic_table import normalize_symbol

logger = logging.getLogger(__name__)

DRIVERS = ("energy", "gradient", "hessian", "md")
THERMOSTATS = ("none", "velocity_rescaling")
_TOP_LEVEL_KEYS = ("driver", "molecule", "model", "keywords")


class InputError(ValueError):
    """Base class for simulation-input failures."""


class InputIOError(InputError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"I/O error: {reason}")


class InvalidYamlError(InputError):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"invalid YAML: {reason}")


class MissingFieldError(InputError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"missing required field: {field}")


class InvalidValueError(InputError):
    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"invalid value for {field}: {reason}")


class AmbiguousGeometryError(InputError):
    def __init__(self):
        super().__init__("molecule block contains both Cartesian and Z-matrix keys")


class CoordinateMismatchError(InputError):
    def __init__(self, n_symbols: int, n_coords: int):
        self.n_symbols = n_symbols
        self.n_coords = n_coords
        super().__init__(
            f"geometry has {n_coords} coordinates but expected {3 * n_symbols} (3 x {n_symbols})"
        )


class UnknownElementError(InputError):
    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"unknown element symbol: {symbol!r}")


class InvalidZMatrixError(InputError):
    """`row` is the 0-based position in `z_matrix`."""

    def __init__(self, row: int, reason: str):
        self.row = row
        self.reason = reason
        super().__init__(f"invalid z_matrix row {row}: {reason}")


class UnknownFieldError(InputError):
    def __init__(self, field: str):
        self.field = field
        super().__init__(f"unknown top-level field: {field!r}")


@dataclass(frozen=True)
class Model:
    method: str
    basis: str


@dataclass(frozen=True)
class MdKeywords:
    timestep_fs: float
    n_steps: int
    temperature_k: float = 0.0
    thermostat: str = "none"


@dataclass(frozen=True)
class SimulationInput:
    driver: str
    molecule: Molecule
    model: Model
    keywords: MdKeywords | None = None  # set only for driver == "md"

    @property
    def natm(self) -> int:
        return self.molecule.geometry.natm


class _InputLoader(yaml.SafeLoader):
    """SafeLoader with YAML 1.2 booleans, so `No`, `on` or `off` stay strings."""


_BOOL_TAG = "tag:yaml.org,2002:bool"
_InputLoader.yaml_implicit_resolvers = {
    first: [(tag, rx) for tag, rx in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_InputLoader.add_implicit_resolver(_BOOL_TAG, re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"), list("tTfF"))


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _symbol(sym: str) -> str:
    try:
        return normalize_symbol(sym)
    except ValueError as exc:
        raise UnknownElementError(sym) from exc


def _parse_driver(data: Mapping[str, Any]) -> str:
    if "driver" not in data:
        raise MissingFieldError("driver")
    driver = data["driver"]
    if not isinstance(driver, str):
        raise InvalidValueError("driver", "expected a string")
    if driver not in DRIVERS:
        raise InvalidValueError("driver", f"unrecognised driver {driver!r}")
    return driver


def _parse_units(mol: Mapping[str, Any]) -> float:
    if "units" not in mol:
        return ANGSTROM_TO_BOHR
    units = mol["units"]
    if not isinstance(units, str):
        raise InvalidValueError("molecule.units", "expected a string")
    if units == "angstrom":
        return ANGSTROM_TO_BOHR
    if units == "bohr":
        return 1.0
    raise InvalidValueError("molecule.units", f"unrecognised units {units!r}")


def _parse_cartesian(mol: Mapping[str, Any], factor: float) -> Geometry:
    symbols_raw = mol["symbols"]
    if not isinstance(symbols_raw, list):
        raise InvalidValueError("molecule.symbols", "expected a sequence")
    symbols: list[str] = []
    for sym in symbols_raw:
        if not isinstance(sym, str):
            raise InvalidValueError("molecule.symbols", "element symbols must be strings")
        symbols.append(_symbol(sym))

    coords = mol["geometry"]
    if not isinstance(coords, list):
        raise InvalidValueError("molecule.geometry", "expected a sequence")
    if len(coords) != 3 * len(symbols):
        raise CoordinateMismatchError(len(symbols), len(coords))
    if not all(_is_number(x) for x in coords):
        raise InvalidValueError("molecule.geometry", "coordinates must be numbers")

    xyz = np.asarray(coords, dtype=np.float64).reshape((-1, 3)) * factor
    return Geometry(atoms_bohr=tuple((sym, xyz[i].copy()) for i, sym in enumerate(symbols)))


# fields each row index may (and must) carry
_ZMAT_FIELDS = {
    0: (),
    1: ("bond_atom", "bond_length"),
    2: ("bond_atom", "bond_length", "angle_atom", "angle"),
}
_ZMAT_FULL = ("bond_atom", "bond_length", "angle_atom", "angle", "dihedral_atom", "dihedral")


def _zmat_ref(row: Mapping[str, Any], field: str, i: int) -> int:
    idx = row[field]
    if not _is_int(idx):
        raise InvalidZMatrixError(i, f"{field!r} must be a positive integer")
    if idx <= 0 or idx > i:
        raise InvalidZMatrixError(i, f"{field!r} = {idx} is out of range; must be 1 to {i}")
    return int(idx)


def _zmat_number(row: Mapping[str, Any], field: str, i: int) -> float:
    val = row[field]
    if not _is_number(val):
        raise InvalidZMatrixError(i, f"{field!r} must be a number")
    return float(val)


def _parse_zmatrix_row(row: Any, i: int, factor: float) -> ZMatrixRow:
    if not isinstance(row, dict):
        raise InvalidZMatrixError(i, "each z_matrix entry must be a mapping")
    if "symbol" not in row:
        raise InvalidZMatrixError(i, "missing required field 'symbol'")
    if not isinstance(row["symbol"], str):
        raise InvalidZMatrixError(i, "'symbol' must be a string")
    symbol = _symbol(row["symbol"])

    allowed = _ZMAT_FIELDS.get(i, _ZMAT_FULL)
    extra = [f for f in _ZMAT_FULL if f in row and f not in allowed]
    if extra:
        if i == 0:
            raise InvalidZMatrixError(0, "row 0 must only contain 'symbol'")
        if i == 1:
            raise InvalidZMatrixError(1, "row 1 must not contain angle or dihedral fields")
        raise InvalidZMatrixError(2, "row 2 must not contain dihedral fields")
    for field in allowed:
        if field not in row:
            raise InvalidZMatrixError(i, f"missing required field {field!r}")
    if i == 0:
        return ZMatrixRow(symbol=symbol)

    bond_atom = _zmat_ref(row, "bond_atom", i)
    bond_length = _zmat_number(row, "bond_length", i)
    if bond_length <= 0.0:
        raise InvalidZMatrixError(i, f"'bond_length' must be > 0, got {bond_length}")
    if i == 1:
        return ZMatrixRow(symbol=symbol, bond_atom=bond_atom, bond_length_bohr=bond_length * factor)

    angle_atom = _zmat_ref(row, "angle_atom", i)
    angle = _zmat_number(row, "angle", i)
    if not 0.0 < angle < 180.0:
        raise InvalidZMatrixError(i, f"'angle' must satisfy 0 < angle < 180, got {angle}")
    dihedral_atom = dihedral = None
    if i >= 3:
        dihedral_atom = _zmat_ref(row, "dihedral_atom", i)
        dihedral = _zmat_number(row, "dihedral", i)
        if not -180.0 <= dihedral <= 180.0:
            raise InvalidZMatrixError(i, f"'dihedral' must satisfy -180 <= dihedral <= 180, got {dihedral}")

    if bond_atom == angle_atom:
        raise InvalidZMatrixError(i, f"bond_atom ({bond_atom}) and angle_atom ({angle_atom}) must be distinct")
    if dihedral_atom is not None:
        if bond_atom == dihedral_atom:
            raise InvalidZMatrixError(
                i, f"bond_atom ({bond_atom}) and dihedral_atom ({dihedral_atom}) must be distinct"
            )
        if angle_atom == dihedral_atom:
            raise InvalidZMatrixError(
                i, f"angle_atom ({angle_atom}) and dihedral_atom ({dihedral_atom}) must be distinct"
            )

    return ZMatrixRow(
        symbol=symbol,
        bond_atom=bond_atom,
        bond_length_bohr=bond_length * factor,
        angle_atom=angle_atom,
        angle_deg=angle,
        dihedral_atom=dihedral_atom,
        dihedral_deg=dihedral,
    )


def _parse_zmatrix(mol: Mapping[str, Any], factor: float) -> ZMatrixGeometry:
    rows = mol["z_matrix"]
    if not isinstance(rows, list):
        raise InvalidValueError("molecule.z_matrix", "expected a sequence")
    if not rows:
        raise MissingFieldError("molecule.z_matrix")
    return ZMatrixGeometry(rows=tuple(_parse_zmatrix_row(row, i, factor) for i, row in enumerate(rows)))


def _parse_molecule(data: Mapping[str, Any]) -> Molecule:
    if "molecule" not in data:
        raise MissingFieldError("molecule")
    mol = data["molecule"]
    if not isinstance(mol, dict):
        raise InvalidValueError("molecule", "expected a mapping")

    charge = mol.get("charge", 0)
    if not _is_int(charge):
        raise InvalidValueError("molecule.charge", "expected an integer")
    multiplicity = mol.get("multiplicity", 1)
    if not _is_int(multiplicity):
        raise InvalidValueError("molecule.multiplicity", "expected an integer")
    if multiplicity < 1:
        raise InvalidValueError("molecule.multiplicity", f"must be >= 1, got {multiplicity}")

    factor = _parse_units(mol)

    has_symbols = "symbols" in mol
    has_geometry = "geometry" in mol
    if "z_matrix" in mol:
        if has_symbols or has_geometry:
            raise AmbiguousGeometryError()
        geometry: Geometry | ZMatrixGeometry = _parse_zmatrix(mol, factor)
    elif has_symbols and has_geometry:
        geometry = _parse_cartesian(mol, factor)
    elif has_geometry:
        raise MissingFieldError("molecule.symbols")
    else:
        raise MissingFieldError("molecule.geometry")

    return Molecule(geometry=geometry, charge=int(charge), multiplicity=int(multiplicity))


def _required_string(block: Mapping[str, Any], key: str, field: str) -> str:
    if key not in block:
        raise MissingFieldError(field)
    val = block[key]
    if not isinstance(val, str):
        raise InvalidValueError(field, "expected a string")
    if not val:
        raise InvalidValueError(field, "must not be empty")
    return val


def _parse_model(data: Mapping[str, Any]) -> Model:
    if "model" not in data:
        raise MissingFieldError("model")
    model = data["model"]
    if not isinstance(model, dict):
        raise InvalidValueError("model", "expected a mapping")
    method = _required_string(model, "method", "model.method")
    basis = _required_string(model, "basis", "model.basis")
    return Model(method=method, basis=basis)


def _parse_keywords(kw: Any) -> MdKeywords:
    if not isinstance(kw, dict):
        raise InvalidValueError("keywords", "expected a mapping")

    if "timestep_fs" not in kw:
        raise MissingFieldError("keywords.timestep_fs")
    timestep = kw["timestep_fs"]
    if not _is_number(timestep):
        raise InvalidValueError("keywords.timestep_fs", "expected a number")
    if timestep <= 0:
        raise InvalidValueError("keywords.timestep_fs", f"must be > 0, got {timestep}")

    if "n_steps" not in kw:
        raise MissingFieldError("keywords.n_steps")
    n_steps = kw["n_steps"]
    if not _is_int(n_steps):
        raise InvalidValueError("keywords.n_steps", "expected an integer")
    if n_steps <= 0:
        raise InvalidValueError("keywords.n_steps", f"must be > 0, got {n_steps}")

    temperature = kw.get("temperature_k", 0.0)
    if not _is_number(temperature):
        raise InvalidValueError("keywords.temperature_k", "expected a number")
    if temperature < 0:
        raise InvalidValueError("keywords.temperature_k", f"must be >= 0, got {temperature}")

    thermostat = kw.get("thermostat", "none")
    if not isinstance(thermostat, str):
        raise InvalidValueError("keywords.thermostat", "expected a string")
    if thermostat not in THERMOSTATS:
        raise InvalidValueError("keywords.thermostat", f"unrecognised thermostat {thermostat!r}")

    return MdKeywords(
        timestep_fs=float(timestep),
        n_steps=int(n_steps),
        temperature_k=float(temperature),
        thermostat=thermostat,
    )


def parse_input_text(text: str) -> SimulationInput:
    """Parse and validate a YAML simulation input given as a string."""

    try:
        data = yaml.load(text, Loader=_InputLoader)
    except yaml.YAMLError as exc:
        raise InvalidYamlError(str(exc)) from exc
    if not isinstance(data, dict):
        raise InvalidYamlError("expected a mapping at top level")

    for key in data:
        if key not in _TOP_LEVEL_KEYS:
            raise UnknownFieldError(str(key))

    driver = _parse_driver(data)
    molecule = _parse_molecule(data)
    model = _parse_model(data)
    molecule = replace(molecule, basis=model.basis)

    keywords = None
    if driver == "md":
        if "keywords" not in data:
            raise MissingFieldError("keywords")
        keywords = _parse_keywords(data["keywords"])

    return SimulationInput(driver=driver, molecule=molecule, model=model, keywords=keywords)


def parse_input(path: str | os.PathLike) -> SimulationInput:
    """Read and validate the simulation input file at `path`."""

    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise InputIOError(str(path), str(exc)) from exc
    sim = parse_input_text(text)
    logger.debug("parsed %s: driver=%s, atoms=%d", path, sim.driver, sim.natm)
    return sim


__all__ = [
    "AmbiguousGeometryError",
    "CoordinateMismatchError",
    "DRIVERS",
    "InputError",
    "InputIOError",
    "InvalidValueError",
    "InvalidYamlError",
    "InvalidZMatrixError",
    "MdKeywords",
    "MissingFieldError",
    "Model",
    "SimulationInput",
    "THERMOSTATS",
    "UnknownElementError",
    "UnknownFieldError",
    "parse_input",
    "parse_input_text",
]
