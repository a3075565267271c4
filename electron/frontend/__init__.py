from __future__ import annotations

"""Front-end building blocks: input files, geometry, basis-set loading and AO basis packing."""

from .basis_bse import (
    BasisCacheError,
    BasisFetchError,
    BasisParseError,
    BasisSet,
    BasisSetError,
    ElectronShell,
    ElementNotInBasisSetError,
    InvalidBasisNameError,
    InvalidElementError,
    UnknownBasisSetError,
    fetch_basis,
    load_basis,
    parse_basis,
    parse_qcschema_basis,
)
from .basis_packer import AoBasis, BasisLoadError, build_ao_basis, init_basis, init_molecule_basis, pack_ao_basis
from .input import InputError, MdKeywords, Model, SimulationInput, parse_input, parse_input_text
from .molecule import Geometry, Molecule, ZMatrixGeometry, ZMatrixRow

__all__ = [
    "AoBasis",
    "BasisCacheError",
    "BasisFetchError",
    "BasisLoadError",
    "BasisParseError",
    "BasisSet",
    "BasisSetError",
    "ElectronShell",
    "ElementNotInBasisSetError",
    "Geometry",
    "InputError",
    "InvalidBasisNameError",
    "InvalidElementError",
    "MdKeywords",
    "Model",
    "Molecule",
    "SimulationInput",
    "UnknownBasisSetError",
    "ZMatrixGeometry",
    "ZMatrixRow",
    "build_ao_basis",
    "fetch_basis",
    "init_basis",
    "init_molecule_basis",
    "load_basis",
    "pack_ao_basis",
    "parse_basis",
    "parse_input",
    "parse_input_text",
    "parse_qcschema_basis",
]
