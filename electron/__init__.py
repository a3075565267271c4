"""electron: Cartesian AO basis construction and core-Hamiltonian initial guess."""

from importlib.metadata import PackageNotFoundError, version as _dist_version

from electron.frontend import (
    AoBasis,
    BasisLoadError,
    BasisSet,
    ElectronShell,
    Geometry,
    InputError,
    Molecule,
    SimulationInput,
    build_ao_basis,
    init_basis,
    init_molecule_basis,
    load_basis,
    parse_input,
)
from electron.hf import (
    DimensionMismatchError,
    GuessError,
    SingularOverlapError,
    TooManyElectronsError,
    guess_hcore,
    initial_density,
)

try:
    __version__ = _dist_version("electron")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0"

__all__ = [
    "__version__",
    # AO basis
    "AoBasis",
    "BasisLoadError",
    "BasisSet",
    "ElectronShell",
    "Geometry",
    "Molecule",
    "build_ao_basis",
    "init_basis",
    "init_molecule_basis",
    "load_basis",
    # Input files
    "InputError",
    "SimulationInput",
    "parse_input",
    # Initial guess
    "DimensionMismatchError",
    "GuessError",
    "SingularOverlapError",
    "TooManyElectronsError",
    "guess_hcore",
    "initial_density",
]
