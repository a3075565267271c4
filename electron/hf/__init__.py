"""Hartree-Fock building blocks that operate on already-built AO integrals.

Only the core-Hamiltonian initial guess lives here; integral evaluation and
SCF iteration are done by the caller.
"""

from __future__ import annotations

from .guess import (
    DimensionMismatchError,
    GuessError,
    SingularOverlapError,
    TooManyElectronsError,
    guess_hcore,
    initial_density,
)

__all__ = [
    "DimensionMismatchError",
    "GuessError",
    "SingularOverlapError",
    "TooManyElectronsError",
    "guess_hcore",
    "initial_density",
]
