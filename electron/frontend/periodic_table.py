from __future__ import annotations

"""Periodic table helpers (symbol <-> atomic number, symbol normalization)."""


# 1-indexed element symbols through Og (118).
_SYMBOLS: tuple[str | None, ...] = (
    None,
    "H", "He", "Li", "Be", "B", "C", "N", "O", "F", "Ne",
    "Na", "Mg", "Al", "Si", "P", "S", "Cl", "Ar", "K", "Ca",
    "Sc", "Ti", "V", "Cr", "Mn", "Fe", "Co", "Ni", "Cu", "Zn",
    "Ga", "Ge", "As", "Se", "Br", "Kr", "Rb", "Sr", "Y", "Zr",
    "Nb", "Mo", "Tc", "Ru", "Rh", "Pd", "Ag", "Cd", "In", "Sn",
    "Sb", "Te", "I", "Xe", "Cs", "Ba", "La", "Ce", "Pr", "Nd",
    "Pm", "Sm", "Eu", "Gd", "Tb", "Dy", "Ho", "Er", "Tm", "Yb",
    "Lu", "Hf", "Ta", "W", "Re", "Os", "Ir", "Pt", "Au", "Hg",
    "Tl", "Pb", "Bi", "Po", "At", "Rn", "Fr", "Ra", "Ac", "Th",
    "Pa", "U", "Np", "Pu", "Am", "Cm", "Bk", "Cf", "Es", "Fm",
    "Md", "No", "Lr", "Rf", "Db", "Sg", "Bh", "Hs", "Mt", "Ds",
    "Rg", "Cn", "Nh", "Fl", "Mc", "Lv", "Ts", "Og",
)

_SYMBOL_TO_Z = {s.upper(): i for i, s in enumerate(_SYMBOLS) if s is not None}

MAX_ATOMIC_NUMBER = len(_SYMBOLS) - 1


def atomic_number(symbol: str) -> int:
    sym = str(symbol).strip()
    if not sym:
        raise ValueError("empty element symbol")
    try:
        return int(_SYMBOL_TO_Z[sym.upper()])
    except KeyError as exc:
        raise ValueError(f"unknown element symbol: {symbol!r}") from exc


def element_symbol(Z: int) -> str:
    Z = int(Z)
    if Z <= 0 or Z > MAX_ATOMIC_NUMBER:
        raise ValueError(f"invalid atomic number: {Z}")
    return str(_SYMBOLS[Z])


def normalize_symbol(symbol: str) -> str:
    """Return the canonical title-case symbol ("he" -> "He", "CL" -> "Cl")."""

    return element_symbol(atomic_number(symbol))


__all__ = ["MAX_ATOMIC_NUMBER", "atomic_number", "element_symbol", "normalize_symbol"]
