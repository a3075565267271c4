from __future__ import annotations

from functools import lru_cache


def ncart(l: int) -> int:
    """Number of Cartesian components for angular momentum `l`.

    Counts the `(lx, ly, lz)` tuples with `lx + ly + lz = l`, i.e.
    `(l + 1) * (l + 2) / 2`.
    """
    l = int(l)
    if l < 0:
        raise ValueError("l must be >= 0")
    return (l + 1) * (l + 2) // 2


@lru_cache(maxsize=None)
def cartesian_components(l: int) -> tuple[tuple[int, int, int], ...]:
    """Cartesian exponent tuples `(lx, ly, lz)` for angular momentum `l`.

    The components are ordered by decreasing `lx`, then decreasing `ly`
    (`lz` is whatever is left). This is the ordering every `AoBasis` uses
    inside a shell, so integral code indexing an `AoBasis` must follow it.

    Example for l=1 (p): `(1,0,0), (0,1,0), (0,0,1)`.
    Example for l=2 (d): `(2,0,0), (1,1,0), (1,0,1), (0,2,0), (0,1,1), (0,0,2)`.

    Parameters
    ----------
    l : int
        The angular momentum quantum number (l >= 0).

    Returns
    -------
    tuple[tuple[int, int, int], ...]
        `ncart(l)` components.
    """
    l = int(l)
    if l < 0:
        raise ValueError("l must be >= 0")
    out: list[tuple[int, int, int]] = []
    for lx in range(l, -1, -1):
        for ly in range(l - lx, -1, -1):
            out.append((lx, ly, l - lx - ly))
    return tuple(out)


def cart_comp_str(lx: int, ly: int, lz: int) -> str:
    """Label for a Cartesian component, e.g. `(1, 1, 0)` -> "xy", `(0, 0, 0)` -> ""."""

    if lx < 0 or ly < 0 or lz < 0:
        raise ValueError("lx/ly/lz must be >= 0")
    return ("x" * lx) + ("y" * ly) + ("z" * lz)


_SHELL_LETTERS = "spdfghiklmnoqrtuvwxyz"


def shell_letter(l: int) -> str:
    """Spectroscopic letter for angular momentum `l` (s, p, d, f, g, ...)."""

    l = int(l)
    if l < 0:
        raise ValueError("l must be >= 0")
    if l >= len(_SHELL_LETTERS):
        return f"l={l}"
    return _SHELL_LETTERS[l]


__all__ = ["cart_comp_str", "cartesian_components", "ncart", "shell_letter"]
