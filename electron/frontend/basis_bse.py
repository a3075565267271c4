from __future__ import annotations

"""Basis-set loading via Basis Set Exchange, with an on-disk JSON cache.

Definitions are requested one element at a time in the BSE JSON (QCSchema-like)
format and cached as `<cache_root>/<basis>/<El>.json`. A cached file is reused
as long as it is non-empty, valid JSON; nothing is re-fetched in that case.

Parsed shells always carry a single angular momentum:
- multi-l ("SP") shells become one shell per l, sharing the exponents;
- general contractions (several coefficient vectors for one l) become one
  shell per contraction.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import basis_set_exchange as bse

from .periodic_table import MAX_ATOMIC_NUMBER, element_symbol, normalize_symbol

logger = logging.getLogger(__name__)

DEFAULT_CACHE_ROOT = "data/basis"


def default_cache_root() -> Path:
    """Cache root from `ELECTRON_BASIS_CACHE`, falling back to `data/basis`."""

    return Path(os.environ.get("ELECTRON_BASIS_CACHE", "").strip() or DEFAULT_CACHE_ROOT)


class BasisSetError(Exception):
    """Base class for basis-set fetch and parse failures."""


class BasisFetchError(BasisSetError, RuntimeError):
    """The basis definition could not be obtained."""


class InvalidElementError(BasisFetchError):
    def __init__(self, element: str):
        self.element = element
        super().__init__(f"invalid element: {element!r}")


class InvalidBasisNameError(BasisFetchError):
    def __init__(self, basis_name: str):
        self.basis_name = basis_name
        super().__init__(f"invalid basis set name: {basis_name!r}")


class UnknownBasisSetError(BasisFetchError):
    def __init__(self, basis_name: str):
        self.basis_name = basis_name
        super().__init__(f"unknown basis set: {basis_name!r}")


class ElementNotInBasisSetError(BasisFetchError):
    def __init__(self, element: str, basis_name: str):
        self.element = element
        self.basis_name = basis_name
        super().__init__(f"element {element} not found in basis set {basis_name}")


class BasisCacheError(BasisFetchError):
    """Writing the cache file failed."""


class BasisParseError(BasisSetError, ValueError):
    """The basis definition is malformed.

    `index` is the position of the offending entry in `electron_shells`, or
    None when the failure is not tied to one shell.
    """

    def __init__(self, reason: str, *, index: int | None = None):
        self.reason = reason
        self.index = index
        msg = reason if index is None else f"shell {index}: {reason}"
        super().__init__(msg)


@dataclass(frozen=True)
class ElectronShell:
    """One contracted shell with a single angular momentum."""

    angular_momentum: int
    exponents: tuple[float, ...]
    coefficients: tuple[float, ...]

    def __post_init__(self) -> None:
        if int(self.angular_momentum) < 0:
            raise ValueError("angular_momentum must be >= 0")
        if len(self.exponents) != len(self.coefficients):
            raise ValueError(
                f"{len(self.coefficients)} coefficients for {len(self.exponents)} exponents"
            )

    @property
    def nprim(self) -> int:
        return int(len(self.exponents))


@dataclass(frozen=True)
class BasisSet:
    """Shells of one element, in definition order."""

    element: str
    atomic_number: int
    shells: tuple[ElectronShell, ...]

    @property
    def nshell(self) -> int:
        return int(len(self.shells))


def _as_float(value: Any, *, index: int, what: str) -> float:
    # BSE encodes numbers as strings; plain JSON numbers are accepted too.
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise BasisParseError(f"{what} {value!r} is not a number or numeric string", index=index)
    try:
        return float(value)
    except ValueError as exc:
        raise BasisParseError(f"cannot parse {what} {value!r} as float", index=index) from exc


def _parse_shell(shell: Any, index: int) -> list[ElectronShell]:
    if not isinstance(shell, dict):
        raise BasisParseError("shell is not an object", index=index)

    ams_raw = shell.get("angular_momentum")
    if not isinstance(ams_raw, list):
        raise BasisParseError("missing or invalid angular_momentum", index=index)
    if not ams_raw:
        raise BasisParseError("angular_momentum is empty", index=index)
    ams: list[int] = []
    for am in ams_raw:
        if isinstance(am, bool) or not isinstance(am, int) or am < 0:
            raise BasisParseError(f"angular_momentum entry {am!r} is not a non-negative integer", index=index)
        ams.append(int(am))

    exps_raw = shell.get("exponents")
    if not isinstance(exps_raw, list):
        raise BasisParseError("missing or invalid exponents", index=index)
    exps = tuple(_as_float(x, index=index, what="exponent") for x in exps_raw)
    if not exps:
        raise BasisParseError("exponents is empty", index=index)

    coeff_raw = shell.get("coefficients")
    if not isinstance(coeff_raw, list) or not coeff_raw:
        raise BasisParseError("missing or invalid coefficients", index=index)

    # nL == 1: every coefficient vector is one contraction of that l.
    # nL > 1: one coefficient vector per angular momentum (SP shells).
    if len(ams) == 1:
        ls = [ams[0]] * len(coeff_raw)
    elif len(coeff_raw) == len(ams):
        ls = ams
    else:
        raise BasisParseError(
            f"expected {len(ams)} coefficient vector(s) to match angular_momentum, found {len(coeff_raw)}",
            index=index,
        )

    out: list[ElectronShell] = []
    for l, vec in zip(ls, coeff_raw):
        if not isinstance(vec, list):
            raise BasisParseError("coefficient set is not an array", index=index)
        if len(vec) != len(exps):
            raise BasisParseError(
                f"coefficient vector has {len(vec)} values but there are {len(exps)} exponents",
                index=index,
            )
        coefs = tuple(_as_float(x, index=index, what="coefficient") for x in vec)
        out.append(ElectronShell(angular_momentum=l, exponents=exps, coefficients=coefs))
    return out


def parse_qcschema_basis(data: Any) -> BasisSet:
    """Parse a single-element BSE/QCSchema JSON document into a `BasisSet`."""

    if not isinstance(data, dict):
        raise BasisParseError("basis document is not a JSON object")
    elements = data.get("elements")
    if not isinstance(elements, dict) or not elements:
        raise BasisParseError("elements object is absent or empty")
    if len(elements) != 1:
        raise BasisParseError(f"expected 1 element, found {len(elements)}")

    z_str, element_data = next(iter(elements.items()))
    try:
        Z = int(str(z_str))
    except ValueError:
        Z = 0
    if not 1 <= Z <= MAX_ATOMIC_NUMBER:
        raise BasisParseError(f"invalid atomic number: {z_str!r}")

    shells_raw = element_data.get("electron_shells") if isinstance(element_data, dict) else None
    if not isinstance(shells_raw, list) or not shells_raw:
        raise BasisParseError("no electron shells found")

    shells: list[ElectronShell] = []
    for i, sh in enumerate(shells_raw):
        shells.extend(_parse_shell(sh, i))
    return BasisSet(element=element_symbol(Z), atomic_number=Z, shells=tuple(shells))


def parse_basis(path: str | os.PathLike) -> BasisSet:
    """Read and parse a cached BSE JSON file."""

    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise BasisParseError(f"I/O error: {exc}") from exc
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise BasisParseError(f"invalid JSON: {exc}") from exc
    return parse_qcschema_basis(data)


def _is_valid_cache(path: Path) -> bool:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return False
    if not text:
        return False
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


def _elements_field_is_empty(data: Any) -> bool:
    elements = data.get("elements") if isinstance(data, dict) else None
    if elements is None:
        return True
    if isinstance(elements, (dict, list)):
        return len(elements) == 0
    return False


def cache_path(element: str, basis_name: str, *, cache_root: str | os.PathLike | None = None) -> Path:
    root = default_cache_root() if cache_root is None else Path(cache_root)
    return root / str(basis_name).lower() / f"{normalize_symbol(element)}.json"


def _download_basis(element: str, basis_name: str) -> str:
    try:
        return bse.get_basis(basis_name, elements=[element], fmt="json", header=False)
    except KeyError as exc:
        known = {str(name).lower() for name in bse.get_all_basis_names()}
        if basis_name not in known:
            raise UnknownBasisSetError(basis_name) from exc
        raise ElementNotInBasisSetError(element, basis_name) from exc
    except Exception as exc:
        raise BasisFetchError(f"basis_set_exchange failed for {element}/{basis_name}: {exc}") from exc


def fetch_basis(element: str, basis_name: str, *, cache_root: str | os.PathLike | None = None) -> Path:
    """Make sure `<cache_root>/<basis>/<El>.json` exists and return its path."""

    if not str(basis_name).strip():
        raise InvalidBasisNameError(str(basis_name))
    try:
        element_norm = normalize_symbol(element)
    except ValueError as exc:
        raise InvalidElementError(str(element)) from exc
    basis_norm = str(basis_name).strip().lower()

    path = cache_path(element_norm, basis_norm, cache_root=cache_root)
    if _is_valid_cache(path):
        logger.debug("basis cache hit: %s", path)
        return path

    logger.debug("basis cache miss: %s/%s", basis_norm, element_norm)
    body = _download_basis(element_norm, basis_norm)
    try:
        data = json.loads(body)
    except ValueError as exc:
        raise BasisFetchError(f"invalid response from basis_set_exchange: {exc}") from exc
    if _elements_field_is_empty(data):
        raise ElementNotInBasisSetError(element_norm, basis_norm)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")
    except OSError as exc:
        raise BasisCacheError(f"cannot write basis cache {path}: {exc}") from exc
    logger.debug("basis cached: %s", path)
    return path


def load_basis(element: str, basis_name: str, *, cache_root: str | os.PathLike | None = None) -> BasisSet:
    """Fetch (if needed) and parse the basis definition of one element."""

    return parse_basis(fetch_basis(element, basis_name, cache_root=cache_root))


__all__ = [
    "BasisCacheError",
    "BasisFetchError",
    "BasisParseError",
    "BasisSet",
    "BasisSetError",
    "DEFAULT_CACHE_ROOT",
    "ElectronShell",
    "ElementNotInBasisSetError",
    "InvalidBasisNameError",
    "InvalidElementError",
    "UnknownBasisSetError",
    "cache_path",
    "default_cache_root",
    "fetch_basis",
    "load_basis",
    "parse_basis",
    "parse_qcschema_basis",
]
