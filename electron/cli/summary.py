from __future__ import annotations

"""`electron-basis`: build the AO basis of a geometry and print a summary."""

import argparse
import logging
import sys

from electron.cart import cart_comp_str, shell_letter
from electron.frontend.basis_packer import AoBasis, init_molecule_basis
from electron.frontend.input import parse_input
from electron.frontend.molecule import Geometry, Molecule

logger = logging.getLogger(__name__)


def summary_line(ao: AoBasis, *, basis_name: str, natm: int) -> str:
    return (
        f"AO basis: basis={basis_name}, atoms={natm}, shells={ao.n_shells}, "
        f"functions={ao.n_basis}, primitives={ao.n_prim}"
    )


def function_labels(ao: AoBasis, geometry: Geometry) -> list[str]:
    """One label per basis function, e.g. "3 O1 p x"."""

    labels: list[str] = []
    for i in range(int(ao.n_basis)):
        ia = int(ao.atom_index[i])
        l = int(ao.shell_l[int(ao.shell_index[i])])
        comp = cart_comp_str(int(ao.lx[i]), int(ao.ly[i]), int(ao.lz[i]))
        label = f"{i} {geometry.elements[ia]}{ia + 1} {shell_letter(l)}"
        labels.append(f"{label} {comp}" if comp else label)
    return labels


def run(argv: list[str] | None = None) -> str:
    ap = argparse.ArgumentParser(prog="electron-basis", description="Build a Cartesian AO basis and summarize it.")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--atoms", help="Geometry as 'El x y z; El x y z; ...'")
    src.add_argument("--input", help="YAML simulation input file; its model.basis is the default basis")
    ap.add_argument("--basis", default=None, help="Basis set name (e.g. sto-3g); required with --atoms")
    ap.add_argument("--unit", default="Bohr", help="Coordinate unit: Bohr (default) or Angstrom")
    ap.add_argument("--cache-dir", default=None, help="Basis cache root (default: ELECTRON_BASIS_CACHE or data/basis)")
    ap.add_argument("--list", action="store_true", help="Also list every basis function")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.input is not None:
        molecule = parse_input(args.input).molecule
    else:
        if args.basis is None:
            ap.error("--basis is required with --atoms")
        molecule = Molecule.from_atoms(args.atoms, unit=args.unit)
    basis_name = args.basis if args.basis is not None else molecule.basis
    geometry = molecule.cartesian_geometry

    logger.debug("building AO basis for %d atoms in %s", geometry.natm, basis_name)
    ao = init_molecule_basis(molecule, args.basis, cache_root=args.cache_dir)

    lines = [summary_line(ao, basis_name=str(basis_name).lower(), natm=geometry.natm)]
    if args.list:
        lines.extend(function_labels(ao, geometry))
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    try:
        out = run(argv)
    except (ValueError, KeyError, RuntimeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(out)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
