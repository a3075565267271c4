from __future__ import annotations

"""`electron <input-file>`: validate a simulation input file and report what it asks for."""

import argparse
import logging
import sys

from electron.frontend.input import InputError, SimulationInput, parse_input


def parsed_line(sim: SimulationInput) -> str:
    return f"Parsed: driver={sim.driver}, method={sim.model.method}, basis={sim.model.basis}, atoms={sim.natm}"


def run(argv: list[str] | None = None) -> str:
    ap = argparse.ArgumentParser(prog="electron", description="Parse and validate a YAML simulation input file.")
    ap.add_argument("input", help="Path to the YAML input file")
    ap.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return parsed_line(parse_input(args.input))


def main(argv: list[str] | None = None) -> int:
    try:
        out = run(argv)
    except InputError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(out)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
