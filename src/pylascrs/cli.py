"""pylascrs CLI — print the EPSG CRS of lidar files."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pylascrs._version import __version__
from pylascrs.core.errors import BadHorizontalCodeParsed, CrsError


def _format_error(err: CrsError) -> str:
    if isinstance(err, BadHorizontalCodeParsed):
        return f"{err} (found {err.crs})"
    return str(err)


def cmd_info(args: argparse.Namespace) -> int:
    """Show the CRS of a single file."""
    from pylascrs.io.las import read_las_crs

    path = args.file
    if not Path(path).exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1

    try:
        crs = read_las_crs(path)
    except CrsError as err:
        if args.json:
            print(json.dumps({"file": path, "error": err.to_dict()}))
        else:
            print(f"Error: {_format_error(err)}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps({
            "file": path,
            "horizontal": crs.horizontal,
            "vertical": crs.vertical,
        }))
        return 0

    print(f"File: {path}")
    print(f"Horizontal: EPSG:{crs.horizontal}")
    if crs.vertical is not None:
        print(f"Vertical: EPSG:{crs.vertical}")
    else:
        print("Vertical: -")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Check the CRS of several files, one line per file."""
    from pylascrs.io.las import read_las_crs

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    lookup = None
    if args.registry:
        from pylascrs.utils.crs import is_registered_epsg, unregistered_codes

        lookup = is_registered_epsg

    failures = 0
    for path in args.files:
        if not Path(path).exists():
            print(f"{path}: file not found")
            failures += 1
            continue
        try:
            crs = read_las_crs(path)
        except CrsError as err:
            print(f"{path}: {_format_error(err)}")
            failures += 1
            continue

        if lookup is not None:
            unknown = unregistered_codes(crs, lookup)
            if unknown:
                codes = ", ".join(str(c) for c in unknown)
                print(f"{path}: {crs} (not in EPSG registry: {codes})")
                failures += 1
                continue

        print(f"{path}: {crs}")

    return 1 if failures else 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="pylascrs",
        description="pylascrs — EPSG codes from lidar CRS records",
    )
    parser.add_argument(
        "--version", action="version", version=f"pylascrs {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # info
    info_parser = subparsers.add_parser("info", help="Show the CRS of a file")
    info_parser.add_argument("file", help="LAS/LAZ file path")
    info_parser.add_argument("--json", action="store_true", help="JSON output")

    # check
    check_parser = subparsers.add_parser("check", help="Check the CRS of many files")
    check_parser.add_argument("files", nargs="+", help="LAS/LAZ file paths")
    check_parser.add_argument(
        "--registry", action="store_true",
        help="Also look codes up in the PROJ EPSG database",
    )
    check_parser.add_argument("-v", "--verbose", action="store_true")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "check": cmd_check,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
