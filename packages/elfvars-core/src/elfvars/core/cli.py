"""Command line entry point: ``elfvars FILE``."""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List, Optional

from rich.console import Console

from elfvars.core.display import ProgressDisplay, results_table
from elfvars.core.elfparser import ElfParser
from elfvars.core.types.config import load_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="elfvars",
        description="List the global variables of an ELF file with their address and storage type.",
    )
    parser.add_argument("file", help="ELF file to parse")
    parser.add_argument(
        "--expand-arrays",
        action="store_true",
        help="List every array element instead of element 0 only",
    )
    parser.add_argument("--config", default=None, help="Path to an elfvars.toml file")
    parser.add_argument("--gdb", default=None, help="GDB executable to use")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    err = Console(stderr=True)

    if not os.path.exists(args.file):
        err.print(f"[red]File not found:[/red] {args.file}")
        return 1

    config = load_config(args.config)
    if args.verbose:
        config.verbose = True
    parser = ElfParser(config=config, gdb_path=args.gdb)

    with ProgressDisplay(err) as display:
        results = parser.read(
            args.file,
            expand_arrays=True if args.expand_arrays else None,
            on_progress=display.update,
        )

    if args.json:
        json.dump([info.model_dump() for info in results], sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        Console().print(results_table(results, title=os.path.basename(args.file)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
