"""Async API: parse several images concurrently with progress reporting.

Each AsyncElfParser runs one GDB at a time, so concurrent parses use one
parser per file.
"""

import asyncio
import sys

from elfvars.core import AsyncElfParser, Status

TARGETS = sys.argv[1:] or ["build/app.elf", "build/bootloader.elf"]


async def parse_one(path: str):
    parser = AsyncElfParser()
    done = asyncio.Event()
    results = []

    def on_result(variables):
        results.extend(variables)
        done.set()

    def on_progress(value: int):
        print(f"  {path}: {value}%")

    status = parser.parse(path, on_result, on_progress=on_progress)
    if status is not Status.OK:
        print(f"{path}: {status.value}")
        return path, []
    await done.wait()
    return path, results


async def main():
    for path, variables in await asyncio.gather(*(parse_one(t) for t in TARGETS)):
        print(f"\n{path}: {len(variables)} variables")
        for variable in variables[:10]:
            print(f"  {variable.address}  {variable.name}")


if __name__ == "__main__":
    asyncio.run(main())
