"""List the global variables of a firmware image.

    python examples/list_globals.py build/firmware.elf
"""

import sys

from rich.console import Console

from elfvars.core import ElfParser
from elfvars.core.display import results_table

TARGET = sys.argv[1] if len(sys.argv) > 1 else "build/firmware.elf"

parser = ElfParser()
variables = parser.read(TARGET)

Console().print(results_table(variables, title=TARGET))
print(f"{len(variables)} variables")
