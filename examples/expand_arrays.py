"""Expand arrays into one entry per element.

Without expansion an array ``samples[8]`` is reported once, as
``samples[0]``.  With ``expand_arrays=True`` every element gets its own
name and address, which is what a live-watch tool needs to poll a single
element.  Arrays longer than 10000 elements are truncated.
"""

import sys
from collections import Counter

from elfvars.core import ElfParser, StorageKind

TARGET = sys.argv[1] if len(sys.argv) > 1 else "build/firmware.elf"

parser = ElfParser()
compact = parser.read(TARGET)
expanded = parser.read(TARGET, expand_arrays=True)

print(f"compact:  {len(compact)} entries")
print(f"expanded: {len(expanded)} entries\n")

kinds = Counter(StorageKind(variable.type).name for variable in expanded)
for kind, count in kinds.most_common():
    print(f"  {kind:<12} {count}")
