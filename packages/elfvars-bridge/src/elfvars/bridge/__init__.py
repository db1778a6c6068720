"""elfvars.bridge -- GDB subprocess plumbing.

This package owns everything that touches the debugger's text stream:
locating and spawning GDB, writing command lines, slicing its output into
prompt-terminated replies and building the command templates.

Example::

    from elfvars.bridge import GdbProcess, ResponseFramer

    gdb = GdbProcess()
    await gdb.start("/path/to/firmware.elf")
    framer = ResponseFramer()
    await gdb.pump(lambda chunk: print(framer.feed(chunk)))
"""

from __future__ import annotations

from .commands import (
    BATCH_TERMINATORS,
    INFO_VARIABLES,
    QUIT,
    SET_PRINT_METHODS_OFF,
    SET_PRINT_TYPEDEFS_OFF,
    address_of,
    describe_type,
    format_batch,
    format_command,
    query,
    size_of,
)
from .debugger import GdbProcess, default_candidates, locate_gdb
from .framing import GDB_PROMPT, ResponseFramer
from .types import GdbError, QueryKind, ResponseFrame

__all__ = [
    # Process
    "GdbProcess",
    "locate_gdb",
    "default_candidates",
    # Framing
    "GDB_PROMPT",
    "ResponseFramer",
    # Types
    "GdbError",
    "QueryKind",
    "ResponseFrame",
    # Commands
    "SET_PRINT_METHODS_OFF",
    "SET_PRINT_TYPEDEFS_OFF",
    "INFO_VARIABLES",
    "QUIT",
    "BATCH_TERMINATORS",
    "describe_type",
    "size_of",
    "address_of",
    "query",
    "format_command",
    "format_batch",
]
