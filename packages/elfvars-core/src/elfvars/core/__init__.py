"""elfvars.core -- decoding, orchestration and public entry points.

Example::

    from elfvars.core import ElfParser

    for variable in ElfParser().read("firmware.elf", expand_arrays=True):
        print(variable.name, variable.address, variable.type)
"""

from __future__ import annotations

from elfvars.core.elfparser import AsyncElfParser, ElfParser
from elfvars.core.events import ProgressCallback, ProgressTracker, ResultCallback
from elfvars.core.session import ParseSession
from elfvars.core.types.config import ElfVarsConfig, load_config
from elfvars.core.types.state import ParserState, Status
from elfvars.core.types.variables import StorageKind, VariableInfo

__all__ = [
    "AsyncElfParser",
    "ElfParser",
    "ElfVarsConfig",
    "load_config",
    "ParseSession",
    "ParserState",
    "ProgressCallback",
    "ProgressTracker",
    "ResultCallback",
    "Status",
    "StorageKind",
    "VariableInfo",
]
