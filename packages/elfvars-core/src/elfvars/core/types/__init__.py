from __future__ import annotations

from elfvars.core.types.config import (
    ElfVarsConfig,
    GdbConfig,
    ParserConfig,
    load_config,
)
from elfvars.core.types.state import ParserState, Status
from elfvars.core.types.variables import (
    BaseClassQuery,
    EntryType,
    FileGroup,
    PendingExpansion,
    ResolvedType,
    ResumeCursor,
    StorageKind,
    VariableEntry,
    VariableInfo,
)

__all__ = [
    # config
    "ElfVarsConfig",
    "GdbConfig",
    "ParserConfig",
    "load_config",
    # state
    "ParserState",
    "Status",
    # variables
    "BaseClassQuery",
    "EntryType",
    "FileGroup",
    "PendingExpansion",
    "ResolvedType",
    "ResumeCursor",
    "StorageKind",
    "VariableEntry",
    "VariableInfo",
]
