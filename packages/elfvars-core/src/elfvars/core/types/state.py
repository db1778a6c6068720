from __future__ import annotations

from enum import Enum


class ParserState(Enum):
    """Protocol state of a parse session.

    Each state names the reply the session is waiting for.
    """

    IDLE = "idle"
    STARTING = "starting"
    DISABLE_METHOD_PRINTING = "disable_method_printing"
    DISABLE_TYPEDEF_PRINTING = "disable_typedef_printing"
    LIST_VARIABLES = "list_variables"
    RESOLVE_TYPES = "resolve_types"
    RESOLVE_SIZES = "resolve_sizes"
    RESOLVE_ADDRESSES = "resolve_addresses"


class Status(Enum):
    """Outcome of a request to start parsing a file."""

    OK = "ok"
    FILE_NOT_FOUND = "file_not_found"
    ALREADY_RUNNING = "already_running"
