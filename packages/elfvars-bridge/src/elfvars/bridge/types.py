"""Bridge-level types for the GDB text protocol.

Provides the enums, dataclasses and errors shared by the process wrapper,
the response framer and the command templates.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class GdbError(RuntimeError):
    """Raised when the debugger process cannot be started or written to."""


class QueryKind(Enum):
    """Information requested from GDB for one identifier."""

    TYPE = "type"
    SIZE = "size"
    ADDRESS = "address"


@dataclass(frozen=True)
class ResponseFrame:
    """One complete GDB reply, terminated by the prompt sentinel.

    ``raw`` keeps the reply exactly as received (prompt included) while
    ``body`` is the reply text without the trailing prompt, stripped.
    """

    raw: str
    body: str
