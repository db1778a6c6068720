"""Callback types and progress accounting for parse sessions."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from elfvars.core.types.state import ParserState
from elfvars.core.types.variables import VariableInfo

logger = logging.getLogger(__name__)

ResultCallback = Callable[[List[VariableInfo]], None]
ProgressCallback = Callable[[int], None]

PROGRESS_LISTED = 10
PROGRESS_TYPES = 25
PROGRESS_SIZES = 50
PROGRESS_ADDRESSES = 75
PROGRESS_DONE = 100

_PHASE_SPAN = 25


def progress_for(state: ParserState, answered: int = 0, total: int = 0) -> int:
    """Return the completion percentage for *state*.

    Within the size and address phases the value advances with the share
    of the batch that has been answered.
    """
    if state is ParserState.IDLE:
        return PROGRESS_DONE
    if state is ParserState.LIST_VARIABLES:
        return PROGRESS_LISTED
    if state is ParserState.RESOLVE_TYPES:
        return PROGRESS_TYPES
    if state in (ParserState.RESOLVE_SIZES, ParserState.RESOLVE_ADDRESSES):
        base = PROGRESS_SIZES if state is ParserState.RESOLVE_SIZES else PROGRESS_ADDRESSES
        if total <= 0:
            return base
        return base + (_PHASE_SPAN * min(answered, total)) // total
    return 0


class ProgressTracker:
    """Forwards progress values to a callback, once per increase."""

    __slots__ = ("_callback", "_value")

    def __init__(self, callback: Optional[ProgressCallback] = None):
        self._callback = callback
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def update(self, value: int) -> None:
        if value <= self._value:
            return
        self._value = value
        if self._callback is None:
            return
        try:
            self._callback(value)
        except Exception:
            logger.exception("Progress callback failed")

    def complete(self) -> None:
        self.update(PROGRESS_DONE)
