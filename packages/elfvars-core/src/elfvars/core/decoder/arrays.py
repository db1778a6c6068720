"""Array expansion: one entry per array element, up to a fixed cap."""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Optional, Tuple

from elfvars.core.types.variables import FileGroup, VariableEntry

logger = logging.getLogger(__name__)

MAX_ARRAY_ELEMENTS = 10000

OPEN_MARKER = "[#"
CLOSE_MARKER = "#]"


def mark_brackets(identifier: str) -> str:
    """Replace ``[``/``]`` with markers that only expansion understands."""
    return identifier.replace("[", OPEN_MARKER).replace("]", CLOSE_MARKER)


def _last_marked_span(identifier: str) -> Optional[Tuple[str, str, str]]:
    start = identifier.rfind(OPEN_MARKER)
    if start == -1:
        return None
    end = identifier.find(CLOSE_MARKER, start)
    if end == -1:
        return None
    return (
        identifier[:start],
        identifier[start + len(OPEN_MARKER):end],
        identifier[end + len(CLOSE_MARKER):],
    )


def _element_count(last_index: str, identifier: str) -> int:
    try:
        count = int(last_index) + 1
    except ValueError:
        logger.warning("Unparsable array index in %s, keeping element 0", identifier)
        return 1
    if count > MAX_ARRAY_ELEMENTS:
        logger.warning(
            "Array %s has %d elements, keeping the first %d",
            identifier,
            count,
            MAX_ARRAY_ELEMENTS,
        )
        return MAX_ARRAY_ELEMENTS
    return max(count, 1)


def expand_group(group: FileGroup) -> int:
    """Expand every array identifier of *group* in place.

    Each array subscript holds the last valid index of its array (see
    :func:`~elfvars.core.decoder.declarations.extract_identifier`).  The
    entry is replaced by one entry per element, all sharing its resolved
    type and storage kind.  Subscripts are processed right to left, one per
    step, so members of arrays nested in arrays of aggregates are handled
    too.

    Returns the number of entries added.
    """
    before = len(group.entries)
    work: Deque[VariableEntry] = deque()
    for entry in group.entries:
        entry.identifier = mark_brackets(entry.identifier)
        work.append(entry)

    done: List[VariableEntry] = []
    while work:
        entry = work.popleft()
        span = _last_marked_span(entry.identifier)
        if span is None:
            done.append(entry)
            continue
        head, last_index, tail = span
        count = _element_count(last_index, entry.identifier)
        entry.identifier = f"{head}[{count - 1}]{tail}"
        work.append(entry)
        for index in range(count - 1):
            work.append(
                VariableEntry(
                    identifier=f"{head}[{index}]{tail}",
                    type=entry.type,
                    kind=entry.kind,
                    class_hierarchy=entry.class_hierarchy,
                )
            )

    group.entries = done
    return len(done) - before


def expand_arrays(groups: List[FileGroup]) -> int:
    """Expand the arrays of every group, returning the number of added entries."""
    added = sum(expand_group(group) for group in groups)
    logger.debug("Array expansion added %d entries", added)
    return added
