"""Decoding of C-like declaration lists.

Two entry points: :func:`parse_variables_listing` splits the reply of
``info variables`` into per-file groups, and :func:`build_identifier_list`
turns a block of semicolon-terminated declarations (a file block or an
aggregate body) into identifier paths.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from elfvars.core.decoder.text import (
    find_matching_brace,
    strip_access_labels,
    strip_storage_qualifiers,
)
from elfvars.core.types.variables import FileGroup, VariableEntry

logger = logging.getLogger(__name__)

NON_DEBUGGING_MARKER = "Non-debugging symbols:"

_FILE_LINE = re.compile(r"^File (?P<name>.+?):[ \t]*$", re.MULTILINE)
_LINE_NUMBER = re.compile(r"^\s*\d+:")
_ANONYMOUS_AGGREGATES = ("struct", "union", "class")


def parse_variables_listing(text: str, expand_arrays: bool = False) -> List[FileGroup]:
    """Split an ``info variables`` reply into one :class:`FileGroup` per file.

    Text before the first ``File <name>:`` line and the trailing
    non-debugging symbols section are ignored.
    """
    text = text.replace("\r\n", "\n")
    end_of_debug = text.find(NON_DEBUGGING_MARKER)
    if end_of_debug != -1:
        text = text[:end_of_debug]

    headers = list(_FILE_LINE.finditer(text))
    groups: List[FileGroup] = []
    for position, header in enumerate(headers):
        start = header.end()
        end = headers[position + 1].start() if position + 1 < len(headers) else len(text)
        identifiers = build_identifier_list(text[start:end], "", expand_arrays)
        filename = header.group("name").strip()
        logger.debug("%s: %d declarations", filename, len(identifiers))
        groups.append(
            FileGroup(
                filename=filename,
                entries=[VariableEntry(identifier=name) for name in identifiers],
            )
        )
    return groups


def build_identifier_list(block: str, root: str = "", expand_arrays: bool = False) -> List[str]:
    """Return the identifiers declared in *block*, each prefixed with *root*.

    Brace-delimited bodies are skipped as a unit; their members are found
    later by describing the aggregate's type.  An anonymous ``struct`` or
    ``union`` member is the exception: its members are reachable directly
    under *root*, so its body is decoded in place.
    """
    identifiers: List[str] = []
    pos = 0
    while pos < len(block):
        semicolon = block.find(";", pos)
        if semicolon == -1:
            break
        open_brace = block.find("{", pos, semicolon)
        if open_brace == -1:
            end = semicolon
            declarator = block[pos:end]
        else:
            close_brace = find_matching_brace(block, open_brace)
            if close_brace == -1:
                logger.error("Unbalanced braces in declaration: %r", block[pos:pos + 80])
                return identifiers
            end = block.find(";", close_brace)
            if end == -1:
                break
            declarator = block[pos:open_brace] + block[close_brace + 1:end]
            if _is_anonymous_aggregate(declarator):
                identifiers.extend(
                    build_identifier_list(block[open_brace + 1:close_brace], root, expand_arrays)
                )
                pos = end + 1
                continue

        name = extract_identifier(declarator, root, expand_arrays)
        if name is not None:
            identifiers.append(name)
        pos = end + 1
    return identifiers


def extract_identifier(declarator: str, root: str = "", expand_arrays: bool = False) -> Optional[str]:
    """Return the identifier named by one declarator, or ``None`` to skip it.

    Multi-dimensional arrays and bit fields are skipped.  A one-dimensional
    array yields ``name[0]``, or ``name[N-1]`` when arrays are expanded so
    that the declared length survives until the expansion pass.
    """
    text = strip_access_labels(declarator)
    text = _LINE_NUMBER.sub("", text, count=1).strip()
    if not text:
        return None

    bracket = text.find("[")
    if bracket != -1:
        return _array_identifier(text, bracket, root, expand_arrays)

    if "*" in text:
        # Function pointer: "void (*handler)(int)"
        paren = text.find(")")
        if paren != -1:
            text = text[:paren]
        # "char * const name" keeps a qualifier after the star
        tokens = text[text.rfind("*") + 1:].split()
        if not tokens:
            return None
        return root + tokens[-1]

    if " : " in text:
        logger.warning("Skipping bit field: %s", text)
        return None

    return root + text.split()[-1]


def _array_identifier(text: str, bracket: int, root: str, expand_arrays: bool) -> Optional[str]:
    if "[" in text[bracket + 1:]:
        logger.warning("Skipping multi-dimensional array: %s", text)
        return None

    tokens = text[:bracket].split()
    name = tokens[-1] if tokens else ""
    # Array of pointers or of function pointers
    name = name[name.rfind("*") + 1:].strip()
    if not name:
        return None

    close = text.find("]", bracket)
    size_text = text[bracket + 1:close if close != -1 else len(text)].strip()
    try:
        size = int(size_text)
    except ValueError:
        logger.warning("Unknown length for array %s%s, keeping element 0", root, name)
        return f"{root}{name}[0]"
    if size <= 0:
        logger.warning("Skipping zero-length array: %s%s", root, name)
        return None

    index = size - 1 if expand_arrays else 0
    return f"{root}{name}[{index}]"


def _is_anonymous_aggregate(declarator: str) -> bool:
    text = strip_storage_qualifiers(strip_access_labels(declarator))
    text = _LINE_NUMBER.sub("", text, count=1).strip()
    return text in _ANONYMOUS_AGGREGATES
