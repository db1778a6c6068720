"""Type resolution: turns a ``ptype`` reply into a leaf type or an expansion."""

from __future__ import annotations

import logging
from typing import List, Optional

from elfvars.core.decoder.declarations import build_identifier_list
from elfvars.core.decoder.inheritance import parse_base_classes
from elfvars.core.decoder.text import find_matching_brace, strip_storage_qualifiers
from elfvars.core.types.variables import (
    BaseClassQuery,
    PendingExpansion,
    ResolvedType,
    VariableEntry,
)

logger = logging.getLogger(__name__)

TYPE_REPLY_PREFIX = "type = "
INHERITANCE_MARKER = " : "
HIERARCHY_SEPARATOR = "."

_AGGREGATE_KEYWORDS = ("struct ", "union ", "class ")


def decode_type_reply(body: str) -> str:
    """Return the declaration text of a ``ptype`` reply body."""
    text = body.strip()
    if text.startswith(TYPE_REPLY_PREFIX):
        text = text[len(TYPE_REPLY_PREFIX):]
    return text.strip()


def class_in_hierarchy(hierarchy: str, class_name: str) -> bool:
    """Return whether *class_name* is one of the classes named in *hierarchy*."""
    return bool(class_name) and class_name in hierarchy.split(HIERARCHY_SEPARATOR)


def extend_hierarchy(hierarchy: str, class_name: str) -> str:
    if not class_name:
        return hierarchy
    if not hierarchy:
        return class_name
    return hierarchy + HIERARCHY_SEPARATOR + class_name


def aggregate_tag(text: str, open_brace: int, marker: int = -1) -> str:
    """Return the tag name of a ``struct``/``union``/``class`` type text.

    The name ends at the inheritance marker or the opening brace.  Anonymous
    aggregates have an empty tag.
    """
    keyword_end = text.find(" ")
    name_end = marker if marker != -1 else open_brace
    return text[keyword_end + 1:name_end].strip()


def resolve_type(
    text: str,
    entry: VariableEntry,
    filename: str,
    pending: PendingExpansion,
    expand_arrays: bool = False,
) -> Optional[ResolvedType]:
    """Resolve the decoded type *text* that GDB reported for *entry*.

    Parameters
    ----------
    text:
        The reply with the ``type = `` marker removed, see
        :func:`decode_type_reply`.
    entry:
        The entry the query was issued for.
    filename:
        The file group that owns *entry*; discovered members are staged
        under the same name.
    pending:
        Staging area for the members of expanded aggregates.
    expand_arrays:
        Forwarded to the declaration decoder for member arrays.

    Returns
    -------
    ResolvedType or None
        The leaf type, or ``None`` when the entry is an aggregate that was
        replaced by its members.  In that case ``entry.expanded`` is set and
        the members (plus one base-class query per base type) are
        staged in *pending*.

    An unusable reply resolves to an empty leaf type, which classifies as
    unrecognized and is dropped from the final result.
    """
    text = strip_storage_qualifiers(text)
    if not text.startswith(_AGGREGATE_KEYWORDS):
        return ResolvedType(text=text)

    open_brace = text.find("{")
    if open_brace == -1:
        if "*" in text:
            return ResolvedType(text=text)
        logger.error("No body in aggregate type of %s: %r", entry.identifier, text)
        return ResolvedType(text="")

    close_brace = find_matching_brace(text, open_brace)
    if close_brace == -1:
        logger.error("Unbalanced braces in type of %s", entry.identifier)
        return ResolvedType(text="")

    # Pointers to aggregates are leaves
    if "*" in text[close_brace + 1:]:
        return ResolvedType(text=text)

    marker = text.find(INHERITANCE_MARKER, 0, open_brace)
    hierarchy = entry.class_hierarchy
    tag_name = aggregate_tag(text, open_brace, marker)
    if class_in_hierarchy(hierarchy, tag_name):
        logger.debug("Not expanding %s: type %s contains itself", entry.identifier, tag_name)
        return ResolvedType(text="")
    hierarchy = extend_hierarchy(hierarchy, tag_name)

    members = build_identifier_list(
        text[open_brace + 1:close_brace], entry.identifier + ".", expand_arrays
    )
    staged: List[VariableEntry] = [
        VariableEntry(identifier=member, class_hierarchy=hierarchy) for member in members
    ]
    if marker != -1:
        for base in parse_base_classes(text[marker + len(INHERITANCE_MARKER):open_brace]):
            staged.append(
                VariableEntry(
                    identifier=entry.identifier,
                    type=BaseClassQuery(class_name=base),
                    class_hierarchy=hierarchy,
                )
            )

    entry.expanded = True
    pending.stage(filename, staged)
    logger.debug("Expanded %s into %d entries", entry.identifier, len(staged))
    return None
