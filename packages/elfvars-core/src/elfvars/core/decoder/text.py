"""Small text helpers shared by the declaration decoders."""

from __future__ import annotations

import re

STORAGE_QUALIFIERS = ("extern ", "static ", "volatile ", "const ")

_ACCESS_LABEL = re.compile(r"\s*(?:public|private|protected):")


def strip_storage_qualifiers(text: str) -> str:
    """Remove leading ``extern``/``static``/``volatile``/``const`` keywords.

    The qualifiers may appear in any order and any number of times.
    """
    text = text.strip()
    found = True
    while found:
        found = False
        for qualifier in STORAGE_QUALIFIERS:
            if text.startswith(qualifier):
                text = text[len(qualifier):].lstrip()
                found = True
    return text


def strip_access_labels(text: str) -> str:
    """Remove ``public:``, ``protected:`` and ``private:`` labels."""
    return _ACCESS_LABEL.sub("", text)


def find_matching_brace(text: str, open_index: int = -1) -> int:
    """Return the index of the ``}`` closing the brace at *open_index*.

    When *open_index* is negative the first ``{`` of *text* is used.
    Returns -1 when there is no opening brace or it is never closed.
    """
    if open_index < 0:
        open_index = text.find("{")
        if open_index == -1:
            return -1
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return -1
