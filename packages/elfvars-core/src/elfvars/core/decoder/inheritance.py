"""Parser for the base-class clause of a C++ class declaration.

Grammar handled (whitespace is free between tokens)::

    clause    := specifier ("," specifier)*
    specifier := keyword* name ["<" balanced ">"] ["[" balanced "]"]
    keyword   := "public" | "protected" | "private" | "virtual"

Template arguments and bracket suffixes are skipped; only the name is
kept.
"""

from __future__ import annotations

from typing import List

ACCESS_KEYWORDS = frozenset({"public", "protected", "private", "virtual"})

_NAME_STOP = "<[,"
_CLOSERS = {"<": ">", "[": "]"}


class _ClauseParser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def parse(self) -> List[str]:
        names: List[str] = []
        while True:
            self._skip_whitespace()
            if self._at_end():
                break
            name = self._specifier()
            if name:
                names.append(name)
            self._skip_whitespace()
            if self._at_end():
                break
            if self._peek() == ",":
                self.pos += 1
            else:
                self._skip_to_separator()
        return names

    def _specifier(self) -> str:
        start = self.pos
        while not self._at_end() and self._peek() not in _NAME_STOP:
            self.pos += 1
        name = _drop_keywords(self.text[start:self.pos])
        self._skip_whitespace()
        if self._peek() == "<":
            self._skip_balanced()
        self._skip_whitespace()
        if self._peek() == "[":
            self._skip_balanced()
        return name

    def _skip_balanced(self) -> None:
        opener = self._peek()
        closer = _CLOSERS[opener]
        depth = 0
        while not self._at_end():
            char = self._peek()
            self.pos += 1
            if char == opener:
                depth += 1
            elif char == closer:
                depth -= 1
                if depth == 0:
                    return

    def _skip_to_separator(self) -> None:
        while not self._at_end():
            char = self._peek()
            if char == ",":
                self.pos += 1
                return
            if char in _CLOSERS:
                self._skip_balanced()
            else:
                self.pos += 1

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self.text[self.pos].isspace():
            self.pos += 1

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _at_end(self) -> bool:
        return self.pos >= len(self.text)


def _drop_keywords(specifier: str) -> str:
    words = specifier.split()
    while words and words[0] in ACCESS_KEYWORDS:
        words.pop(0)
    return " ".join(words)


def parse_base_classes(clause: str) -> List[str]:
    """Return the base class names listed in *clause*, in order.

    >>> parse_base_classes("public Base, private virtual Mixin<int, 2>")
    ['Base', 'Mixin']
    """
    return _ClauseParser(clause).parse()
