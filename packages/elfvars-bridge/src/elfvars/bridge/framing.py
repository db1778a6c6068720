"""Incremental framing of GDB output into prompt-terminated replies."""

from __future__ import annotations

from typing import List

from .types import ResponseFrame

GDB_PROMPT = "(gdb) "


class ResponseFramer:
    """Accumulates stdout chunks and slices off complete replies.

    GDB output arrives in arbitrary pieces.  A reply is complete once the
    prompt sentinel has been seen; any text after the last prompt stays
    buffered until the next chunk completes it.

    Usage::

        framer = ResponseFramer()
        for frame in framer.feed(chunk):
            handle(frame)
    """

    def __init__(self, prompt: str = GDB_PROMPT) -> None:
        if not prompt:
            raise ValueError("prompt sentinel must not be empty")
        self.prompt = prompt
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Return the buffered text that does not form a complete reply yet."""
        return self._buffer

    def feed(self, chunk: str) -> List[ResponseFrame]:
        """Append *chunk* and return every reply it completes, in order."""
        self._buffer += chunk
        frames: List[ResponseFrame] = []
        if self.prompt not in self._buffer:
            return frames

        while True:
            end = self._buffer.find(self.prompt)
            if end == -1:
                break
            cut = end + len(self.prompt)
            raw = self._buffer[:cut]
            self._buffer = self._buffer[cut:]
            frames.append(ResponseFrame(raw=raw, body=raw[:end].strip()))
        return frames

    def reset(self) -> None:
        """Drop any buffered partial reply."""
        self._buffer = ""
