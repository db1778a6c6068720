"""ParseSession: drives one GDB process through the variable extraction."""

from __future__ import annotations

import logging
import time
from typing import Iterator, List, Optional, Tuple

from elfvars.bridge import (
    BATCH_TERMINATORS,
    GDB_PROMPT,
    INFO_VARIABLES,
    QUIT,
    SET_PRINT_METHODS_OFF,
    SET_PRINT_TYPEDEFS_OFF,
    GdbError,
    GdbProcess,
    QueryKind,
    ResponseFrame,
    ResponseFramer,
    format_batch,
)
from elfvars.core.decoder import (
    classify_reply,
    decode_type_reply,
    expand_arrays,
    extract_address,
    format_address,
    parse_address,
    parse_variables_listing,
    resolve_type,
)
from elfvars.core.events import (
    ProgressCallback,
    ProgressTracker,
    ResultCallback,
    progress_for,
)
from elfvars.core.types.state import ParserState
from elfvars.core.types.variables import (
    BaseClassQuery,
    FileGroup,
    PendingExpansion,
    ResumeCursor,
    StorageKind,
    VariableEntry,
    VariableInfo,
)

logger = logging.getLogger(__name__)


def _awaiting(kind: QueryKind, entry: VariableEntry) -> bool:
    """Return whether *entry* still waits for a reply of the given kind."""
    if kind is QueryKind.TYPE:
        return not entry.expanded and (entry.type is None or isinstance(entry.type, BaseClassQuery))
    if kind is QueryKind.SIZE:
        return entry.kind is None
    return entry.address_text is None


def _name_order(info: VariableInfo) -> Tuple[str, str]:
    """Case-insensitive order; lowercase first among names differing only by case."""
    return info.name.casefold(), info.name.swapcase()


class ParseSession:
    """State machine correlating GDB replies with the variable collection.

    One session parses one file.  Commands are written as soon as the reply
    that enables them has been framed; query batches are written eagerly
    and each reply is matched to the next entry still waiting for that
    kind of information.

    Lifecycle: ``run(path)`` for a real process, or ``begin()`` then
    ``feed(chunk)`` calls then ``finish(returncode)`` when the output is
    produced elsewhere.
    """

    def __init__(
        self,
        debugger: GdbProcess,
        on_result: ResultCallback,
        expand_arrays: bool = False,
        on_progress: Optional[ProgressCallback] = None,
        prompt: str = GDB_PROMPT,
    ):
        self.debugger = debugger
        self.expand_arrays = expand_arrays
        self.state = ParserState.IDLE
        self.groups: List[FileGroup] = []

        self._on_result = on_result
        self._progress = ProgressTracker(on_progress)
        self._framer = ResponseFramer(prompt)
        self._pending = PendingExpansion()
        self._cursor = ResumeCursor()
        self._answered = 0
        self._batch_size = 0
        self._started_at: Optional[float] = None
        self._delivered = False

    @property
    def delivered(self) -> bool:
        """Return whether the result callback has been invoked."""
        return self._delivered

    # -- lifecycle ---------------------------------------------------------

    async def run(self, target_path: str) -> None:
        """Spawn GDB on *target_path* and process its output until it exits.

        The result callback is invoked exactly once, whatever happens.
        """
        self.begin()
        returncode: Optional[int] = None
        try:
            await self.debugger.start(target_path)
            returncode = await self.debugger.pump(self.feed, self._on_stderr)
        except GdbError as exc:
            logger.error("GDB session failed: %s", exc)
        except Exception:
            logger.exception("Unexpected failure while parsing %s", target_path)
        finally:
            if self.debugger.running:
                await self.debugger.terminate()
            self.finish(returncode)

    def begin(self) -> None:
        """Enter the STARTING state; the next frame is GDB's start-up banner."""
        self._started_at = time.monotonic()
        self._transition(ParserState.STARTING)

    def feed(self, chunk: str) -> None:
        """Process one chunk of GDB standard output."""
        for frame in self._framer.feed(chunk):
            self._handle(frame)
            self._progress.update(progress_for(self.state, self._answered, self._batch_size))

    def finish(self, returncode: Optional[int] = None) -> None:
        """Deliver the result once GDB has exited."""
        if self._delivered:
            return
        self._delivered = True
        if self.state is not ParserState.IDLE:
            logger.warning(
                "GDB exited (code %s) while in state %s, returning partial result",
                returncode,
                self.state.value,
            )
            self._transition(ParserState.IDLE)
        self._progress.complete()

        results = self.results()
        elapsed = time.monotonic() - self._started_at if self._started_at is not None else 0.0
        logger.info("Extracted %d variables in %.3f s", len(results), elapsed)
        try:
            self._on_result(results)
        except Exception:
            logger.exception("Result callback failed")

    def results(self) -> List[VariableInfo]:
        """Flatten the collection into sorted results.

        Entries without an address or without a recognized storage kind
        are left out.
        """
        results: List[VariableInfo] = []
        for group in self.groups:
            for entry in group.entries:
                if entry.address is None:
                    continue
                if entry.kind is None or entry.kind is StorageKind.UNRECOGNIZED:
                    continue
                results.append(
                    VariableInfo(
                        name=entry.identifier,
                        address=format_address(entry.address),
                        type=int(entry.kind),
                    )
                )
        results.sort(key=_name_order)
        return results

    # -- state machine -----------------------------------------------------

    def _handle(self, frame: ResponseFrame) -> None:
        state = self.state
        if state is ParserState.IDLE:
            logger.debug("Ignoring reply received while idle: %r", frame.body[:80])
        elif state is ParserState.STARTING:
            self._transition(ParserState.DISABLE_METHOD_PRINTING)
            self._send(SET_PRINT_METHODS_OFF)
        elif state is ParserState.DISABLE_METHOD_PRINTING:
            self._transition(ParserState.DISABLE_TYPEDEF_PRINTING)
            self._send(SET_PRINT_TYPEDEFS_OFF)
        elif state is ParserState.DISABLE_TYPEDEF_PRINTING:
            self._transition(ParserState.LIST_VARIABLES)
            self._send(INFO_VARIABLES)
        elif state is ParserState.LIST_VARIABLES:
            self._on_listing(frame.body)
        elif state is ParserState.RESOLVE_TYPES:
            if not self._store(QueryKind.TYPE, frame.body):
                self._finish_type_pass()
        elif state is ParserState.RESOLVE_SIZES:
            if not self._store(QueryKind.SIZE, frame.body):
                self._transition(ParserState.RESOLVE_ADDRESSES)
                self._request_batch(QueryKind.ADDRESS)
        elif state is ParserState.RESOLVE_ADDRESSES:
            if not self._store(QueryKind.ADDRESS, frame.body):
                self._quit()

    def _on_listing(self, body: str) -> None:
        self.groups = parse_variables_listing(body, self.expand_arrays)
        total = sum(len(group.entries) for group in self.groups)
        logger.info("GDB listed %d variables in %d files", total, len(self.groups))
        if total == 0:
            self._quit()
            return
        self._transition(ParserState.RESOLVE_TYPES)
        self._request_batch(QueryKind.TYPE)

    def _finish_type_pass(self) -> None:
        for group in self.groups:
            group.entries = [entry for entry in group.entries if not entry.expanded]
        merged = self._pending.merge_into(self.groups)
        if merged:
            logger.debug("Type pass discovered %d entries", merged)
            self._request_batch(QueryKind.TYPE)
            return

        if self.expand_arrays:
            expand_arrays(self.groups)
        self._transition(ParserState.RESOLVE_SIZES)
        self._request_batch(QueryKind.SIZE)

    def _quit(self) -> None:
        self._transition(ParserState.IDLE)
        self._send(QUIT)

    def _transition(self, state: ParserState) -> None:
        logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state

    # -- batches -----------------------------------------------------------

    def _request_batch(self, kind: QueryKind) -> None:
        expressions = [
            entry.type_expression if kind is QueryKind.TYPE else entry.identifier
            for _, entry in self._entries_awaiting(kind)
        ]
        self._cursor.reset()
        self._answered = 0
        self._batch_size = len(expressions)
        logger.debug("Requesting %s for %d entries", kind.value, len(expressions))
        for command in format_batch(kind, expressions):
            self._send(command)

    def _entries_awaiting(self, kind: QueryKind) -> Iterator[Tuple[FileGroup, VariableEntry]]:
        for group in self.groups:
            for entry in group.entries:
                if _awaiting(kind, entry):
                    yield group, entry

    def _next_awaiting(self, kind: QueryKind) -> Optional[Tuple[FileGroup, VariableEntry]]:
        cursor = self._cursor
        while cursor.file_index < len(self.groups):
            group = self.groups[cursor.file_index]
            while cursor.entry_index < len(group.entries):
                entry = group.entries[cursor.entry_index]
                cursor.entry_index += 1
                if _awaiting(kind, entry):
                    return group, entry
            cursor.file_index += 1
            cursor.entry_index = 0
        return None

    def _store(self, kind: QueryKind, body: str) -> bool:
        """Attribute one reply to the next waiting entry.

        Returns ``False`` when no entry is waiting, i.e. *body* is the reply
        to the batch terminator.
        """
        found = self._next_awaiting(kind)
        if found is None:
            return False
        group, entry = found
        self._answered += 1

        if kind is QueryKind.TYPE:
            resolved = resolve_type(
                decode_type_reply(body), entry, group.filename, self._pending, self.expand_arrays
            )
            if resolved is not None:
                entry.type = resolved
        elif kind is QueryKind.SIZE:
            leaf = entry.resolved_type
            if leaf is None:
                logger.debug("No type for %s, skipping size", entry.identifier)
                entry.kind = StorageKind.UNRECOGNIZED
            else:
                entry.kind = classify_reply(leaf, body)
        else:
            text = extract_address(body)
            entry.address_text = text if text is not None else ""
            entry.address = parse_address(text)
        return True

    # -- I/O ---------------------------------------------------------------

    def _send(self, command: str) -> None:
        try:
            self.debugger.send(command)
        except GdbError as exc:
            logger.warning("Could not send %r: %s", command, exc)

    def _on_stderr(self, chunk: str) -> None:
        text = chunk.strip()
        if not text:
            return
        if any(terminator in text for terminator in BATCH_TERMINATORS.values()):
            logger.debug("GDB: %s", text)
        else:
            logger.warning("GDB: %s", text)
