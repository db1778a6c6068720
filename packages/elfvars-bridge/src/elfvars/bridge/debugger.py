"""Asynchronous wrapper around a GDB subprocess driven through its CLI."""

from __future__ import annotations

import asyncio
import codecs
import logging
import shutil
import sys
from typing import Callable, List, Optional, Sequence

from .commands import format_command
from .types import GdbError

logger = logging.getLogger(__name__)

OutputCallback = Callable[[str], None]

_CANDIDATES = ("arm-none-eabi-gdb", "gdb-multiarch", "gdb")


def default_candidates() -> List[str]:
    """Return the executable names tried on this platform, in order."""
    candidates = list(_CANDIDATES)
    if sys.platform == "darwin":
        candidates.insert(0, "arm-none-eabi-gdb-macos")
    return candidates


def locate_gdb(
    preferred: Optional[str] = None,
    candidates: Optional[Sequence[str]] = None,
) -> str:
    """Find the GDB executable to launch.

    Parameters
    ----------
    preferred:
        Explicit executable name or path.  When given, no other candidate
        is considered.
    candidates:
        Names searched on ``PATH`` when *preferred* is not given.  Defaults
        to :func:`default_candidates`.

    Raises
    ------
    GdbError
        If no usable executable is found.
    """
    if preferred:
        found = shutil.which(preferred)
        if found is None:
            raise GdbError(f"GDB executable not found: '{preferred}'")
        return found

    names = list(candidates) if candidates is not None else default_candidates()
    for name in names:
        found = shutil.which(name)
        if found is not None:
            return found
    raise GdbError(f"No GDB executable found on PATH (tried: {', '.join(names)})")


class GdbProcess:
    """High-level wrapper around one GDB child process.

    Commands are written as text lines on the child's stdin; stdout and
    stderr are delivered as decoded text chunks of arbitrary size.

    Usage::

        gdb = GdbProcess()
        await gdb.start("/path/to/firmware.elf")
        gdb.send("info variables")
        returncode = await gdb.pump(on_stdout=print)
    """

    def __init__(
        self,
        executable: Optional[str] = None,
        args: Optional[Sequence[str]] = None,
        read_size: int = 4096,
        encoding: str = "utf-8",
    ) -> None:
        self.executable = executable
        self.args = list(args or [])
        self.read_size = read_size
        self.encoding = encoding
        self._proc: Optional[asyncio.subprocess.Process] = None

    # -- context manager ---------------------------------------------------

    async def __aenter__(self) -> GdbProcess:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.terminate()

    # -- properties --------------------------------------------------------

    @property
    def pid(self) -> Optional[int]:
        """Return the child process ID, or ``None`` before :meth:`start`."""
        return self._proc.pid if self._proc is not None else None

    @property
    def returncode(self) -> Optional[int]:
        """Return the exit code once the child has terminated."""
        return self._proc.returncode if self._proc is not None else None

    @property
    def running(self) -> bool:
        """Return whether the child has been started and has not exited."""
        return self._proc is not None and self._proc.returncode is None

    # -- public API --------------------------------------------------------

    async def start(self, target_path: str) -> None:
        """Launch GDB on *target_path*.

        Raises
        ------
        GdbError
            If the executable cannot be found or spawned, or if this
            instance was already started.
        """
        if self._proc is not None:
            raise GdbError("GDB process already started")
        executable = locate_gdb(self.executable)
        cmd = [executable, *self.args, target_path]
        try:
            self._proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise GdbError(f"Failed to start '{executable}': {exc}") from exc
        logger.debug("Started %s (pid=%d)", " ".join(cmd), self._proc.pid)

    def send(self, command: str) -> None:
        """Write one command line to GDB's stdin without waiting."""
        proc = self._require_process()
        stdin = proc.stdin
        if stdin is None or stdin.is_closing():
            raise GdbError("GDB stdin is closed")
        stdin.write(format_command(command).encode(self.encoding))

    async def pump(
        self,
        on_stdout: OutputCallback,
        on_stderr: Optional[OutputCallback] = None,
    ) -> int:
        """Deliver output chunks until both streams close, then reap the child.

        Returns
        -------
        int
            The process exit code.
        """
        proc = self._require_process()
        await asyncio.gather(
            self._read_stream(proc.stdout, on_stdout),
            self._read_stream(proc.stderr, on_stderr),
        )
        return await proc.wait()

    async def terminate(self) -> None:
        """Terminate the child if it is still running."""
        if not self.running:
            return
        proc = self._require_process()
        try:
            proc.terminate()
        except ProcessLookupError:
            pass
        await proc.wait()

    # -- internals ---------------------------------------------------------

    def _require_process(self) -> asyncio.subprocess.Process:
        if self._proc is None:
            raise GdbError("GDB process not started. Call start() first.")
        return self._proc

    async def _read_stream(
        self,
        stream: Optional[asyncio.StreamReader],
        callback: Optional[OutputCallback],
    ) -> None:
        if stream is None:
            return
        # Incremental decoding keeps multi-byte characters split across
        # reads intact.
        decoder = codecs.getincrementaldecoder(self.encoding)(errors="replace")
        while True:
            chunk = await stream.read(self.read_size)
            text = decoder.decode(chunk, final=not chunk)
            if text and callback is not None:
                callback(text)
            if not chunk:
                break
