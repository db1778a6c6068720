"""Public entry points: AsyncElfParser and its thread-backed ElfParser twin."""

from __future__ import annotations

import asyncio
import logging
import os
import threading
from typing import List, Optional

from elfvars.bridge import GdbProcess
from elfvars.core.events import ProgressCallback, ResultCallback
from elfvars.core.session import ParseSession
from elfvars.core.types.config import ElfVarsConfig, load_config
from elfvars.core.types.state import Status
from elfvars.core.types.variables import VariableInfo

logger = logging.getLogger(__name__)


def _deliver_empty(on_result: ResultCallback) -> None:
    try:
        on_result([])
    except Exception:
        logger.exception("Result callback failed")


class AsyncElfParser:
    """Extracts the global variables of ELF files through GDB, on asyncio.

    Usage:
        parser = AsyncElfParser()
        variables = await parser.read("/path/to/firmware.elf")

    Or with callbacks, from inside a running event loop:
        status = parser.parse("/path/to/firmware.elf", on_result, on_progress=print)
        await parser.wait()

    One parse at a time per instance; create more instances to parse
    files concurrently.
    """

    def __init__(
        self,
        config: Optional[ElfVarsConfig] = None,
        config_path: Optional[str] = None,
        gdb_path: Optional[str] = None,
    ):
        if config is not None:
            self.config = config
        else:
            self.config = load_config(config_path)

        if gdb_path is not None:
            self.config.gdb.path = gdb_path

        self._session: Optional[ParseSession] = None
        self._task: Optional[asyncio.Task] = None

        if self.config.verbose:
            logging.basicConfig(level=logging.DEBUG)

    @property
    def busy(self) -> bool:
        """Return whether a parse is in progress."""
        return self._session is not None

    def parse(
        self,
        file_path: str,
        on_result: ResultCallback,
        expand_arrays: Optional[bool] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Status:
        """Start parsing *file_path* and return without waiting.

        Must be called with a running event loop.  *on_result* receives the
        sorted variable list exactly once.  When the file does not exist or
        a parse is already in progress, *on_result* is called immediately
        with an empty list and the returned status says why.
        """
        session = self._prepare(file_path, on_result, expand_arrays, on_progress)
        if isinstance(session, Status):
            return session
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._session = None
            raise
        self._task = loop.create_task(session.run(file_path))
        return Status.OK

    async def read(
        self,
        file_path: str,
        expand_arrays: Optional[bool] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[VariableInfo]:
        """Parse *file_path* and return its variables.

        Returns an empty list when the file does not exist or a parse is
        already in progress.
        """
        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def _resolve(results: List[VariableInfo]) -> None:
            if not future.done():
                future.set_result(results)

        self.parse(file_path, _resolve, expand_arrays, on_progress)
        return await future

    async def wait(self) -> None:
        """Wait for the parse in progress, if any, to deliver its result."""
        if self._task is not None:
            await self._task

    # -- internals ---------------------------------------------------------

    def _prepare(
        self,
        file_path: str,
        on_result: ResultCallback,
        expand_arrays: Optional[bool],
        on_progress: Optional[ProgressCallback],
    ):
        """Return a new session, or the failure status after reporting it."""
        if not os.path.exists(file_path):
            logger.error("ELF file not found: %s", file_path)
            _deliver_empty(on_result)
            return Status.FILE_NOT_FOUND
        if self._session is not None:
            logger.error("A parse is already in progress, not starting %s", file_path)
            _deliver_empty(on_result)
            return Status.ALREADY_RUNNING

        if expand_arrays is None:
            expand_arrays = self.config.parser.expand_arrays

        def _deliver(results: List[VariableInfo]) -> None:
            # Free the instance before the callback so it may start a new parse.
            self._session = None
            on_result(results)

        gdb = self.config.gdb
        session = ParseSession(
            GdbProcess(executable=gdb.path, args=gdb.args, read_size=gdb.read_size),
            _deliver,
            expand_arrays=expand_arrays,
            on_progress=on_progress,
            prompt=gdb.prompt,
        )
        self._session = session
        logger.info("Parsing %s (expand_arrays=%s)", file_path, expand_arrays)
        return session


class ElfParser:
    """Synchronous wrapper around AsyncElfParser.

    Each parse runs on its own event loop in a worker thread, so
    :meth:`parse` returns at once and the callbacks fire on that thread.

    Usage:
        parser = ElfParser()
        variables = parser.read("/path/to/firmware.elf")
    """

    def __init__(
        self,
        config: Optional[ElfVarsConfig] = None,
        config_path: Optional[str] = None,
        gdb_path: Optional[str] = None,
    ):
        self._async_parser = AsyncElfParser(config, config_path, gdb_path)
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def config(self) -> ElfVarsConfig:
        return self._async_parser.config

    @property
    def busy(self) -> bool:
        return self._async_parser.busy

    def parse(
        self,
        file_path: str,
        on_result: ResultCallback,
        expand_arrays: Optional[bool] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Status:
        """Start parsing *file_path* on a worker thread; see AsyncElfParser.parse."""
        with self._lock:
            session = self._async_parser._prepare(file_path, on_result, expand_arrays, on_progress)
            if isinstance(session, Status):
                return session
            self._thread = threading.Thread(
                target=asyncio.run,
                args=(session.run(file_path),),
                name="elfvars-parse",
                daemon=True,
            )
            self._thread.start()
        return Status.OK

    def read(
        self,
        file_path: str,
        expand_arrays: Optional[bool] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[VariableInfo]:
        """Parse *file_path* and block until its variables are available."""
        done = threading.Event()
        box: List[List[VariableInfo]] = []

        def _resolve(results: List[VariableInfo]) -> None:
            box.append(results)
            done.set()

        self.parse(file_path, _resolve, expand_arrays, on_progress)
        done.wait()
        return box[0]

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the worker thread; return ``False`` if it is still running."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()
