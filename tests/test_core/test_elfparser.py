"""Tests for the AsyncElfParser and ElfParser entry points."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, patch

import pytest

from elfvars.core.elfparser import AsyncElfParser, ElfParser
from elfvars.core.session import ParseSession
from elfvars.core.types.config import ElfVarsConfig
from elfvars.core.types.state import Status
from elfvars.core.types.variables import (
    FileGroup,
    ResolvedType,
    StorageKind,
    VariableEntry,
    VariableInfo,
)


@pytest.fixture()
def elf_file(tmp_path):
    path = tmp_path / "firmware.elf"
    path.write_bytes(b"\x7fELF")
    return str(path)


def _finish_with_counter(session: ParseSession) -> None:
    session.groups = [
        FileGroup(
            filename="main.c",
            entries=[
                VariableEntry(
                    identifier="counter",
                    type=ResolvedType(text="int"),
                    kind=StorageKind.SIGNED_32,
                    address=0x20000000,
                    address_text="0x20000000",
                )
            ],
        )
    ]
    session.finish(0)


COUNTER = VariableInfo(name="counter", address="0x20000000", type=6)


@pytest.fixture()
def scripted_run(monkeypatch):
    """Replace ParseSession.run with a run that waits for ``release``."""
    gate = {}

    async def _run(self, target_path):
        self.begin()
        gate.setdefault("release", asyncio.Event())
        await gate["release"].wait()
        _finish_with_counter(self)

    monkeypatch.setattr(ParseSession, "run", _run)
    return gate


@pytest.fixture()
def instant_run(monkeypatch):
    async def _run(self, target_path):
        self.begin()
        _finish_with_counter(self)

    monkeypatch.setattr(ParseSession, "run", _run)


class TestPreconditions:
    def test_missing_file(self):
        parser = AsyncElfParser(config=ElfVarsConfig())
        callback = MagicMock()
        with patch("elfvars.core.elfparser.GdbProcess") as gdb_cls:
            status = parser.parse("/nonexistent/firmware.elf", callback)
        assert status is Status.FILE_NOT_FOUND
        callback.assert_called_once_with([])
        gdb_cls.assert_not_called()
        assert not parser.busy

    def test_missing_file_sync(self):
        parser = ElfParser(config=ElfVarsConfig())
        callback = MagicMock()
        assert parser.parse("/nonexistent/firmware.elf", callback) is Status.FILE_NOT_FOUND
        callback.assert_called_once_with([])

    def test_callback_error_on_rejection_is_logged(self, caplog):
        parser = AsyncElfParser(config=ElfVarsConfig())
        status = parser.parse("/nonexistent/firmware.elf", MagicMock(side_effect=ValueError("x")))
        assert status is Status.FILE_NOT_FOUND
        assert "Result callback failed" in caplog.text


class TestAsyncElfParser:
    @pytest.mark.asyncio
    async def test_parse_delivers_result(self, elf_file, scripted_run):
        parser = AsyncElfParser(config=ElfVarsConfig())
        callback = MagicMock()
        assert parser.parse(elf_file, callback) is Status.OK
        assert parser.busy
        await asyncio.sleep(0)
        scripted_run["release"].set()
        await parser.wait()
        callback.assert_called_once_with([COUNTER])
        assert not parser.busy

    @pytest.mark.asyncio
    async def test_already_running(self, elf_file, scripted_run):
        parser = AsyncElfParser(config=ElfVarsConfig())
        first = MagicMock()
        second = MagicMock()
        assert parser.parse(elf_file, first) is Status.OK
        await asyncio.sleep(0)
        assert parser.parse(elf_file, second) is Status.ALREADY_RUNNING
        second.assert_called_once_with([])
        first.assert_not_called()

        scripted_run["release"].set()
        await parser.wait()
        first.assert_called_once_with([COUNTER])

    @pytest.mark.asyncio
    async def test_callback_may_start_next_parse(self, elf_file, instant_run):
        parser = AsyncElfParser(config=ElfVarsConfig())
        statuses = []

        def _again(results):
            statuses.append(parser.parse(elf_file, MagicMock()))

        parser.parse(elf_file, _again)
        await parser.wait()
        assert statuses == [Status.OK]
        await parser.wait()

    @pytest.mark.asyncio
    async def test_read(self, elf_file, instant_run):
        parser = AsyncElfParser(config=ElfVarsConfig())
        assert await parser.read(elf_file) == [COUNTER]

    @pytest.mark.asyncio
    async def test_read_missing_file(self):
        parser = AsyncElfParser(config=ElfVarsConfig())
        assert await parser.read("/nonexistent/firmware.elf") == []

    @pytest.mark.asyncio
    async def test_expand_arrays_defaults_to_config(self, elf_file, instant_run):
        config = ElfVarsConfig()
        config.parser.expand_arrays = True
        parser = AsyncElfParser(config=config)
        with patch("elfvars.core.elfparser.ParseSession", wraps=ParseSession) as session_cls:
            await parser.read(elf_file)
        assert session_cls.call_args.kwargs["expand_arrays"] is True

    @pytest.mark.asyncio
    async def test_gdb_settings_forwarded(self, elf_file, instant_run):
        config = ElfVarsConfig()
        config.gdb.args = ["--nx"]
        config.gdb.read_size = 1024
        parser = AsyncElfParser(config=config, gdb_path="/opt/gdb")
        with patch("elfvars.core.elfparser.GdbProcess") as gdb_cls:
            await parser.read(elf_file)
        gdb_cls.assert_called_once_with(executable="/opt/gdb", args=["--nx"], read_size=1024)

    def test_parse_requires_running_loop(self, elf_file):
        parser = AsyncElfParser(config=ElfVarsConfig())
        with pytest.raises(RuntimeError):
            parser.parse(elf_file, MagicMock())
        assert not parser.busy

    def test_config_file_loaded(self, tmp_path):
        toml_file = tmp_path / "elfvars.toml"
        toml_file.write_text('[gdb]\npath = "gdb-multiarch"\n')
        parser = AsyncElfParser(config_path=str(toml_file))
        assert parser.config.gdb.path == "gdb-multiarch"


class TestElfParser:
    def test_read_blocks_for_result(self, elf_file, instant_run):
        parser = ElfParser(config=ElfVarsConfig())
        assert parser.read(elf_file) == [COUNTER]
        assert parser.wait(timeout=5)
        assert not parser.busy

    def test_parse_runs_in_worker_thread(self, elf_file, instant_run):
        import threading

        parser = ElfParser(config=ElfVarsConfig())
        threads = []
        done = threading.Event()

        def _callback(results):
            threads.append(threading.current_thread().name)
            done.set()

        assert parser.parse(elf_file, _callback) is Status.OK
        assert done.wait(timeout=5)
        assert parser.wait(timeout=5)
        assert threads == ["elfvars-parse"]

    def test_wait_without_parse(self):
        assert ElfParser(config=ElfVarsConfig()).wait(timeout=0)
