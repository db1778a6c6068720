"""Tests for GDB discovery and the GdbProcess wrapper."""

from __future__ import annotations

import sys
from unittest.mock import AsyncMock, patch

import pytest

from elfvars.bridge.debugger import GdbProcess, default_candidates, locate_gdb
from elfvars.bridge.types import GdbError


class TestLocateGdb:
    def test_first_candidate_found(self):
        found = {"gdb-multiarch": "/usr/bin/gdb-multiarch", "gdb": "/usr/bin/gdb"}
        with patch("elfvars.bridge.debugger.shutil.which", side_effect=found.get):
            assert locate_gdb(candidates=["arm-none-eabi-gdb", "gdb-multiarch", "gdb"]) == (
                "/usr/bin/gdb-multiarch"
            )

    def test_preferred_wins(self):
        with patch("elfvars.bridge.debugger.shutil.which", return_value="/opt/gdb") as which:
            assert locate_gdb("/opt/gdb") == "/opt/gdb"
        which.assert_called_once_with("/opt/gdb")

    def test_preferred_missing(self):
        with patch("elfvars.bridge.debugger.shutil.which", return_value=None):
            with pytest.raises(GdbError, match="not found"):
                locate_gdb("/opt/missing-gdb")

    def test_nothing_found(self):
        with patch("elfvars.bridge.debugger.shutil.which", return_value=None):
            with pytest.raises(GdbError, match="No GDB executable"):
                locate_gdb()

    def test_default_candidates_linux(self):
        with patch("elfvars.bridge.debugger.sys.platform", "linux"):
            assert default_candidates() == ["arm-none-eabi-gdb", "gdb-multiarch", "gdb"]

    def test_default_candidates_macos(self):
        with patch("elfvars.bridge.debugger.sys.platform", "darwin"):
            assert default_candidates()[0] == "arm-none-eabi-gdb-macos"


class TestGdbProcessErrors:
    def test_send_before_start(self):
        with pytest.raises(GdbError, match="not started"):
            GdbProcess().send("quit")

    @pytest.mark.asyncio
    async def test_pump_before_start(self):
        with pytest.raises(GdbError):
            await GdbProcess().pump(print)

    @pytest.mark.asyncio
    async def test_spawn_failure(self):
        gdb = GdbProcess(executable=sys.executable)
        with patch(
            "elfvars.bridge.debugger.asyncio.create_subprocess_exec",
            AsyncMock(side_effect=PermissionError("denied")),
        ):
            with pytest.raises(GdbError, match="Failed to start"):
                await gdb.start("/tmp/fw.elf")
        assert gdb.pid is None
        assert not gdb.running

    @pytest.mark.asyncio
    async def test_terminate_before_start_is_noop(self):
        await GdbProcess().terminate()


class TestGdbProcess:
    @pytest.mark.asyncio
    async def test_stdout_and_stderr_delivered(self, child_process):
        gdb = child_process(
            "import sys\n"
            "sys.stdout.write('hello ' + sys.argv[1] + '\\n(gdb) ')\n"
            "sys.stderr.write('warning: no debugging symbols')\n"
        )
        await gdb.start("fw.elf")
        assert gdb.running
        assert gdb.pid is not None
        out, err = [], []
        returncode = await gdb.pump(out.append, err.append)
        assert returncode == 0
        assert "".join(out) == "hello fw.elf\n(gdb) "
        assert "".join(err) == "warning: no debugging symbols"
        assert not gdb.running
        assert gdb.returncode == 0

    @pytest.mark.asyncio
    async def test_send_writes_lines(self, child_process):
        gdb = child_process(
            "import sys\n"
            "for line in sys.stdin:\n"
            "    if line.strip() == 'quit':\n"
            "        break\n"
            "    sys.stdout.write(line.upper())\n"
            "    sys.stdout.flush()\n"
        )
        await gdb.start("fw.elf")
        gdb.send("info variables")
        gdb.send("quit")
        out = []
        assert await gdb.pump(out.append) == 0
        assert "".join(out) == "INFO VARIABLES\n"

    @pytest.mark.asyncio
    async def test_multibyte_characters_split_across_reads(self, child_process):
        gdb = child_process("import sys\nsys.stdout.buffer.write('µs°'.encode() * 50)\n", read_size=1)
        await gdb.start("fw.elf")
        out = []
        await gdb.pump(out.append)
        assert "".join(out) == "µs°" * 50

    @pytest.mark.asyncio
    async def test_start_twice_rejected(self, child_process):
        gdb = child_process("pass")
        await gdb.start("fw.elf")
        with pytest.raises(GdbError, match="already started"):
            await gdb.start("fw.elf")
        await gdb.pump(lambda chunk: None)

    @pytest.mark.asyncio
    async def test_terminate(self, child_process):
        gdb = child_process("import time\ntime.sleep(30)\n")
        async with gdb:
            await gdb.start("fw.elf")
            assert gdb.running
        assert not gdb.running
        assert gdb.returncode is not None

    @pytest.mark.asyncio
    async def test_terminate_after_exit_is_noop(self, child_process):
        gdb = child_process("pass")
        await gdb.start("fw.elf")
        assert await gdb.pump(lambda chunk: None) == 0
        await gdb.terminate()
        assert gdb.returncode == 0
