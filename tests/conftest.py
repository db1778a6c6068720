"""Root conftest: shared fixtures for the entire test suite."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

import pytest

from elfvars.bridge import GDB_PROMPT, GdbError
from elfvars.core.session import ParseSession
from elfvars.core.types.variables import VariableInfo

_SUBSCRIPT = re.compile(r"\[\d+\]")

BANNER = (
    "GNU gdb (Arm GNU Toolchain 13.2) 13.2.90\n"
    "Copyright (C) 2023 Free Software Foundation, Inc.\n"
    "Reading symbols from firmware.elf...\n"
)


def _normalize(expression: str) -> str:
    """Collapse array subscripts so one script entry answers every element."""
    return _SUBSCRIPT.sub("[]", expression.strip())


# ---------------------------------------------------------------------------
# Scripted GDB
# ---------------------------------------------------------------------------

class FakeGdb:
    """Stand-in for GdbProcess that answers commands like a real GDB.

    ``types`` and ``sizes`` are keyed by expression with array subscripts
    written as ``[]``.  Addresses are taken from ``addresses`` (exact
    expression) or handed out sequentially.  Unknown symbols get an empty
    reply, as GDB prints its error on stderr.  ``crash_on`` makes the
    process exit, unanswered, when that exact command is received.
    """

    def __init__(
        self,
        listing: str,
        types: Optional[Dict[str, str]] = None,
        sizes: Optional[Dict[str, int]] = None,
        addresses: Optional[Dict[str, int]] = None,
        prompt: str = GDB_PROMPT,
        crash_on: Optional[str] = None,
    ):
        self.listing = listing
        self.types = types or {}
        self.sizes = sizes or {}
        self.addresses = dict(addresses or {})
        self.prompt = prompt
        self.crash_on = crash_on
        self.sent: List[str] = []
        self.exited = False
        self._output: List[str] = [BANNER + prompt]
        self._next_address = 0x20000000

    @property
    def running(self) -> bool:
        return not self.exited

    def send(self, command: str) -> None:
        if self.exited:
            raise GdbError("GDB stdin is closed")
        self.sent.append(command)
        if command == "quit" or command == self.crash_on:
            self.exited = True
            return
        self._output.append(self._reply(command) + self.prompt)

    def read_output(self) -> str:
        output = "".join(self._output)
        self._output.clear()
        return output

    def commands(self, prefix: str) -> List[str]:
        return [command for command in self.sent if command.startswith(prefix)]

    def _reply(self, command: str) -> str:
        if command.startswith("set print type"):
            return ""
        if command == "info variables":
            return self.listing
        if command.startswith("ptype "):
            declared = self.types.get(_normalize(command[len("ptype "):]))
            return "" if declared is None else f"type = {declared}\n"
        if command.startswith("p sizeof "):
            size = self.sizes.get(_normalize(command[len("p sizeof "):]))
            return "" if size is None else f"$1 = {size}\n"
        if command.startswith("print /x &(") and command.endswith(")"):
            expression = command[len("print /x &("):-1]
            if _normalize(expression) not in self.types:
                return ""
            if expression not in self.addresses:
                self.addresses[expression] = self._next_address
                self._next_address += 4
            return f"$2 = 0x{self.addresses[expression]:x}\n"
        # Batch terminators and anything else: error on stderr, bare prompt.
        return ""


def drive(
    session: ParseSession,
    gdb: FakeGdb,
    chunk_size: Optional[int] = None,
    max_rounds: int = 10000,
) -> None:
    """Run *session* against *gdb* until no more output is produced."""
    session.begin()
    for _ in range(max_rounds):
        output = gdb.read_output()
        if not output:
            break
        if chunk_size:
            for start in range(0, len(output), chunk_size):
                session.feed(output[start:start + chunk_size])
        else:
            session.feed(output)
    session.finish(0 if gdb.exited else None)


@pytest.fixture()
def make_gdb():
    """Factory for scripted GDB doubles."""
    return FakeGdb


@pytest.fixture()
def run_session():
    """Run a ParseSession against a FakeGdb and return (results, session)."""

    def _run(
        gdb: FakeGdb,
        expand_arrays: bool = False,
        chunk_size: Optional[int] = None,
        on_progress=None,
    ) -> Tuple[List[VariableInfo], ParseSession]:
        delivered: List[List[VariableInfo]] = []
        session = ParseSession(
            gdb,
            delivered.append,
            expand_arrays=expand_arrays,
            on_progress=on_progress,
            prompt=gdb.prompt,
        )
        drive(session, gdb, chunk_size=chunk_size)
        assert len(delivered) == 1, "result callback must fire exactly once"
        return delivered[0], session

    return _run


# ---------------------------------------------------------------------------
# A small firmware image
# ---------------------------------------------------------------------------

FIRMWARE_LISTING = (
    "All defined variables:\n"
    "\n"
    "File src/main.c:\n"
    "12:\tstatic int counter;\n"
    "14:\tvolatile unsigned char buffer[16];\n"
    "15:\tstruct config cfg;\n"
    "20:\tconst char *banner;\n"
    "22:\tstatic void (*handler)(int);\n"
    "\n"
    "File src/sensor.c:\n"
    "8:\tfloat temperature;\n"
    "9:\tstatic short samples[4][4];\n"
    "11:\tdouble history[3];\n"
    "\n"
    "Non-debugging symbols:\n"
    "0x20000100  __bss_start__\n"
    "0x20000200  __bss_end__\n"
)

FIRMWARE_TYPES = {
    "counter": "int",
    "buffer[]": "volatile unsigned char",
    "cfg": (
        "struct config {\n"
        "    unsigned short mode;\n"
        "    int gain;\n"
        "    struct {\n"
        "        unsigned char a;\n"
        "    } nested;\n"
        "}"
    ),
    "cfg.mode": "unsigned short",
    "cfg.gain": "int",
    "cfg.nested": "struct {\n    unsigned char a;\n}",
    "cfg.nested.a": "unsigned char",
    "banner": "const char *",
    "handler": "void (*)(int)",
    "temperature": "float",
    "history[]": "double",
}

FIRMWARE_SIZES = {
    "counter": 4,
    "buffer[]": 1,
    "cfg.mode": 2,
    "cfg.gain": 4,
    "cfg.nested.a": 1,
    "banner": 4,
    "handler": 4,
    "temperature": 4,
    "history[]": 8,
}


@pytest.fixture()
def firmware_gdb():
    """A FakeGdb describing a small C firmware image."""
    return FakeGdb(FIRMWARE_LISTING, FIRMWARE_TYPES, FIRMWARE_SIZES)


@pytest.fixture()
def firmware_script():
    """(listing, types, sizes) of the firmware image, for custom FakeGdb setups."""
    return FIRMWARE_LISTING, dict(FIRMWARE_TYPES), dict(FIRMWARE_SIZES)
