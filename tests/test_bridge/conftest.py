"""Bridge test fixtures: child processes standing in for GDB."""

from __future__ import annotations

import sys

import pytest

from elfvars.bridge import GdbProcess


@pytest.fixture()
def child_process():
    """Build a GdbProcess that runs a Python snippet instead of GDB.

    The target path passed to ``start()`` ends up as ``sys.argv[1]``.
    """

    def _make(code: str, read_size: int = 4096) -> GdbProcess:
        return GdbProcess(executable=sys.executable, args=["-c", code], read_size=read_size)

    return _make
