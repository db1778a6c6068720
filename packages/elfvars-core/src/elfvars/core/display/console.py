"""Rich rendering of parse progress and extracted variables."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from elfvars.core.types.variables import StorageKind, VariableInfo

STORAGE_LABELS: Dict[int, str] = {
    StorageKind.UNSIGNED_8: "uint8",
    StorageKind.SIGNED_8: "int8",
    StorageKind.UNSIGNED_16: "uint16",
    StorageKind.SIGNED_16: "int16",
    StorageKind.UNSIGNED_32: "uint32",
    StorageKind.SIGNED_32: "int32",
    StorageKind.UNSIGNED_64: "uint64",
    StorageKind.SIGNED_64: "int64",
    StorageKind.FLOAT: "float",
    StorageKind.DOUBLE: "double",
}


def storage_label(code: int) -> str:
    """Return a short name for a storage kind code."""
    return STORAGE_LABELS.get(code, f"unknown({code})")


def results_table(results: Iterable[VariableInfo], title: Optional[str] = None) -> Table:
    """Build a table with one row per variable."""
    table = Table(title=title, show_lines=False)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Address", style="green", no_wrap=True)
    table.add_column("Type", style="magenta")
    for info in results:
        table.add_row(info.name, info.address, storage_label(info.type))
    return table


class ProgressDisplay:
    """Progress bar fed from a parse progress callback.

    :meth:`update` may be called from the parser's worker thread.
    """

    def __init__(self, console: Optional[Console] = None, description: str = "Parsing"):
        self._console = console or Console(stderr=True)
        self._progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=self._console,
            transient=True,
        )
        self._description = description
        self._task: Optional[TaskID] = None

    def __enter__(self) -> ProgressDisplay:
        self._progress.start()
        self._task = self._progress.add_task(self._description, total=100)
        return self

    def __exit__(self, *exc) -> None:
        self._progress.stop()

    def update(self, value: int) -> None:
        if self._task is not None:
            self._progress.update(self._task, completed=value)
