"""Terminal display components."""

from elfvars.core.display.console import ProgressDisplay, results_table, storage_label

__all__ = ["ProgressDisplay", "results_table", "storage_label"]
