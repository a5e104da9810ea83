"""Saved runs and cross-run comparison."""

from .runs import SavedRun, RunStore, build_comparison_series, run_statistics

__all__ = [
    "SavedRun",
    "RunStore",
    "build_comparison_series",
    "run_statistics",
]
