"""Service layer: streak arithmetic, the streak engine and statistics."""

from .habits import compute_streaks, group_runs, longest_run
from .streak_engine import CompletionResult, Outcome, StreakEngine, StreakSnapshot

__all__ = [
    "CompletionResult",
    "Outcome",
    "StreakEngine",
    "StreakSnapshot",
    "compute_streaks",
    "group_runs",
    "longest_run",
]
