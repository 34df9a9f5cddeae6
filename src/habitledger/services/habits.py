"""Streak arithmetic over ascending sequences of completion days."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable


def group_runs(days: Iterable[date]) -> dict[date, int]:
    """Bucket ascending completion days into runs of consecutive days.

    Each day is keyed by ``day - rank`` where rank is its 1-based position in
    the sequence. Consecutive days share that anchor, so every bucket is one
    maximal run and its size is the run length. Duplicate days are ignored.
    """

    runs: dict[date, int] = {}
    rank = 0
    previous: date | None = None
    for day in days:
        if previous is not None:
            if day == previous:
                continue
            if day < previous:
                raise ValueError("completion days must be in ascending order")
        rank += 1
        anchor = day - timedelta(days=rank)
        runs[anchor] = runs.get(anchor, 0) + 1
        previous = day
    return runs


def longest_run(days: Iterable[date]) -> int:
    """Length of the longest run of consecutive days (0 when empty)."""

    return max(group_runs(days).values(), default=0)


def trailing_run(days: Iterable[date]) -> tuple[int, date | None]:
    """Return the length and last day of the run that ends the sequence."""

    ordered = list(days)
    if not ordered:
        return 0, None
    runs = group_runs(ordered)
    last_day = ordered[-1]
    # The last day's rank equals the number of distinct days seen.
    anchor = last_day - timedelta(days=sum(runs.values()))
    return runs[anchor], last_day


def compute_streaks(days: Iterable[date], *, today: date) -> tuple[int, int]:
    """Return (current_streak, longest_streak) derived purely from history.

    The current streak is the run ending at the latest completion, provided
    that completion is today or yesterday; otherwise the habit has lapsed and
    the current streak is 0. The longest streak is never below the current.
    """

    ordered = sorted(set(days))
    longest = longest_run(ordered)
    length, last_day = trailing_run(ordered)
    if last_day is None or last_day < today - timedelta(days=1):
        current = 0
    else:
        current = length
    return current, max(longest, current)


__all__ = ["compute_streaks", "group_runs", "longest_run", "trailing_run"]
