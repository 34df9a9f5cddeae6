"""Tests for consecutive-run detection over completion days.

These cover the arithmetic behind the longest-streak recomputation:
- empty histories
- single and multiple runs
- month boundaries
- duplicates and ordering
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from habitledger.services.habits import compute_streaks, group_runs, longest_run, trailing_run


def _days(start: date, *offsets: int) -> list[date]:
    return [start + timedelta(days=offset) for offset in offsets]


D = date(2024, 1, 1)


class TestGroupRuns:
    def test_empty_history_has_no_runs(self):
        assert group_runs([]) == {}
        assert longest_run([]) == 0

    def test_single_day_is_a_run_of_one(self):
        assert longest_run([D]) == 1

    def test_days_share_anchor_within_a_run(self):
        runs = group_runs(_days(D, 0, 1, 2, 5, 6))

        assert sorted(runs.values(), reverse=True) == [3, 2]
        assert len(runs) == 2

    def test_anchor_is_day_minus_rank(self):
        runs = group_runs(_days(D, 0, 1, 2))

        assert runs == {D - timedelta(days=1): 3}

    def test_run_spans_month_boundary(self):
        days = [date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 2)]
        assert longest_run(days) == 4

    def test_run_spans_leap_day(self):
        days = [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]
        assert longest_run(days) == 3

    def test_multiple_runs_returns_longest(self):
        days = _days(D, 0, 1, 2) + _days(D, *range(9, 16)) + _days(D, 19, 20, 21, 22)
        assert longest_run(days) == 7

    def test_duplicate_days_are_counted_once(self):
        assert longest_run([D, D, D + timedelta(days=1)]) == 2

    def test_unsorted_input_is_rejected(self):
        with pytest.raises(ValueError):
            group_runs([D + timedelta(days=3), D])

    def test_sequence_is_restartable(self):
        days = _days(D, 0, 1, 4)
        assert longest_run(days) == longest_run(days) == 2


class TestTrailingRun:
    def test_empty(self):
        assert trailing_run([]) == (0, None)

    def test_trailing_run_after_gap(self):
        length, last = trailing_run(_days(D, 0, 1, 2, 5, 6))
        assert length == 2
        assert last == D + timedelta(days=6)


class TestComputeStreaks:
    def test_no_history(self):
        assert compute_streaks([], today=D) == (0, 0)

    def test_run_ending_today_is_current(self):
        today = D + timedelta(days=6)
        assert compute_streaks(_days(D, 0, 1, 2, 5, 6), today=today) == (2, 3)

    def test_run_ending_yesterday_is_still_current(self):
        today = D + timedelta(days=7)
        assert compute_streaks(_days(D, 5, 6), today=today) == (2, 2)

    def test_lapsed_run_is_not_current(self):
        today = D + timedelta(days=10)
        assert compute_streaks(_days(D, 0, 1, 2), today=today) == (0, 3)

    def test_accepts_unsorted_iterables(self):
        today = D + timedelta(days=2)
        assert compute_streaks(iter(_days(D, 2, 0, 1)), today=today) == (3, 3)
