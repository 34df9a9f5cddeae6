"""Concurrency tests for per-habit serialization in the streak engine."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from habitledger.domain.errors import StorageError, UnknownHabit
from habitledger.services.streak_engine import HabitLocks, Outcome, StreakEngine


def test_concurrent_completions_of_same_habit_count_once(engine, habit_factory, ledger_days, clock):
    habit = habit_factory(name="Contended")
    barrier = threading.Barrier(8)

    def _complete():
        barrier.wait()
        return engine.complete(habit.id)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: _complete(), range(8)))

    outcomes = [result.outcome for result in results]
    assert outcomes.count(Outcome.COMPLETED) == 1
    assert outcomes.count(Outcome.ALREADY_COMPLETED) == 7
    snapshot = engine.get_streak(habit.id)
    assert (snapshot.current_streak, snapshot.longest_streak) == (1, 1)
    assert ledger_days(habit.id) == [clock.today]


def test_different_habits_complete_in_parallel(engine, habit_factory):
    habits = [habit_factory(name=f"Habit {index}") for index in range(4)]

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda habit: engine.complete(habit.id), habits))

    assert all(result.outcome is Outcome.COMPLETED for result in results)
    for habit in habits:
        assert engine.get_streak(habit.id).current_streak == 1


def test_complete_and_uncomplete_race_leaves_consistent_state(engine, habit_factory, seed_history, clock):
    habit = habit_factory(name="Tug of war")
    # A three-day run ending yesterday makes every retraction take the recompute path.
    seed_history(habit.id, [clock.today - timedelta(days=i) for i in range(1, 4)], current=3, longest=3)
    barrier = threading.Barrier(8)

    def _toggle(index: int):
        barrier.wait()
        for _ in range(5):
            if index % 2:
                engine.uncomplete(habit.id)
            else:
                engine.complete(habit.id)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(_toggle, range(8)))

    assert engine.verify(habit.id) == []
    snapshot = engine.get_streak(habit.id)
    if engine.is_completed_today(habit.id):
        assert (snapshot.current_streak, snapshot.longest_streak) == (4, 4)
    else:
        assert (snapshot.current_streak, snapshot.longest_streak) == (3, 3)


def test_lock_timeout_surfaces_storage_error(session_factory, habit_factory, clock, ledger_days):
    locks = HabitLocks()
    engine = StreakEngine(session_factory, clock=clock, lock_timeout=0.05, locks=locks)
    habit = habit_factory(name="Busy")
    held = threading.Event()
    release = threading.Event()

    def _hold_habit():
        with locks.hold(habit.id, timeout=1.0):
            held.set()
            release.wait(5)

    holder = threading.Thread(target=_hold_habit)
    holder.start()
    assert held.wait(5)
    try:
        with pytest.raises(StorageError):
            engine.complete(habit.id)
    finally:
        release.set()
        holder.join()

    assert ledger_days(habit.id) == []
    assert len(locks) == 0
    assert engine.complete(habit.id).outcome is Outcome.COMPLETED


def test_locks_are_per_habit():
    locks = HabitLocks()

    with locks.hold(1, timeout=1.0):
        # Another habit is not blocked by the first one's lock.
        with locks.hold(2, timeout=0.05):
            assert len(locks) == 2
        assert len(locks) == 1

    assert len(locks) == 0


def test_lock_registry_is_empty_after_unknown_ids(engine):
    for habit_id in range(1000, 1500):
        with pytest.raises(UnknownHabit):
            engine.complete(habit_id)
        with pytest.raises(UnknownHabit):
            engine.uncomplete(habit_id)

    assert len(engine.locks) == 0


def test_lock_registry_is_empty_after_habit_deleted(engine, habit_factory, habit_repo):
    habit = habit_factory(name="Short-lived")
    engine.complete(habit.id)
    engine.uncomplete(habit.id)

    assert habit_repo.delete(habit.id) is True
    assert len(engine.locks) == 0
