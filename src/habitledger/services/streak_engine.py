"""Streak engine: records completions and maintains per-habit streak counters.

Every mutating operation runs under the habit's lock and inside a single
database transaction, so the ledger write and the counter write are applied
together or not at all.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Callable, Iterator

from sqlmodel import Session

from ..config import GAP_POLICIES, BaseConfig
from ..domain.errors import (
    AlreadyCompleted,
    NotCompleted,
    StateInconsistent,
    StorageError,
    UnknownHabit,
)
from ..domain.repositories import CompletionLedger, StreakStore
from ..infra.database import SessionFactory, storage_errors
from ..infra.repositories.completion import SQLModelCompletionLedger
from ..infra.repositories.streak import SQLModelStreakStore
from ..logging_config import get_logger
from ..models.habit import Habit, HabitStreak
from .habits import compute_streaks, longest_run

logger = get_logger(__name__)

Clock = Callable[[], date]
LedgerFactory = Callable[[Session], CompletionLedger]
StoreFactory = Callable[[Session], StreakStore]


class Outcome(str, Enum):
    """What a complete/uncomplete call actually did."""

    COMPLETED = "completed"
    ALREADY_COMPLETED = "already_completed"
    UNCOMPLETED = "uncompleted"
    NOT_COMPLETED = "not_completed"


@dataclass(frozen=True)
class StreakSnapshot:
    """Read-only copy of a habit's streak counters."""

    habit_id: int
    current_streak: int
    longest_streak: int
    last_completion_day: date | None

    @classmethod
    def from_state(cls, state: HabitStreak) -> "StreakSnapshot":
        return cls(
            habit_id=state.habit_id,
            current_streak=state.current_streak,
            longest_streak=state.longest_streak,
            last_completion_day=state.last_completion_day,
        )

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        day = self.last_completion_day
        data["last_completion_day"] = day.isoformat() if day else None
        return data


@dataclass(frozen=True)
class CompletionResult:
    outcome: Outcome
    day: date
    streak: StreakSnapshot
    recomputed: bool = False

    @property
    def changed(self) -> bool:
        return self.outcome in (Outcome.COMPLETED, Outcome.UNCOMPLETED)


class HabitLocks:
    """Registry of one lock per habit id.

    Operations on the same habit serialize; different habits never contend
    beyond the brief registry lookup. An entry lives only while some caller
    holds or waits for it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}
        self._users: dict[int, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _checkout(self, habit_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(habit_id)
            if lock is None:
                lock = self._locks[habit_id] = threading.Lock()
            self._users[habit_id] = self._users.get(habit_id, 0) + 1
            return lock

    def _checkin(self, habit_id: int) -> None:
        with self._guard:
            remaining = self._users[habit_id] - 1
            if remaining:
                self._users[habit_id] = remaining
            else:
                del self._users[habit_id]
                del self._locks[habit_id]

    @contextmanager
    def hold(self, habit_id: int, timeout: float) -> Iterator[None]:
        lock = self._checkout(habit_id)
        try:
            if not lock.acquire(timeout=timeout):
                raise StorageError(
                    f"Timed out after {timeout:g}s waiting for habit {habit_id} to become available"
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(habit_id)


class StreakEngine:
    """Completion workflow and streak maintenance for habits."""

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        clock: Clock = date.today,
        gap_policy: str = "carry",
        lock_timeout: float = 10.0,
        locks: HabitLocks | None = None,
        ledger_factory: LedgerFactory = SQLModelCompletionLedger,
        store_factory: StoreFactory = SQLModelStreakStore,
    ):
        if gap_policy not in GAP_POLICIES:
            raise ValueError(f"Unknown gap policy {gap_policy!r}")
        self.session_factory = session_factory
        self.clock = clock
        self.gap_policy = gap_policy
        self.lock_timeout = lock_timeout
        self.locks = locks if locks is not None else HabitLocks()
        self.ledger_factory = ledger_factory
        self.store_factory = store_factory

    @classmethod
    def from_config(
        cls, config: BaseConfig, session_factory: SessionFactory, *, clock: Clock = date.today
    ) -> "StreakEngine":
        return cls(
            session_factory,
            clock=clock,
            gap_policy=config.GAP_POLICY,
            lock_timeout=config.LOCK_TIMEOUT,
        )

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------
    @contextmanager
    def _locked_session(self, habit_id: int, action: str) -> Iterator[Session]:
        """Hold the habit lock around one all-or-nothing transaction."""
        with self.locks.hold(habit_id, self.lock_timeout):
            with storage_errors(action), self.session_factory() as session:
                yield session

    @contextmanager
    def _read_session(self, action: str) -> Iterator[Session]:
        with storage_errors(action), self.session_factory() as session:
            yield session

    def _load_state(self, session: Session, habit_id: int) -> HabitStreak:
        if session.get(Habit, habit_id) is None:
            raise UnknownHabit(habit_id)
        state = self.store_factory(session).get(habit_id)
        if state is None:
            logger.error(
                "Streak row missing for existing habit",
                extra={"habit_id": habit_id},
            )
            raise StateInconsistent(habit_id, "streak state row is missing")
        return state

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def complete(self, habit_id: int) -> CompletionResult:
        """Record today's completion and extend the streak.

        Completing an already-completed habit is a successful no-op.
        """
        today = self.clock()
        try:
            with self._locked_session(habit_id, "complete habit") as session:
                ledger = self.ledger_factory(session)
                state = self._load_state(session, habit_id)

                if ledger.has_completion(habit_id, today):
                    return CompletionResult(
                        Outcome.ALREADY_COMPLETED, today, StreakSnapshot.from_state(state)
                    )

                previous_day = state.last_completion_day
                ledger.record_completion(habit_id, today)

                if self.gap_policy == "reset" and previous_day != today - timedelta(days=1):
                    state.current_streak = 1
                else:
                    state.current_streak += 1
                if state.current_streak > state.longest_streak:
                    state.longest_streak = state.current_streak
                state.last_completion_day = today
                self.store_factory(session).save(state)
                snapshot = StreakSnapshot.from_state(state)
        except AlreadyCompleted:
            # Lost an insert race against another process; nothing was applied.
            logger.info("Concurrent completion detected", extra={"habit_id": habit_id})
            return CompletionResult(Outcome.ALREADY_COMPLETED, today, self.get_streak(habit_id))
        except StorageError:
            logger.warning(
                "Completion failed; transaction rolled back",
                extra={"habit_id": habit_id},
                exc_info=True,
            )
            raise

        logger.info(
            "Completion recorded",
            extra={
                "habit_id": habit_id,
                "day": today.isoformat(),
                "current_streak": snapshot.current_streak,
                "longest_streak": snapshot.longest_streak,
            },
        )
        return CompletionResult(Outcome.COMPLETED, today, snapshot)

    def uncomplete(self, habit_id: int) -> CompletionResult:
        """Retract today's completion and shorten the streak.

        When the streak being shortened was also the longest streak, the
        longest streak is recomputed from the full completion history.
        """
        today = self.clock()
        recomputed = False
        try:
            with self._locked_session(habit_id, "uncomplete habit") as session:
                ledger = self.ledger_factory(session)
                state = self._load_state(session, habit_id)
                unchanged = StreakSnapshot.from_state(state)

                if not ledger.retract_completion(habit_id, today):
                    raise NotCompleted(habit_id, today)

                prev_current = state.current_streak
                prev_longest = state.longest_streak
                state.current_streak = max(prev_current - 1, 0)

                if prev_current == prev_longest and prev_current > 0:
                    recomputed = True
                    actual = max(longest_run(ledger.history(habit_id)), state.current_streak)
                    if actual != prev_longest:
                        state.longest_streak = actual

                if state.last_completion_day == today:
                    state.last_completion_day = ledger.latest_before(habit_id, today)
                self.store_factory(session).save(state)
                snapshot = StreakSnapshot.from_state(state)
        except NotCompleted:
            return CompletionResult(Outcome.NOT_COMPLETED, today, unchanged)
        except StorageError:
            logger.warning(
                "Uncompletion failed; transaction rolled back",
                extra={"habit_id": habit_id},
                exc_info=True,
            )
            raise

        logger.info(
            "Completion retracted",
            extra={
                "habit_id": habit_id,
                "day": today.isoformat(),
                "current_streak": snapshot.current_streak,
                "longest_streak": snapshot.longest_streak,
                "recomputed": recomputed,
            },
        )
        return CompletionResult(Outcome.UNCOMPLETED, today, snapshot, recomputed=recomputed)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_streak(self, habit_id: int) -> StreakSnapshot:
        with self._read_session("read streak") as session:
            return StreakSnapshot.from_state(self._load_state(session, habit_id))

    def is_completed_today(self, habit_id: int) -> bool:
        with self._read_session("read completion") as session:
            if session.get(Habit, habit_id) is None:
                raise UnknownHabit(habit_id)
            return self.ledger_factory(session).has_completion(habit_id, self.clock())

    def history(self, habit_id: int) -> list[date]:
        """Ascending completion days for a habit."""
        with self._read_session("read history") as session:
            if session.get(Habit, habit_id) is None:
                raise UnknownHabit(habit_id)
            return self.ledger_factory(session).history(habit_id)

    # ------------------------------------------------------------------
    # Out-of-band consistency checks
    # ------------------------------------------------------------------
    def verify(self, habit_id: int) -> list[str]:
        """Describe every disagreement between the counters and the ledger."""
        with self._read_session("verify streak") as session:
            if session.get(Habit, habit_id) is None:
                raise UnknownHabit(habit_id)
            state = self.store_factory(session).get(habit_id)
            if state is None:
                return ["streak state row is missing"]
            ledger = self.ledger_factory(session)
            history = ledger.history(habit_id)
            completed_today = ledger.has_completion(habit_id, self.clock())

        problems: list[str] = []
        if state.current_streak < 0 or state.longest_streak < 0:
            problems.append("streak counters are negative")
        if state.current_streak > state.longest_streak:
            problems.append(
                f"current streak {state.current_streak} exceeds longest {state.longest_streak}"
            )
        observed = longest_run(history)
        if state.longest_streak < observed:
            problems.append(
                f"longest streak {state.longest_streak} is below the ledger's longest run {observed}"
            )
        if completed_today and state.current_streak == 0:
            problems.append("completed today but current streak is 0")
        last_day = state.last_completion_day
        if last_day is not None and last_day not in history:
            problems.append(f"last completion day {last_day.isoformat()} is not in the ledger")
        elif last_day is None and history:
            problems.append("ledger has completions but last completion day is unset")
        return problems

    def repair(self, habit_id: int) -> StreakSnapshot:
        """Rebuild both counters from the ledger, creating a missing row."""
        today = self.clock()
        with self._locked_session(habit_id, "repair streak") as session:
            if session.get(Habit, habit_id) is None:
                raise UnknownHabit(habit_id)
            store = self.store_factory(session)
            ledger = self.ledger_factory(session)
            history = [day for day in ledger.history(habit_id) if day <= today]
            current, longest = compute_streaks(history, today=today)

            state = store.get(habit_id) or HabitStreak(habit_id=habit_id)
            before = (state.current_streak, state.longest_streak, state.last_completion_day)
            state.current_streak = current
            state.longest_streak = longest
            state.last_completion_day = history[-1] if history else None
            store.save(state)
            snapshot = StreakSnapshot.from_state(state)

        logger.warning(
            "Streak state repaired",
            extra={
                "habit_id": habit_id,
                "before": before,
                "current_streak": snapshot.current_streak,
                "longest_streak": snapshot.longest_streak,
            },
        )
        return snapshot


__all__ = [
    "Clock",
    "CompletionResult",
    "HabitLocks",
    "Outcome",
    "StreakEngine",
    "StreakSnapshot",
]
