"""Habit routes: directory CRUD plus the completion workflow."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from flask import jsonify, request

from ...domain.errors import UnknownHabit
from ...extensions import get_services
from ...infra.database import storage_errors
from ...infra.repositories.completion import SQLModelCompletionLedger
from ...models.habit import Habit
from ...services.streak_engine import CompletionResult, StreakSnapshot
from . import bp
from .forms import HabitForm

HISTORY_DAYS = 30  # Days of completions included in the detail view


def _habit_payload(habit: Habit, streak: StreakSnapshot, completed_today: bool) -> dict[str, Any]:
    return {
        "id": habit.id,
        "name": habit.name,
        "description": habit.description,
        "frequency": habit.frequency,
        "target_count": habit.target_count,
        "created_at": habit.created_at.isoformat(),
        "updated_at": habit.updated_at.isoformat(),
        "current_streak": streak.current_streak,
        "longest_streak": streak.longest_streak,
        "last_completion_day": streak.to_dict()["last_completion_day"],
        "is_completed_today": completed_today,
    }


def _describe(habit: Habit) -> dict[str, Any]:
    streaks = get_services().streaks
    return _habit_payload(habit, streaks.get_streak(habit.id), streaks.is_completed_today(habit.id))


def _require_habit(habit_id: int) -> Habit:
    habit = get_services().habits.get_by_id(habit_id)
    if habit is None:
        raise UnknownHabit(habit_id)
    return habit


def _json_body() -> dict[str, Any] | None:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else None


def _invalid(errors: dict[str, list[str]]):
    return jsonify({"error": "Validation failed", "fields": errors}), 400


def _completion_response(result: CompletionResult, message: str):
    return jsonify(
        {
            "message": message,
            "habit_id": result.streak.habit_id,
            "outcome": result.outcome.value,
            "day": result.day.isoformat(),
            "recomputed": result.recomputed,
            "streak": result.streak.to_dict(),
        }
    )


@bp.get("")
def list_habits():
    """List habits newest first with their streak counters."""

    habits = get_services().habits.list_all()
    return jsonify([_describe(habit) for habit in habits])


@bp.post("")
def create_habit():
    """Create a habit; frequency defaults to daily and target to 1."""

    body = _json_body()
    if body is None:
        return jsonify({"error": "Invalid request body"}), 400
    form, errors = HabitForm.parse(body)
    if form is None:
        return _invalid(errors)

    habit = get_services().habits.create(
        Habit(
            name=form.name,
            description=form.description,
            frequency=form.frequency.value,
            target_count=form.target_count,
        )
    )
    return jsonify(_describe(habit)), 201


@bp.get("/<int:habit_id>")
def get_habit(habit_id: int):
    """Return one habit with its recent completion days."""

    services = get_services()
    habit = _require_habit(habit_id)
    payload = _describe(habit)

    today = services.today()
    start = today - timedelta(days=HISTORY_DAYS - 1)
    with storage_errors("read recent completions"), services.session_factory() as session:
        recent = SQLModelCompletionLedger(session).completions_between(habit_id, start, today)
    payload["recent_completions"] = [day.isoformat() for day in recent]
    return jsonify(payload)


@bp.put("/<int:habit_id>")
def update_habit(habit_id: int):
    """Update a habit; omitted fields keep their stored values."""

    body = _json_body()
    if body is None:
        return jsonify({"error": "Invalid request body"}), 400

    existing = _require_habit(habit_id)
    merged = {
        "name": existing.name,
        "description": existing.description,
        "frequency": existing.frequency,
        "target_count": existing.target_count,
        **body,
    }
    form, errors = HabitForm.parse(merged)
    if form is None:
        return _invalid(errors)

    existing.name = form.name
    existing.description = form.description
    existing.frequency = form.frequency.value
    existing.target_count = form.target_count
    updated = get_services().habits.update(existing)
    return jsonify(_describe(updated))


@bp.delete("/<int:habit_id>")
def delete_habit(habit_id: int):
    """Delete a habit together with its completions and streak state."""

    if not get_services().habits.delete(habit_id):
        raise UnknownHabit(habit_id)
    return jsonify({"message": "Habit deleted successfully", "habit_id": habit_id})


@bp.post("/<int:habit_id>/complete")
def complete_habit(habit_id: int):
    """Mark the habit complete for today (idempotent)."""

    result = get_services().streaks.complete(habit_id)
    return _completion_response(result, "Habit completed successfully")


@bp.delete("/<int:habit_id>/complete")
def uncomplete_habit(habit_id: int):
    """Undo today's completion (no-op when nothing to undo)."""

    result = get_services().streaks.uncomplete(habit_id)
    return _completion_response(result, "Habit uncompleted successfully")


@bp.get("/<int:habit_id>/streak")
def get_streak(habit_id: int):
    """Return the streak counters for a habit."""

    services = get_services()
    snapshot = services.streaks.get_streak(habit_id)
    payload = snapshot.to_dict()
    payload["is_completed_today"] = services.streaks.is_completed_today(habit_id)
    return jsonify(payload)
