"""Habit payload validation."""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class HabitFrequency(str, Enum):
    """Frequencies a habit may declare. Streaks treat all of them as daily."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MULTIPLE_TIMES_WEEK = "multiple_times_week"


class HabitForm(BaseModel):
    """Payload for creating or editing a habit."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(default="", description="Short label for the habit", max_length=100)
    description: str = Field(default="", description="Optional details about the habit", max_length=400)
    frequency: HabitFrequency = Field(default=HabitFrequency.DAILY, description="Declared frequency")
    target_count: int = Field(default=1, ge=1, le=100, description="Completions aimed for per period")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        """Ensure the habit name is present."""

        if not value:
            raise ValueError("Habit name is required")
        return value

    @field_validator("frequency", mode="before")
    @classmethod
    def default_frequency(cls, value: Any) -> Any:
        """Blank frequency falls back to daily."""

        if value in (None, ""):
            return HabitFrequency.DAILY
        return value

    @field_validator("target_count", mode="before")
    @classmethod
    def default_target(cls, value: Any) -> Any:
        """Missing or zero target falls back to one completion."""

        if value in (None, "", 0):
            return 1
        return value

    @classmethod
    def parse(cls, payload: Mapping[str, Any]) -> tuple["HabitForm | None", dict[str, list[str]]]:
        """Validate a payload, returning (form, {}) or (None, field errors)."""

        try:
            return cls.model_validate(dict(payload)), {}
        except ValidationError as exc:
            structured: dict[str, list[str]] = {}
            for error in exc.errors(include_url=False):
                loc = error.get("loc", ())
                key = str(loc[0]) if loc else "__root__"
                message = error.get("msg", "Invalid value")
                # pydantic prefixes custom validator messages with "Value error, "
                structured.setdefault(key, []).append(message.removeprefix("Value error, "))
            return None, structured


__all__ = ["HabitForm", "HabitFrequency"]
