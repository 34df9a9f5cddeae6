"""Blueprint exports."""

from . import habits, health, stats

__all__ = [
    "habits",
    "health",
    "stats",
]
