"""Sleep duration and goal-difference formatting."""

from __future__ import annotations

from datetime import datetime
from typing import Any

GOAL_ACHIEVED = "Goal achieved"


def format_duration(seconds: int) -> str:
    """``"{h}h {m}m"`` for a duration in seconds."""
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


def sleep_goal_diff(actual_seconds: int, goal_seconds: int) -> str:
    """Describe how far a night's sleep was from the goal.

    Args:
        actual_seconds: Time asleep.
        goal_seconds:   Sleep goal.

    Returns:
        ``"Exceeded by 1h 5m"``, ``"Exceeded by 45m"``, ``"1h 5m to goal"``,
        ``"30m to goal"``, or ``"Goal achieved"`` when the difference is zero
        or under a minute.
    """
    diff = actual_seconds - goal_seconds
    hours = abs(diff) // 3600
    minutes = (abs(diff) % 3600) // 60

    if diff == 0 or (hours == 0 and minutes == 0):
        return GOAL_ACHIEVED
    if diff > 0:
        return f"Exceeded by {hours}h {minutes}m" if hours else f"Exceeded by {minutes}m"
    return f"{hours}h {minutes}m to goal" if hours else f"{minutes}m to goal"


def sleep_duration_seconds(start: str, end: str) -> int:
    """Whole seconds between two ISO-8601 timestamps."""
    delta = _parse(end) - _parse(start)
    return int(delta.total_seconds())


def summarize_sleep(document: dict[str, Any]) -> dict[str, Any]:
    """Dashboard view of one stored sleep record.

    Duration is ``"N/A"`` without both start and end times; ``goalDiff`` is
    empty without a ``sleep_goal``.
    """
    duration = "N/A"
    goal_diff = ""
    start, end = document.get("sleep_start_time"), document.get("sleep_end_time")

    if start and end:
        seconds = sleep_duration_seconds(start, end)
        duration = format_duration(seconds)
        goal = document.get("sleep_goal")
        if goal:
            goal_diff = sleep_goal_diff(seconds, int(goal))

    return {
        "duration": duration,
        "quality": document.get("sleep_score"),
        "goalDiff": goal_diff,
    }


def _parse(value: str) -> datetime:
    # Polar sends a trailing Z on some payloads
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
