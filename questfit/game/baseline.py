"""Historical Polar baseline over the last 7 or 30 exercise days.

Each stored exercises day (``{date, exercises: [...], count}``) is reduced
to an average heart rate and a calorie total; the cardio-load record for the
same date contributes its ``cardio_load_ratio``.  The baseline averages those
per-day values, ignoring days where a value is absent.
"""

from __future__ import annotations

import asyncio
import math
from typing import Any

from questfit.game.achievements import round_half_up
from questfit.polar.models import CARDIO_LOAD, EXERCISES
from questfit.store import DocumentStore
from questfit.store.paths import polar_collection

RANGES: dict[str, int] = {"7d": 7, "30d": 30}


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) else None


def _avg(values: list[float | None]) -> float | None:
    valid = [v for v in values if v is not None]
    if not valid:
        return None
    return sum(valid) / len(valid)


def summarize_exercise_day(document: dict[str, Any] | None) -> tuple[float | None, float | None]:
    """Return ``(avg_hr, calories)`` for one exercises day document."""
    exercises = (document or {}).get("exercises")
    if not isinstance(exercises, list) or not exercises:
        return None, None

    heart_rates = [_number((ex.get("heart_rate") or {}).get("average")) for ex in exercises]
    calories = sum(c for c in (_number(ex.get("calories")) for ex in exercises) if c is not None)
    return _avg(heart_rates), (calories if calories > 0 else None)


def cardio_ratio(document: dict[str, Any] | None) -> float | None:
    return _number(((document or {}).get("data") or {}).get("cardio_load_ratio"))


def compute_baseline(
    range_key: str,
    exercise_days: list[tuple[str, dict[str, Any]]],
    cardio_by_date: dict[str, dict[str, Any]],
) -> dict[str, Any]:
    """Aggregate per-day summaries into a baseline.

    Args:
        range_key:      '7d' or '30d', echoed in the result.
        exercise_days:  ``(date, document)`` pairs, newest first.
        cardio_by_date: Cardio-load documents keyed by date.

    Returns:
        Dict with ``range``, ``daysWithAnyData``, ``avgExerciseHr``,
        ``avgExerciseCalories``, ``avgCardioLoadRatio`` and ``bestWorkout``.
        Heart rate and calories are whole numbers; the ratio has three
        decimals.
    """
    days = []
    for day, document in exercise_days:
        avg_hr, calories = summarize_exercise_day(document)
        days.append(
            {
                "date": day,
                "avgHr": avg_hr,
                "calories": calories,
                "cardioLoad": cardio_ratio(cardio_by_date.get(day)),
            }
        )

    with_data = [
        d
        for d in days
        if d["avgHr"] is not None or d["calories"] is not None or d["cardioLoad"] is not None
    ]
    avg_hr = _avg([d["avgHr"] for d in days])
    avg_calories = _avg([d["calories"] for d in days])
    avg_ratio = _avg([d["cardioLoad"] for d in days])

    best = None
    if days:
        # calories first, then cardio load, then heart rate; first day wins ties
        winner = max(
            days,
            key=lambda d: (
                _or_minus_one(d["calories"]),
                _or_minus_one(d["cardioLoad"]),
                _or_minus_one(d["avgHr"]),
            ),
        )
        best = {
            "date": winner["date"],
            "avgHr": _maybe_round(winner["avgHr"]),
            "calories": _maybe_round(winner["calories"]),
            "cardioLoad": _maybe_round(winner["cardioLoad"], 3),
        }

    return {
        "range": range_key,
        "daysWithAnyData": len(with_data),
        "avgExerciseHr": _maybe_round(avg_hr),
        "avgExerciseCalories": _maybe_round(avg_calories),
        "avgCardioLoadRatio": _maybe_round(avg_ratio, 3),
        "bestWorkout": best,
    }


async def load_baseline(store: DocumentStore, user_id: str, range_key: str) -> dict[str, Any]:
    """Read the latest exercise and cardio-load days and compute the baseline.

    Raises:
        ValueError: ``range_key`` is not '7d' or '30d'.
    """
    if range_key not in RANGES:
        raise ValueError(f"Unknown baseline range '{range_key}'")
    n = RANGES[range_key]

    exercise_days, cardio_days = await asyncio.gather(
        store.list_documents(
            polar_collection(user_id, EXERCISES), order_by="date", descending=True, limit=n
        ),
        store.list_documents(
            polar_collection(user_id, CARDIO_LOAD), order_by="date", descending=True, limit=n
        ),
    )
    return compute_baseline(range_key, exercise_days, dict(cardio_days))


def _or_minus_one(value: float | None) -> float:
    return -1 if value is None else value


def _maybe_round(value: float | None, digits: int = 0) -> float | None:
    return None if value is None else round_half_up(value, digits)
