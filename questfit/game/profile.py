"""User game profile counters.

The counters are written by workout completion on the client; this service
only reads them (and deducts XP on reward redemption).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from questfit.store import DocumentStore
from questfit.store.paths import user_doc


@dataclass
class UserProfile:
    """Game counters stored on ``users/{userId}``.

    Attributes:
        user_id:          Internal user id.
        xp:               Spendable experience points.
        total_workouts:   Completed workouts.
        total_calories:   Lifetime kcal.
        total_distance:   Lifetime distance in km.
        total_duration:   Lifetime workout time in seconds.
        streak_days:      Current consecutive-day streak.
        redeemed_rewards: Redemption records, oldest first.
    """

    user_id: str
    xp: float = 0
    total_workouts: float = 0
    total_calories: float = 0
    total_distance: float = 0
    total_duration: float = 0
    streak_days: float = 0
    redeemed_rewards: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_document(cls, user_id: str, data: dict[str, Any] | None) -> "UserProfile":
        data = data or {}
        return cls(
            user_id=user_id,
            xp=_number(data.get("xp")),
            total_workouts=_number(data.get("totalWorkouts")),
            total_calories=_number(data.get("totalCalories")),
            total_distance=_number(data.get("totalDistance")),
            total_duration=_number(data.get("totalDuration")),
            streak_days=_number(data.get("streakDays")),
            redeemed_rewards=list(data.get("redeemedRewards") or []),
        )


async def load_profile(store: DocumentStore, user_id: str) -> UserProfile | None:
    data = await store.get(user_doc(user_id))
    if data is None:
        return None
    return UserProfile.from_document(user_id, data)


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value
