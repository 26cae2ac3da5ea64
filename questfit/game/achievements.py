"""Achievement progress computation and write-back.

Progress lives in ``users/{userId}/meta/achievements``::

    {"userId": ..., "updatedAt": ...,
     "achievements": {"<id>": {"achievementId", "progress", "unlocked", "unlockedAt"?}}}

Unlocking is monotonic: once ``unlocked`` is True it stays True and
``unlockedAt`` is never rewritten, even if the underlying counter drops
(XP spent on a reward, for example).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from questfit.game.definitions import ACHIEVEMENTS, AchievementDefinition
from questfit.game.profile import UserProfile
from questfit.polar.models import utc_now_iso
from questfit.store import DocumentStore
from questfit.store.paths import achievements_doc

logger = logging.getLogger("questfit.game.achievements")


@dataclass
class AchievementProgress:
    achievement_id: str
    progress: float
    unlocked: bool
    unlocked_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AchievementProgress":
        return cls(
            achievement_id=data.get("achievementId", ""),
            progress=data.get("progress", 0),
            unlocked=data.get("unlocked") is True,
            unlocked_at=data.get("unlockedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "achievementId": self.achievement_id,
            "progress": self.progress,
            "unlocked": self.unlocked,
        }
        if self.unlocked_at:
            out["unlockedAt"] = self.unlocked_at
        return out


def get_metric_value(profile: UserProfile, definition: AchievementDefinition) -> float:
    """Read the counter an achievement is measured against.

    ``totalDurationMinutes`` converts the stored seconds to whole minutes.
    Unknown metrics evaluate to 0.
    """
    metric = definition.metric
    if metric == "totalWorkouts":
        return profile.total_workouts
    if metric == "totalCalories":
        return profile.total_calories
    if metric == "totalDistanceKm":
        return profile.total_distance
    if metric == "totalDurationMinutes":
        return round_half_up(profile.total_duration / 60)
    if metric == "xp":
        return profile.xp
    if metric == "streakDays":
        return profile.streak_days
    return 0


def compute_achievements_progress(
    profile: UserProfile,
    existing: dict[str, Any] | None = None,
    definitions: tuple[AchievementDefinition, ...] = ACHIEVEMENTS,
    now: str | None = None,
) -> dict[str, dict[str, Any]]:
    """Recompute every achievement against the profile counters.

    Args:
        profile:     Current counters.
        existing:    Stored achievements document, if any.
        definitions: Achievement catalogue.
        now:         Timestamp for newly unlocked achievements.

    Returns:
        Progress dicts keyed by achievement id.  Entries in ``existing`` with no
        matching definition are carried over untouched.
    """
    progress: dict[str, dict[str, Any]] = dict((existing or {}).get("achievements") or {})
    stamp = now or utc_now_iso()

    for definition in definitions:
        value = get_metric_value(profile, definition)
        previous = progress.get(definition.id)
        prev = AchievementProgress.from_dict(previous) if previous else None

        already_unlocked = prev is not None and prev.unlocked
        should_unlock = value >= definition.threshold

        if already_unlocked:
            unlocked_at = prev.unlocked_at
        elif should_unlock:
            unlocked_at = stamp
        else:
            unlocked_at = None

        progress[definition.id] = AchievementProgress(
            achievement_id=definition.id,
            progress=min(value, definition.threshold),
            unlocked=already_unlocked or should_unlock,
            unlocked_at=unlocked_at,
        ).to_dict()

    return progress


async def get_user_achievements(store: DocumentStore, user_id: str) -> dict[str, Any] | None:
    return await store.get(achievements_doc(user_id))


async def sync_user_achievements(
    store: DocumentStore, user_id: str, profile: UserProfile
) -> dict[str, Any]:
    """Recompute and persist a user's achievements.

    The write is a merge and is skipped entirely when the achievements map is
    unchanged, so ``updatedAt`` only moves when progress does.

    Returns:
        The achievements document as stored.
    """
    existing = await get_user_achievements(store, user_id)
    computed = compute_achievements_progress(profile, existing)

    if existing is not None and existing.get("achievements") == computed:
        logger.debug("Achievements unchanged for %s", user_id)
        return existing

    document = {"userId": user_id, "updatedAt": utc_now_iso(), "achievements": computed}
    await store.set(achievements_doc(user_id), document, merge=True)

    newly_unlocked = [
        aid
        for aid, entry in computed.items()
        if entry.get("unlocked")
        and not ((existing or {}).get("achievements") or {}).get(aid, {}).get("unlocked")
    ]
    if newly_unlocked:
        logger.info("User %s unlocked %s", user_id, ", ".join(newly_unlocked))
    return document


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up, as the mobile client displays numbers."""
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded
