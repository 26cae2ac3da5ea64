"""XP reward ladder and redemption."""

from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass
from typing import Any

from questfit.errors import RewardNotRedeemableError
from questfit.game.profile import UserProfile
from questfit.polar.models import utc_now_iso
from questfit.store import DocumentStore
from questfit.store.paths import user_doc

logger = logging.getLogger("questfit.game.rewards")


@dataclass(frozen=True)
class Reward:
    id: str
    name: str
    xp_threshold: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "xpThreshold": self.xp_threshold}


REWARDS: tuple[Reward, ...] = (
    Reward("1", "Reward 1", 1000),
    Reward("2", "Reward 2", 2500),
    Reward("3", "Reward 3", 5000),
    Reward("4", "Reward 4", 10000),
    Reward("5", "Reward 5", 20000),
)

MAX_XP = 20000

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def get_next_reward(xp: float, ladder: tuple[Reward, ...] = REWARDS) -> Reward | None:
    """First reward whose threshold is strictly above ``xp``; None once maxed out."""
    for reward in ladder:
        if reward.xp_threshold > xp:
            return reward
    return None


def get_previous_reward_xp(xp: float, ladder: tuple[Reward, ...] = REWARDS) -> int:
    """Highest threshold already reached, or 0."""
    reached = [r.xp_threshold for r in ladder if r.xp_threshold <= xp]
    return max(reached) if reached else 0


def get_reward_progress(xp: float, max_xp: int = MAX_XP) -> float:
    """Overall progress toward the top of the ladder, clamped to [0, 1]."""
    return min(1.0, max(0.0, xp / max_xp))


def get_tier_progress(xp: float, ladder: tuple[Reward, ...] = REWARDS) -> float:
    """Progress between the last reached threshold and the next one."""
    next_reward = get_next_reward(xp, ladder)
    if next_reward is None:
        return 1.0
    previous = get_previous_reward_xp(xp, ladder)
    span = next_reward.xp_threshold - previous
    return min(1.0, max(0.0, (xp - previous) / span))


def find_reward(reward_id: str, ladder: tuple[Reward, ...] = REWARDS) -> Reward | None:
    return next((r for r in ladder if r.id == reward_id), None)


def rewards_overview(profile: UserProfile) -> dict[str, Any]:
    next_reward = get_next_reward(profile.xp)
    return {
        "xp": profile.xp,
        "maxXp": MAX_XP,
        "progress": get_reward_progress(profile.xp),
        "tierProgress": get_tier_progress(profile.xp),
        "previousRewardXp": get_previous_reward_xp(profile.xp),
        "nextReward": next_reward.to_dict() if next_reward else None,
        "available": [r.to_dict() for r in REWARDS if r.xp_threshold <= profile.xp],
        "redeemedRewards": profile.redeemed_rewards,
    }


def _redemption_code() -> str:
    return "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))


async def redeem_reward(
    store: DocumentStore, profile: UserProfile, reward_id: str
) -> dict[str, Any]:
    """Spend XP on a reward.

    Deducts the reward's threshold from ``xp`` and appends a redemption
    record ``{id, rewardId, name, redeemedAt, code}`` to ``redeemedRewards``.

    Returns:
        The new redemption record.

    Raises:
        RewardNotRedeemableError: Unknown reward id, or not enough XP.
    """
    reward = find_reward(reward_id)
    if reward is None:
        raise RewardNotRedeemableError(f"Unknown reward '{reward_id}'")
    if profile.xp < reward.xp_threshold:
        raise RewardNotRedeemableError(
            f"{reward.name} needs {reward.xp_threshold} XP, user has {profile.xp}"
        )

    record = {
        "id": str(int(time.time() * 1000)),
        "rewardId": reward.id,
        "name": reward.name,
        "redeemedAt": utc_now_iso(),
        "code": _redemption_code(),
    }
    profile.xp -= reward.xp_threshold
    profile.redeemed_rewards = [*profile.redeemed_rewards, record]

    await store.set(
        user_doc(profile.user_id),
        {"xp": profile.xp, "redeemedRewards": profile.redeemed_rewards},
        merge=True,
    )
    logger.info("User %s redeemed %s", profile.user_id, reward.name)
    return record
