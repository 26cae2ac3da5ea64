"""Gamification read endpoints: achievements, rewards, baseline."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from questfit.dependencies import Session, SessionContext
from questfit.game.achievements import sync_user_achievements
from questfit.game.baseline import load_baseline
from questfit.game.definitions import ACHIEVEMENTS
from questfit.game.profile import UserProfile, load_profile
from questfit.game.rewards import redeem_reward, rewards_overview
from questfit.models import RedeemRequest

router = APIRouter(prefix="/game", tags=["game"])


async def _profile_or_404(session: SessionContext, user_id: str) -> UserProfile:
    profile = await load_profile(session.store, user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    return profile


@router.get("/{user_id}/achievements")
async def get_achievements(user_id: str, session: Session) -> dict:
    """Recompute achievements from the profile counters and return them."""
    profile = await _profile_or_404(session, user_id)
    document = await sync_user_achievements(session.store, user_id, profile)
    return {
        "definitions": [d.to_dict() for d in ACHIEVEMENTS],
        "progress": document["achievements"],
        "updatedAt": document.get("updatedAt"),
    }


@router.get("/{user_id}/rewards")
async def get_rewards(user_id: str, session: Session) -> dict:
    profile = await _profile_or_404(session, user_id)
    return rewards_overview(profile)


@router.post("/{user_id}/redeem")
async def redeem(user_id: str, body: RedeemRequest, session: Session) -> dict:
    profile = await _profile_or_404(session, user_id)
    record = await redeem_reward(session.store, profile, body.reward_id)
    return {"success": True, "redeemed": record, "xp": profile.xp}


@router.get("/{user_id}/baseline")
async def get_baseline(
    user_id: str,
    session: Session,
    range_key: str = Query(default="7d", alias="range", pattern="^(7d|30d)$"),
) -> dict:
    return await load_baseline(session.store, user_id, range_key)
