"""Pydantic request bodies for the HTTP surface.

Field names follow the mobile client (camelCase on the wire).
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class QuestFitBase(BaseModel):
    """Base model with shared config for all request schemas."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# ---------- Polar proxy ----------


class RegisterUserRequest(QuestFitBase):
    access_token: str = Field(alias="accessToken", min_length=1)
    user_id: str = Field(alias="userId", min_length=1)


class PolarUserRequest(QuestFitBase):
    access_token: str = Field(alias="accessToken", min_length=1)
    polar_user_id: str = Field(alias="polarUserId", min_length=1)


class DisconnectRequest(QuestFitBase):
    """Either a QuestFit ``userId`` (stored credentials) or an explicit token pair."""

    user_id: str | None = Field(default=None, alias="userId")
    access_token: str | None = Field(default=None, alias="accessToken")
    polar_user_id: str | None = Field(default=None, alias="polarUserId")


class PhysicalInfoRequest(PolarUserRequest):
    user_id: str | None = Field(default=None, alias="userId")


class OAuthExchangeRequest(QuestFitBase):
    code: str = Field(min_length=1)
    user_id: str = Field(alias="userId", min_length=1)
    redirect_uri: str | None = Field(default=None, alias="redirectUri")
    consent_given: bool = Field(default=True, alias="consentGiven")


class SyncRequest(QuestFitBase):
    user_id: str = Field(alias="userId", min_length=1)
    day: date | None = Field(default=None, alias="date")


# ---------- Game / dashboard ----------


class RedeemRequest(QuestFitBase):
    reward_id: str = Field(alias="rewardId", min_length=1)


class SelectedUsersRequest(QuestFitBase):
    user_ids: list[str] = Field(alias="userIds")
