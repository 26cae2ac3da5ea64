"""Polar Accesslink endpoints: account linking, proxies and on-demand sync.

Vendor failures are raised as ``PolarAPIError`` and turned into responses by
the exception handlers registered in ``questfit.main``.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse

from questfit.dependencies import Session
from questfit.models import (
    DisconnectRequest,
    OAuthExchangeRequest,
    PhysicalInfoRequest,
    PolarUserRequest,
    RegisterUserRequest,
    SyncRequest,
)
from questfit.polar.models import LinkedAccount
from questfit.services.accounts import disconnect_account
from questfit.sync.reconciler import ReconcilerState

router = APIRouter(prefix="/polar", tags=["polar"])
logger = logging.getLogger("questfit.routers.polar")


# ---------- Account linking ----------


@router.get("/oauth/authorize-url")
async def authorize_url(session: Session, redirect_uri: str | None = None) -> dict:
    return {"url": session.polar.authorization_url(redirect_uri)}


@router.post("/oauth/exchange")
async def oauth_exchange(session: Session, body: OAuthExchangeRequest) -> dict:
    """Exchange the code, register the Polar user and store the link."""
    tokens = await session.polar.exchange_code(body.code, body.redirect_uri)
    account = await session.accounts.link_account(body.user_id, tokens, body.consent_given)
    registration = await session.polar.register_user(tokens.access_token, body.user_id)
    return {
        "success": True,
        "polarUserId": account.polar_user_id,
        "alreadyRegistered": registration.already_registered,
    }


@router.post("/register-user")
async def register_user(session: Session, body: RegisterUserRequest) -> dict:
    result = await session.polar.register_user(body.access_token, body.user_id)
    return result.to_response()


@router.post("/user-data")
async def user_data(session: Session, body: PolarUserRequest) -> Any:
    return await session.polar.get_user(body.access_token, body.polar_user_id)


@router.delete("/disconnect-user")
async def disconnect_user(session: Session, body: DisconnectRequest) -> dict:
    if body.user_id:
        await disconnect_account(session.accounts, session.polar, body.user_id)
    elif body.access_token and body.polar_user_id:
        await session.polar.delete_user(body.access_token, body.polar_user_id)
    else:
        raise HTTPException(
            status_code=400, detail="Missing userId or accessToken and polarUserId"
        )
    return {"success": True, "message": "User deleted from Polar"}


# ---------- Physical information ----------


@router.post("/physical-info")
async def physical_info(session: Session, body: PhysicalInfoRequest) -> dict:
    """Pull pending physical information; stored only when ``userId`` is given."""
    account = LinkedAccount(
        user_id=body.user_id or body.polar_user_id,
        polar_user_id=body.polar_user_id,
        access_token=body.access_token,
    )
    result = await session.reconciler(persist=body.user_id is not None).reconcile(account)
    if result.state is ReconcilerState.NO_NEW_DATA:
        return {"message": "No new physical information available", **result.to_response()}
    return {"message": "Physical information synced successfully", **result.to_response()}


# ---------- Webhook management ----------


@router.post("/webhooks", status_code=201)
async def create_webhook(session: Session) -> Any:
    settings = session.settings
    result = await session.polar.create_webhook(
        settings.polar_webhook_events, settings.polar_webhook_url
    )
    if result.already_exists:
        return JSONResponse(
            status_code=200,
            content={"success": True, "alreadyExists": True, "message": "Webhook already exists"},
        )
    return {"success": True, "data": result.data, "signatureSecret": result.signature_secret}


@router.delete("/webhooks")
async def delete_webhook(session: Session, webhook_id: str | None = None) -> Any:
    deletion = await session.polar.delete_webhook(webhook_id)
    if not deletion.found:
        return JSONResponse(
            status_code=404, content={"success": False, "message": "No webhooks found"}
        )
    return {
        "success": True,
        "message": "Webhook deleted successfully",
        "deletedWebhookId": deletion.webhook_id,
    }


# ---------- On-demand sync ----------


@router.post("/sync")
async def sync_user(session: Session, body: SyncRequest) -> dict:
    summary = await session.orchestrator().sync_user(body.user_id, body.day)
    return summary.to_dict()
