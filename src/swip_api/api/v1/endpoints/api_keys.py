# src/swip_api/api/v1/endpoints/api_keys.py
"""Developer-portal API key management."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, status
from sqlalchemy import select

from swip_api.api.v1.dependencies import (
    ApiKeyServiceDep,
    CurrentUserDep,
    SessionDep,
    rate_limited,
)
from swip_api.core.errors import Conflict, NotFound
from swip_api.models import ApiKey, App
from swip_api.schemas.api_key import ApiKeyAction, ApiKeyCreate, ApiKeyCreated, ApiKeyResponse

router = APIRouter(prefix="/api-keys", tags=["api-keys"])


def _get_owned_key_or_404(
    db: SessionDep, api_keys: ApiKeyServiceDep, key_id: str, user_id: str
) -> ApiKey:
    api_key = api_keys.get_owned_key(db, key_id, user_id)
    if api_key is None:
        raise NotFound("API key not found or access denied")
    return api_key


@router.get("/", dependencies=[Depends(rate_limited("keys:list"))])
async def list_api_keys(
    current_user: CurrentUserDep,
    db: SessionDep,
    api_keys: ApiKeyServiceDep,
) -> dict[str, object]:
    """List every key on the caller's apps, newest first."""
    keys = api_keys.list_keys(db, current_user.id)
    return {
        "ok": True,
        "keys": [ApiKeyResponse.model_validate(key).model_dump(mode="json") for key in keys],
    }


@router.post(
    "/",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiKeyCreated,
    dependencies=[Depends(rate_limited("keys:create"))],
)
async def create_api_key(
    key_data: ApiKeyCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    api_keys: ApiKeyServiceDep,
) -> ApiKeyCreated:
    """Generate a key for an owned app. The secret is returned only here."""
    app = db.execute(
        select(App).where(App.id == key_data.app_id, App.owner_id == current_user.id)
    ).scalar_one_or_none()
    if app is None:
        raise NotFound("App not found or access denied")

    # bcrypt hashing blocks; run it off the event loop.
    api_key, secret = await asyncio.to_thread(
        api_keys.issue_key,
        db,
        app=app,
        user_id=current_user.id,
        name=key_data.key_name,
        environment=key_data.environment,
    )
    return ApiKeyCreated(id=api_key.id, api_key=secret, preview=api_key.preview)


@router.patch("/{key_id}", dependencies=[Depends(rate_limited("keys:update"))])
async def update_api_key(
    key_id: str,
    action: ApiKeyAction,
    current_user: CurrentUserDep,
    db: SessionDep,
    api_keys: ApiKeyServiceDep,
) -> dict[str, object]:
    """Revoke or reactivate a key."""
    api_key = _get_owned_key_or_404(db, api_keys, key_id, current_user.id)
    revoke = action.action == "revoke"
    if api_key.revoked == revoke:
        raise Conflict(f"API key is already {'revoked' if revoke else 'active'}")

    api_keys.set_revoked(db, api_key, revoke)
    return {
        "ok": True,
        "message": f"API key {action.action}d successfully",
        "revoked": revoke,
    }


@router.delete("/{key_id}", dependencies=[Depends(rate_limited("keys:delete"))])
async def delete_api_key(
    key_id: str,
    current_user: CurrentUserDep,
    db: SessionDep,
    api_keys: ApiKeyServiceDep,
) -> dict[str, object]:
    """Permanently delete a key."""
    api_key = _get_owned_key_or_404(db, api_keys, key_id, current_user.id)
    api_keys.delete_key(db, api_key)
    return {"ok": True, "message": "API key permanently deleted"}
