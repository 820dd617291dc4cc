# src/swip_api/schemas/api_key.py
"""Developer-portal API key schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class ApiKeyCreate(BaseModel):
    """Schema for generating a new key for an owned app."""

    model_config = ConfigDict(populate_by_name=True)

    app_id: str = Field(..., alias="appId")
    key_name: str | None = Field(default=None, alias="keyName", max_length=255)
    environment: str | None = Field(default=None, max_length=32)


class ApiKeyAction(BaseModel):
    """Schema for toggling a key's revoked flag."""

    action: Literal["revoke", "reactivate"]


class ApiKeyResponse(BaseModel):
    """Key metadata; never includes the secret or its hashes."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    app_id: str
    name: str | None = None
    environment: str
    preview: str
    revoked: bool
    created_at: datetime
    last_used: datetime | None = None


class ApiKeyCreated(BaseModel):
    """One-time response carrying the plaintext secret."""

    ok: Literal[True] = True
    id: str
    api_key: str = Field(..., serialization_alias="apiKey")
    preview: str
