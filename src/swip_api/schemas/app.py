# src/swip_api/schemas/app.py
"""App registration schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AppCreate(BaseModel):
    """Schema for registering a new app."""

    name: str = Field(..., min_length=1, max_length=200)
    category: str | None = Field(default=None, max_length=100)


class AppResponse(BaseModel):
    """Schema for app details returned to the owner."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    category: str | None = None
    created_at: datetime
