"""Pydantic models for HTTP request payloads."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class CreateSessionRequest(BaseModel):
    """Officer request to open an attendance session."""

    org_id: UUID
    title: str = Field(min_length=1, max_length=200)
    ttl_seconds: int = 3600
    starts_at: datetime | None = None
    event_id: UUID | None = None


class CheckInRequest(BaseModel):
    """Member request to check in with a scanned session token."""

    token: str = Field(min_length=1, max_length=64)
    method: str = "ble"


class ValidateSessionsRequest(BaseModel):
    """Batch of scanned tokens to check for live sessions."""

    tokens: list[str] = Field(max_length=50)
