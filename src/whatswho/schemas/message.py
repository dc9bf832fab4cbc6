# src/whatswho/schemas/message.py
"""Message-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .common import Identity

DeleteMode = Literal["me", "everyone"]


class MessageCreate(BaseModel):
    """Schema for submitting a new message."""

    sender: Identity
    recipient: Identity
    body: str = Field(..., min_length=1, max_length=10_000, description="Message text")


class MessageRecord(BaseModel):
    """Persisted message snapshot as returned by the store and pushed to clients."""

    id: int
    sender: str
    recipient: str
    body: str
    timestamp: datetime
    is_read: bool
    is_deleted_everyone: bool
    deleted_for: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True, frozen=True)


class MarkReadRequest(BaseModel):
    """Mark every unread message from ``sender`` to the caller as read."""

    sender: Identity


class MarkReadResponse(BaseModel):
    """Result of a read-receipt update."""

    success: bool = True
    updated: int = Field(..., description="Number of messages flipped to read")


class MessageDeleteResponse(BaseModel):
    """Result of a delete-for-me or delete-for-everyone request."""

    success: bool = True
    mode: DeleteMode
