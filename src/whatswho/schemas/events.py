# src/whatswho/schemas/events.py
"""Realtime frame schemas.

Every frame on the WebSocket channel is a JSON object of the form
``{"event": <name>, "data": <payload>}``. Outbound events are explicit
records, one per kind, carrying only the fields that kind needs.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from .common import Identity
from .message import MessageRecord


class ServerEvent(BaseModel):
    """Base class for events pushed from the server to connections."""

    event: ClassVar[str]

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def payload(self) -> Any:
        """Return the JSON-compatible ``data`` member of the frame."""
        return self.model_dump(mode="json", by_alias=True)

    def to_frame(self) -> dict[str, Any]:
        """Return the full wire frame for this event."""
        return {"event": self.event, "data": self.payload()}


class MessageDeliveredEvent(ServerEvent):
    """A persisted message, pushed to the live handles of both parties."""

    event: ClassVar[str] = "receive_message"

    message: MessageRecord

    def payload(self) -> Any:
        return self.message.model_dump(mode="json")


class PresenceChangedEvent(ServerEvent):
    """Full snapshot of online identities (never a delta)."""

    event: ClassVar[str] = "update_user_list"

    online: list[str]


class MessageReadEvent(ServerEvent):
    """Tells a sender that ``reader`` has read their messages."""

    event: ClassVar[str] = "message_read"

    reader: str


class MessageDeletedEvent(ServerEvent):
    """A message was deleted for everyone."""

    event: ClassVar[str] = "message_deleted"

    id: int
    mode: str = "everyone"


class IncomingCallEvent(ServerEvent):
    event: ClassVar[str] = "incoming_call"

    from_: str = Field(..., alias="from")
    is_video: bool = Field(False, alias="isVideo")


class CallResponseEvent(ServerEvent):
    event: ClassVar[str] = "call_response"

    from_: str = Field(..., alias="from")
    accepted: bool


class CallCompletedEvent(ServerEvent):
    event: ClassVar[str] = "call_completed"

    from_: str = Field(..., alias="from")


class ClientFrame(BaseModel):
    """Envelope of an inbound frame before its payload is validated."""

    event: str = Field(..., min_length=1)
    data: Any = None


class CallSignal(BaseModel):
    """Common addressing fields of the call signaling frames."""

    to: Identity
    from_: Identity = Field(..., alias="from")

    model_config = ConfigDict(populate_by_name=True)


class CallInitSignal(CallSignal):
    is_video: bool = Field(False, alias="isVideo")


class CallAnswerSignal(CallSignal):
    accepted: bool


class CallEndSignal(CallSignal):
    pass
