"""
Pydantic schemas for API request/response models and realtime frames.

These schemas define the structure of API data for serialization and validation.
"""

from .events import (
    CallAnswerSignal,
    CallCompletedEvent,
    CallEndSignal,
    CallInitSignal,
    CallResponseEvent,
    ClientFrame,
    IncomingCallEvent,
    MessageDeletedEvent,
    MessageDeliveredEvent,
    MessageReadEvent,
    PresenceChangedEvent,
    ServerEvent,
)
from .message import (
    MarkReadRequest,
    MarkReadResponse,
    MessageCreate,
    MessageDeleteResponse,
    MessageRecord,
)
from .user import (
    OnlineUsersResponse,
    OtpRequest,
    OtpRequestResponse,
    OtpVerifyRequest,
    ProfileUpdate,
    TokenResponse,
    UserInfo,
)

__all__ = [
    "CallAnswerSignal", "CallCompletedEvent", "CallEndSignal", "CallInitSignal",
    "CallResponseEvent", "ClientFrame", "IncomingCallEvent",
    "MessageDeletedEvent", "MessageDeliveredEvent", "MessageReadEvent",
    "PresenceChangedEvent", "ServerEvent",
    "MarkReadRequest", "MarkReadResponse", "MessageCreate",
    "MessageDeleteResponse", "MessageRecord",
    "OnlineUsersResponse", "OtpRequest", "OtpRequestResponse", "OtpVerifyRequest",
    "ProfileUpdate", "TokenResponse", "UserInfo",
]
