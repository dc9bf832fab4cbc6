# src/whatswho/services/__init__.py
"""Business logic services for the Whatswho application."""

from .connections import ConnectionHandle, WebSocketConnection, push_event
from .mailer import OtpMailer
from .message_store import MessageStore
from .otp import OtpService
from .presence import PresenceDirectory
from .relay import MessageRelay

__all__ = [
    "ConnectionHandle",
    "WebSocketConnection",
    "push_event",
    "OtpMailer",
    "MessageStore",
    "OtpService",
    "PresenceDirectory",
    "MessageRelay",
]
