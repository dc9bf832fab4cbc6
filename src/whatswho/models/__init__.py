# src/whatswho/models/__init__.py
"""SQLAlchemy models for the Whatswho application."""

from .message import Message, MessageTombstone
from .user import User

__all__ = [
    "Message", "MessageTombstone",
    "User",
]
