# src/whatswho/services/message_store.py
"""Persistence of messages and their read/visibility flags."""

from __future__ import annotations

import logging

from sqlalchemy import and_, exists, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from whatswho.core.identity import normalize_identity
from whatswho.core.settings import settings
from whatswho.models import Message, MessageTombstone
from whatswho.schemas.message import MessageRecord

logger = logging.getLogger(__name__)

__all__ = [
    "DeletionForbiddenError",
    "InvalidMessageError",
    "MessageNotFoundError",
    "MessageStore",
    "MessageStoreError",
    "to_record",
]


class MessageStoreError(Exception):
    """Base exception for message store failures."""


class InvalidMessageError(MessageStoreError, ValueError):
    """Raised when a submission lacks a sender, recipient or body."""


class MessageNotFoundError(MessageStoreError, LookupError):
    """Raised when a message does not exist or is not visible to the caller."""


class DeletionForbiddenError(MessageStoreError, PermissionError):
    """Raised when someone other than the sender deletes for everyone."""


def to_record(message: Message) -> MessageRecord:
    """Return an immutable snapshot of ``message``."""
    return MessageRecord.model_validate(message)


class MessageStore:
    """Message table operations bound to one database session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def persist(self, sender: str, recipient: str, body: str) -> MessageRecord:
        """Append a message; the store assigns ``id`` and ``timestamp``.

        The row is committed before this returns, so the caller may relay it.
        """
        try:
            sender = normalize_identity(sender)
            recipient = normalize_identity(recipient)
        except ValueError as err:
            raise InvalidMessageError(str(err)) from err
        if not isinstance(body, str) or not body:
            raise InvalidMessageError("Message body must not be empty")

        message = Message(sender=sender, recipient=recipient, body=body)
        self.db.add(message)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(message)
        logger.debug("Persisted message %d from %s to %s", message.id, sender, recipient)
        return to_record(message)

    def get(self, message_id: int) -> MessageRecord:
        """Return a single message by id."""
        return to_record(self._load(message_id))

    def history(self, viewer: str) -> list[MessageRecord]:
        """Return the viewer's conversation history, oldest first.

        Messages the viewer deleted for themselves are excluded; the other
        party still sees them.
        """
        viewer = normalize_identity(viewer)
        hidden = exists().where(
            and_(
                MessageTombstone.message_id == Message.id,
                MessageTombstone.viewer == viewer,
            )
        )
        stmt = (
            select(Message)
            .where(or_(Message.sender == viewer, Message.recipient == viewer))
            .where(~hidden)
            .order_by(Message.timestamp.asc(), Message.id.asc())
        )
        return [to_record(message) for message in self.db.scalars(stmt).all()]

    def mark_read(self, sender: str, reader: str) -> int:
        """Flag every unread message from ``sender`` to ``reader`` as read.

        Returns:
            Number of messages updated (zero when already read).
        """
        sender = normalize_identity(sender)
        reader = normalize_identity(reader)
        result = self.db.execute(
            update(Message)
            .where(
                Message.sender == sender,
                Message.recipient == reader,
                Message.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        self.db.commit()
        return result.rowcount or 0

    def soft_delete(self, message_id: int, viewer: str) -> MessageRecord:
        """Hide a message from ``viewer``'s own history.

        Repeating the call for the same viewer is a no-op.
        """
        viewer = normalize_identity(viewer)
        message = self._load(message_id)
        if viewer not in (message.sender, message.recipient):
            raise MessageNotFoundError(f"Message {message_id} not found")

        if viewer not in message.deleted_for:
            message.tombstones.append(MessageTombstone(viewer=viewer))
            try:
                self.db.commit()
            except IntegrityError:
                # Concurrent tombstone for the same viewer already landed.
                self.db.rollback()
            self.db.refresh(message)
        return to_record(message)

    def hard_delete(self, message_id: int, requester: str) -> MessageRecord:
        """Delete a message for everyone; only its sender may do this.

        The row is kept with its body replaced by a fixed placeholder.
        """
        requester = normalize_identity(requester)
        message = self._load(message_id)
        if message.sender != requester:
            raise DeletionForbiddenError("Only the sender can delete for everyone")

        message.is_deleted_everyone = True
        message.body = settings.deleted_message_placeholder
        self.db.commit()
        self.db.refresh(message)
        return to_record(message)

    def _load(self, message_id: int) -> Message:
        message = self.db.get(Message, message_id)
        if message is None:
            raise MessageNotFoundError(f"Message {message_id} not found")
        return message
