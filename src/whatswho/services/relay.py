# src/whatswho/services/relay.py
"""Fan-out of persisted messages and related notifications.

The relay only reads the presence directory. Messages handed to
:meth:`MessageRelay.deliver` must already be durable; a failed push never
rolls anything back.
"""

from __future__ import annotations

import logging

from whatswho.core.identity import normalize_identity
from whatswho.schemas.events import (
    MessageDeletedEvent,
    MessageDeliveredEvent,
    MessageReadEvent,
    ServerEvent,
)
from whatswho.schemas.message import MessageRecord

from .connections import ConnectionHandle, push_event
from .presence import PresenceDirectory

logger = logging.getLogger(__name__)


class MessageRelay:
    """Pushes events to every live handle of the identities involved."""

    def __init__(self, directory: PresenceDirectory) -> None:
        self.directory = directory

    async def deliver(
        self,
        message: MessageRecord,
        origin: ConnectionHandle | None = None,
    ) -> int:
        """Push ``message`` to the recipient's and sender's live handles.

        ``origin`` (the connection that submitted the message, if any) is
        skipped so the sender's other devices stay in sync without echoing
        the message back. A handle shared by both sides (self-chat) receives
        the message once. An offline recipient is not an error.

        Returns:
            Number of successful pushes.
        """
        recipient_handles = await self.directory.handles_for(message.recipient)
        sender_handles = await self.directory.handles_for(message.sender)

        targets = set(recipient_handles) | set(sender_handles)
        if origin is not None:
            targets.discard(origin)

        if not recipient_handles:
            logger.debug("Recipient %s is offline; message %d stays queued in history",
                          message.recipient, message.id)
        return await push_event(targets, MessageDeliveredEvent(message=message))

    async def notify_read(self, sender: str, reader: str) -> int:
        """Tell ``sender``'s live handles that ``reader`` read their messages."""
        event = MessageReadEvent(reader=normalize_identity(reader))
        return await self.send_to(sender, event)

    async def notify_deleted(self, message: MessageRecord) -> int:
        """Tell both parties that ``message`` was deleted for everyone."""
        sender_handles = await self.directory.handles_for(message.sender)
        recipient_handles = await self.directory.handles_for(message.recipient)
        event = MessageDeletedEvent(id=message.id)
        return await push_event(set(sender_handles) | set(recipient_handles), event)

    async def send_to(self, identity: str, event: ServerEvent) -> int:
        """Push an arbitrary event to every live handle of ``identity``."""
        handles = await self.directory.handles_for(identity)
        return await push_event(handles, event)

