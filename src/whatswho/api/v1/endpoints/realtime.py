# src/whatswho/api/v1/endpoints/realtime.py
"""WebSocket channel carrying presence, message relay and call signaling.

A connection starts anonymous, becomes identified after a well-formed
``identify`` frame, and is unregistered when the transport closes. Bad
frames are logged and ignored; they never close the connection.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from whatswho.core.identity import normalize_identity
from whatswho.schemas.events import (
    CallAnswerSignal,
    CallCompletedEvent,
    CallEndSignal,
    CallInitSignal,
    CallResponseEvent,
    ClientFrame,
    IncomingCallEvent,
)
from whatswho.schemas.message import MessageCreate
from whatswho.services.connections import WebSocketConnection
from whatswho.services.message_store import InvalidMessageError, MessageStore
from whatswho.services.presence import PresenceDirectory
from whatswho.services.relay import MessageRelay

from ..dependencies import PresenceDep, RelayDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


class RealtimeSession:
    """Dispatches inbound frames for one connection."""

    def __init__(
        self,
        connection: WebSocketConnection,
        directory: PresenceDirectory,
        relay: MessageRelay,
        store: MessageStore,
    ) -> None:
        self.connection = connection
        self.directory = directory
        self.relay = relay
        self.store = store
        self._handlers: dict[str, Callable[[Any], Awaitable[None]]] = {
            "identify": self.on_identify,
            "send_message": self.on_send_message,
            "call_init": self.on_call_init,
            "call_ans": self.on_call_answer,
            "call_end": self.on_call_end,
        }

    async def dispatch(self, raw: str) -> None:
        """Parse one text frame and route it to its handler."""
        try:
            frame = ClientFrame.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as err:
            logger.warning("Malformed frame on %s: %s", self.connection.connection_id, err)
            return

        handler = self._handlers.get(frame.event)
        if handler is None:
            logger.warning("Unknown event %r on %s", frame.event, self.connection.connection_id)
            return
        await handler(frame.data)

    async def on_identify(self, data: Any) -> None:
        try:
            identity = normalize_identity(data)
        except ValueError:
            logger.warning("Identify failed: no email provided for %s", self.connection.connection_id)
            return
        await self.directory.register(identity, self.connection)

    async def on_send_message(self, data: Any) -> None:
        try:
            submission = MessageCreate.model_validate(data)
        except ValidationError:
            logger.warning("Rejected message with missing fields from %s", self.connection.connection_id)
            return

        identity = await self.directory.identity_of(self.connection)
        if identity != submission.sender:
            logger.warning(
                "Dropped message from %s: sender %s does not match identity %s",
                self.connection.connection_id, submission.sender, identity,
            )
            return

        try:
            record = self.store.persist(submission.sender, submission.recipient, submission.body)
        except (InvalidMessageError, SQLAlchemyError) as err:
            logger.error("send_message failed on %s: %s", self.connection.connection_id, err)
            return
        await self.relay.deliver(record, origin=self.connection)

    async def on_call_init(self, data: Any) -> None:
        signal = self._parse_signal(CallInitSignal, data)
        if signal is None:
            return
        logger.info("Call init from %s to %s (video: %s)", signal.from_, signal.to, signal.is_video)
        await self.relay.send_to(
            signal.to, IncomingCallEvent(from_=signal.from_, is_video=signal.is_video)
        )

    async def on_call_answer(self, data: Any) -> None:
        signal = self._parse_signal(CallAnswerSignal, data)
        if signal is None:
            return
        logger.info("Call answer from %s to %s: %s", signal.from_, signal.to, signal.accepted)
        await self.relay.send_to(
            signal.to, CallResponseEvent(from_=signal.from_, accepted=signal.accepted)
        )

    async def on_call_end(self, data: Any) -> None:
        signal = self._parse_signal(CallEndSignal, data)
        if signal is None:
            return
        logger.info("Call end from %s to %s", signal.from_, signal.to)
        await self.relay.send_to(signal.to, CallCompletedEvent(from_=signal.from_))

    def _parse_signal(self, model: type[Any], data: Any) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError:
            logger.warning("Malformed call signal on %s", self.connection.connection_id)
            return None


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    db: SessionDep,
    directory: PresenceDep,
    relay: RelayDep,
) -> None:
    """Serve one realtime connection until the client goes away."""
    connection = WebSocketConnection(websocket)
    # Tracked before the handshake completes so no presence snapshot can miss it.
    await directory.connect(connection)
    session = RealtimeSession(connection, directory, relay, MessageStore(db))
    try:
        await websocket.accept()
        logger.info("New connection: %s", connection.connection_id)
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                logger.warning("Ignoring binary frame on %s", connection.connection_id)
                continue
            await session.dispatch(raw)
    except WebSocketDisconnect:
        pass
    finally:
        await directory.unregister(connection)
        logger.info("Connection closed: %s", connection.connection_id)
