# src/whatswho/services/connections.py
"""Connection handles and best-effort event fan-out."""

from __future__ import annotations

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from fastapi.websockets import WebSocket, WebSocketState

from whatswho.schemas.events import ServerEvent

logger = logging.getLogger(__name__)


class ConnectionHandle(ABC):
    """One live duplex channel to a client process.

    Handles hash and compare by ``connection_id`` so they can be stored in
    sets and dictionaries regardless of the underlying transport.
    """

    def __init__(self, connection_id: str | None = None) -> None:
        self.connection_id = connection_id or uuid.uuid4().hex

    @abstractmethod
    async def send_frame(self, frame: dict[str, Any]) -> None:
        """Write one frame to the client."""

    def __hash__(self) -> int:
        return hash(self.connection_id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConnectionHandle):
            return NotImplemented
        return self.connection_id == other.connection_id

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.connection_id!r})"


class WebSocketConnection(ConnectionHandle):
    """Connection handle backed by a FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        super().__init__(connection_id)
        self.websocket = websocket

    async def send_frame(self, frame: dict[str, Any]) -> None:
        if self.websocket.application_state != WebSocketState.CONNECTED:
            raise ConnectionError(f"Connection {self.connection_id} is closed")
        await self.websocket.send_json(frame)


async def push_event(handles: Iterable[ConnectionHandle], event: ServerEvent) -> int:
    """Send ``event`` to every handle concurrently.

    A failed push is logged and skipped; it never prevents delivery to the
    remaining handles and is never re-raised.

    Returns:
        Number of handles that accepted the frame.
    """
    targets = list(handles)
    if not targets:
        return 0

    frame = event.to_frame()
    results = await asyncio.gather(
        *(handle.send_frame(frame) for handle in targets),
        return_exceptions=True,
    )

    delivered = 0
    for handle, result in zip(targets, results):
        if isinstance(result, BaseException):
            logger.warning(
                "Failed to push %s to %s: %s", event.event, handle.connection_id, result
            )
            continue
        delivered += 1
    return delivered
