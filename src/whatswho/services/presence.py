# src/whatswho/services/presence.py
"""Presence directory mapping identities to their live connections.

The directory is the only shared mutable state of the realtime layer. Every
mutation and every snapshot read happens under one ``asyncio.Lock``; pushes
to connections are dispatched after the lock is released, using the
snapshot taken while it was held, so a slow client never stalls registration
of the others.

An identity with no live handles is absent from the index, so "online"
simply means "present as a key".
"""

from __future__ import annotations

import asyncio
import logging

from whatswho.core.identity import normalize_identity
from whatswho.schemas.events import PresenceChangedEvent

from .connections import ConnectionHandle, push_event

logger = logging.getLogger(__name__)


class PresenceDirectory:
    """Index of ``identity -> set of connection handles``."""

    def __init__(self) -> None:
        self._handles_by_identity: dict[str, set[ConnectionHandle]] = {}
        self._identity_by_handle: dict[ConnectionHandle, str] = {}
        # Every open connection, identified or not; presence snapshots go to all of them.
        self._connected: set[ConnectionHandle] = set()
        self._lock = asyncio.Lock()

    async def connect(self, handle: ConnectionHandle) -> None:
        """Track a freshly opened, still anonymous connection."""
        async with self._lock:
            self._connected.add(handle)

    async def register(self, identity: str, handle: ConnectionHandle) -> bool:
        """Attach ``handle`` to ``identity`` and broadcast the online snapshot.

        Re-registering a handle that already belongs to ``identity`` leaves
        the index unchanged. A handle that re-identifies as someone else is
        moved, since a handle belongs to at most one identity at a time.

        Returns:
            True if the index changed.
        """
        identity = normalize_identity(identity)
        async with self._lock:
            self._connected.add(handle)
            previous = self._identity_by_handle.get(handle)
            changed = previous != identity
            if previous is not None and changed:
                self._discard(previous, handle)
            self._handles_by_identity.setdefault(identity, set()).add(handle)
            self._identity_by_handle[handle] = identity
            count = len(self._handles_by_identity[identity])
            online, audience = self._snapshot()

        logger.info("%s identified (connections: %d)", identity, count)
        await push_event(audience, PresenceChangedEvent(online=online))
        return changed

    async def unregister(self, handle: ConnectionHandle) -> str | None:
        """Forget ``handle`` entirely.

        Unknown handles are ignored. If the handle was identified, the
        identity's set shrinks (and disappears when empty) and the updated
        snapshot is broadcast to everyone still connected.

        Returns:
            The identity the handle belonged to, or None if it was anonymous.
        """
        async with self._lock:
            self._connected.discard(handle)
            identity = self._identity_by_handle.pop(handle, None)
            if identity is None:
                return None
            remaining = self._discard(identity, handle)
            online, audience = self._snapshot()

        if remaining:
            logger.info("%s closed one connection (remaining: %d)", identity, remaining)
        else:
            logger.info("%s is now fully offline", identity)
        await push_event(audience, PresenceChangedEvent(online=online))
        return identity

    async def handles_for(self, identity: str) -> frozenset[ConnectionHandle]:
        """Return a snapshot of the live handles of ``identity`` (possibly empty)."""
        identity = normalize_identity(identity)
        async with self._lock:
            return frozenset(self._handles_by_identity.get(identity, ()))

    async def online_identities(self) -> frozenset[str]:
        """Return a snapshot of every identity with at least one live handle."""
        async with self._lock:
            return frozenset(self._handles_by_identity)

    async def identity_of(self, handle: ConnectionHandle) -> str | None:
        """Return the identity ``handle`` announced, if any."""
        async with self._lock:
            return self._identity_by_handle.get(handle)

    def _discard(self, identity: str, handle: ConnectionHandle) -> int:
        # Caller holds the lock.
        handles = self._handles_by_identity.get(identity)
        if handles is None:
            return 0
        handles.discard(handle)
        if not handles:
            del self._handles_by_identity[identity]
            return 0
        return len(handles)

    def _snapshot(self) -> tuple[list[str], list[ConnectionHandle]]:
        # Caller holds the lock.
        return sorted(self._handles_by_identity), list(self._connected)


presence_directory = PresenceDirectory()
"""Process-wide directory shared by the realtime and REST layers."""


def get_presence_directory() -> PresenceDirectory:
    """Return the shared presence directory."""
    return presence_directory
