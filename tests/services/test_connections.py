# tests/services/test_connections.py
"""Tests for connection handles and fan-out."""

import pytest

from whatswho.schemas.events import PresenceChangedEvent
from whatswho.services.connections import ConnectionHandle, push_event


def test_handle_without_send_frame_cannot_be_created() -> None:
    class Silent(ConnectionHandle):
        pass

    with pytest.raises(TypeError):
        Silent()

    with pytest.raises(TypeError):
        ConnectionHandle()  # type: ignore[abstract]


def test_handles_compare_by_connection_id(handle_factory) -> None:
    first = handle_factory("same")
    second = handle_factory("same")

    assert first == second
    assert len({first, second, handle_factory("other")}) == 2


@pytest.mark.asyncio
async def test_push_event_counts_only_successful_sends(handle_factory) -> None:
    healthy = handle_factory()
    broken = handle_factory(fail=True)

    delivered = await push_event([healthy, broken], PresenceChangedEvent(online=["a@x.com"]))

    assert delivered == 1
    assert healthy.events("update_user_list") == [{"online": ["a@x.com"]}]
