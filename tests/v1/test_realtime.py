# tests/v1/test_realtime.py
"""End-to-end tests for the realtime WebSocket channel."""

from fastapi import status

WS_URL = "/api/v1/ws"


def _identify(ws, email: str) -> None:
    ws.send_json({"event": "identify", "data": email})


def _expect_online(ws, *emails: str) -> None:
    assert ws.receive_json() == {"event": "update_user_list", "data": {"online": list(emails)}}


def test_identify_broadcasts_online_list(client) -> None:
    with client.websocket_connect(WS_URL) as a1:
        _identify(a1, "A@X.com")
        _expect_online(a1, "a@x.com")

        with client.websocket_connect(WS_URL) as b1:
            _identify(b1, "b@x.com")
            _expect_online(a1, "a@x.com", "b@x.com")
            _expect_online(b1, "a@x.com", "b@x.com")

        # b1 closed: a1 learns that b is fully offline.
        _expect_online(a1, "a@x.com")


def test_malformed_frames_keep_connection_open(client) -> None:
    with client.websocket_connect(WS_URL) as ws:
        ws.send_text("not json at all")
        ws.send_json({"data": "missing event"})
        ws.send_json({"event": "identify", "data": ""})
        ws.send_json({"event": "identify"})
        ws.send_json({"event": "teleport", "data": {}})

        _identify(ws, "a@x.com")
        _expect_online(ws, "a@x.com")


def test_binary_frames_are_ignored(client) -> None:
    with client.websocket_connect(WS_URL) as a1:
        _identify(a1, "a@x.com")
        _expect_online(a1, "a@x.com")

        with client.websocket_connect(WS_URL) as b1:
            b1.send_bytes(b"\x00\x01garbage")
            _identify(b1, "b@x.com")
            _expect_online(b1, "a@x.com", "b@x.com")
            _expect_online(a1, "a@x.com", "b@x.com")

            # a1 stays online after sending binary data of its own.
            a1.send_bytes(b"\xff")
            b1.send_json({"event": "identify", "data": "b@x.com"})
            _expect_online(b1, "a@x.com", "b@x.com")
            _expect_online(a1, "a@x.com", "b@x.com")


def test_message_fans_out_to_recipient_and_other_sender_devices(client, bob_auth) -> None:
    with client.websocket_connect(WS_URL) as a1:
        _identify(a1, "a@x.com")
        _expect_online(a1, "a@x.com")

        with client.websocket_connect(WS_URL) as a2:
            _identify(a2, "a@x.com")
            _expect_online(a1, "a@x.com")
            _expect_online(a2, "a@x.com")

            with client.websocket_connect(WS_URL) as b3:
                _identify(b3, "b@x.com")
                for ws in (a1, a2, b3):
                    _expect_online(ws, "a@x.com", "b@x.com")

                a1.send_json({
                    "event": "send_message",
                    "data": {"sender": "a@x.com", "recipient": "B@x.com", "body": "hi"},
                })

                delivered = b3.receive_json()
                assert delivered["event"] == "receive_message"
                assert delivered["data"]["body"] == "hi"
                assert delivered["data"]["sender"] == "a@x.com"
                assert delivered["data"]["recipient"] == "b@x.com"

                synced = a2.receive_json()
                assert synced == delivered

            # The next frame a1 sees is b leaving; the message was never echoed back to it.
            _expect_online(a1, "a@x.com")

    # A fresh history fetch by the recipient sees the same message.
    history = client.get("/api/v1/messages/", headers=bob_auth).json()
    assert [(m["id"], m["body"]) for m in history] == [
        (delivered["data"]["id"], "hi"),
    ]


def test_message_to_offline_recipient_is_persisted(client, bob_auth) -> None:
    with client.websocket_connect(WS_URL) as a1:
        _identify(a1, "a@x.com")
        _expect_online(a1, "a@x.com")
        a1.send_json({
            "event": "send_message",
            "data": {"sender": "a@x.com", "recipient": "b@x.com", "body": "while you were out"},
        })
        # Round trip on the same socket so the submission is processed before closing.
        _identify(a1, "a@x.com")
        _expect_online(a1, "a@x.com")

    history = client.get("/api/v1/messages/", headers=bob_auth).json()
    assert [m["body"] for m in history] == ["while you were out"]


def test_incomplete_or_spoofed_submissions_are_dropped(client, bob_auth) -> None:
    with client.websocket_connect(WS_URL) as anon:
        anon.send_json({
            "event": "send_message",
            "data": {"sender": "a@x.com", "recipient": "b@x.com", "body": "anonymous"},
        })
        _identify(anon, "a@x.com")
        _expect_online(anon, "a@x.com")
        anon.send_json({"event": "send_message", "data": {"sender": "a@x.com", "recipient": "b@x.com"}})
        anon.send_json({
            "event": "send_message",
            "data": {"sender": "c@x.com", "recipient": "b@x.com", "body": "spoofed"},
        })
        _identify(anon, "a@x.com")
        _expect_online(anon, "a@x.com")

    assert client.get("/api/v1/messages/", headers=bob_auth).json() == []


def test_rest_submission_reaches_every_live_handle(client, alice, alice_auth) -> None:
    with client.websocket_connect(WS_URL) as a1, client.websocket_connect(WS_URL) as b1:
        _identify(a1, "a@x.com")
        _expect_online(a1, "a@x.com")
        _expect_online(b1, "a@x.com")
        _identify(b1, "b@x.com")
        _expect_online(a1, "a@x.com", "b@x.com")
        _expect_online(b1, "a@x.com", "b@x.com")

        response = client.post(
            "/api/v1/messages/",
            json={"sender": "a@x.com", "recipient": "b@x.com", "body": "via rest"},
            headers=alice_auth,
        )
        assert response.status_code == status.HTTP_200_OK

        for ws in (a1, b1):
            frame = ws.receive_json()
            assert frame["event"] == "receive_message"
            assert frame["data"]["id"] == response.json()["id"]


def test_read_receipt_and_delete_events(client, alice_auth, bob_auth, message_from_alice) -> None:
    with client.websocket_connect(WS_URL) as a1, client.websocket_connect(WS_URL) as b1:
        _identify(a1, "a@x.com")
        _expect_online(a1, "a@x.com")
        _expect_online(b1, "a@x.com")
        _identify(b1, "b@x.com")
        _expect_online(a1, "a@x.com", "b@x.com")
        _expect_online(b1, "a@x.com", "b@x.com")

        client.post("/api/v1/messages/read", json={"sender": "a@x.com"}, headers=bob_auth)
        assert a1.receive_json() == {"event": "message_read", "data": {"reader": "b@x.com"}}

        client.delete(
            f"/api/v1/messages/{message_from_alice.id}",
            params={"mode": "everyone"},
            headers=alice_auth,
        )
        expected = {
            "event": "message_deleted",
            "data": {"id": message_from_alice.id, "mode": "everyone"},
        }
        assert a1.receive_json() == expected
        assert b1.receive_json() == expected


def test_call_signaling_is_forwarded(client) -> None:
    with client.websocket_connect(WS_URL) as a1, client.websocket_connect(WS_URL) as b1:
        _identify(a1, "a@x.com")
        _expect_online(a1, "a@x.com")
        _expect_online(b1, "a@x.com")
        _identify(b1, "b@x.com")
        _expect_online(a1, "a@x.com", "b@x.com")
        _expect_online(b1, "a@x.com", "b@x.com")

        a1.send_json({"event": "call_init", "data": {"to": "B@x.com", "from": "a@x.com", "isVideo": True}})
        assert b1.receive_json() == {
            "event": "incoming_call",
            "data": {"from": "a@x.com", "isVideo": True},
        }

        b1.send_json({"event": "call_ans", "data": {"to": "a@x.com", "from": "b@x.com", "accepted": True}})
        assert a1.receive_json() == {
            "event": "call_response",
            "data": {"from": "b@x.com", "accepted": True},
        }

        a1.send_json({"event": "call_end", "data": {"to": "b@x.com", "from": "a@x.com"}})
        assert b1.receive_json() == {"event": "call_completed", "data": {"from": "a@x.com"}}
