"""Tests for the websocket transport."""

import pytest
from fastapi.testclient import TestClient

from chatroom.client.timeline import MessageTimeline


def _handshake(ws):
    """Round-trip an unknown frame so the handler is known to be subscribed."""
    ws.send_json({"type": "ping"})
    frame = ws.receive_json()
    assert frame == {"type": "error", "error": "unknown event type: ping"}


def _receive_by_type(ws, count):
    frames = {}
    for _ in range(count):
        frame = ws.receive_json()
        frames[frame["type"]] = frame
    return frames


@pytest.mark.websocket
class TestChatWebSocket:
    """Create/delete over a persistent connection and fanout to subscribers."""

    def test_create_acks_and_broadcasts(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                _handshake(ws)
                ws.send_json({
                    "type": "message:create",
                    "payload": {"username": "lexsa", "text": "hi"},
                    "ack": "a1",
                })

                frames = _receive_by_type(ws, 2)

            ack = frames["ack"]
            assert ack["ack"] == "a1"
            assert ack["payload"]["status"] == "ok"
            message = ack["payload"]["message"]
            assert message["username"] == "lexsa"
            assert message["text"] == "hi"
            assert frames["message:new"]["payload"] == message

            listed = client.get("/messages").json()
            assert [m["id"] for m in listed] == [message["id"]]

    def test_invalid_create_acks_error(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                _handshake(ws)
                ws.send_json({
                    "type": "message:create",
                    "payload": {"username": "lexsa", "text": "  "},
                    "ack": 7,
                })

                ack = ws.receive_json()
                assert ack == {
                    "type": "ack",
                    "ack": 7,
                    "payload": {"status": "error", "error": "text required"},
                }
                # Nothing was broadcast ahead of the next reply
                _handshake(ws)

            assert client.get("/messages").json() == []

    def test_delete_round_trip(self, app):
        with TestClient(app) as client:
            created = client.post("/messages", json={"username": "lexsa", "text": "hi"}).json()
            message_id = created["message"]["id"]

            with client.websocket_connect("/ws") as ws:
                _handshake(ws)
                ws.send_json({"type": "message:delete", "payload": message_id, "ack": 1})

                frames = _receive_by_type(ws, 2)

            assert frames["ack"]["payload"] == {"status": "ok", "id": message_id}
            assert frames["message:deleted"]["payload"] == {"id": message_id}
            assert client.get("/messages").json() == []

    def test_delete_absent_id(self, app):
        with TestClient(app) as client:
            client.post("/messages", json={"username": "lexsa", "text": "hi"})

            with client.websocket_connect("/ws") as ws:
                _handshake(ws)
                ws.send_json({"type": "message:delete", "payload": "missing", "ack": 1})

                ack = ws.receive_json()

            assert ack["payload"] == {"status": "error", "error": "message not found"}
            assert len(client.get("/messages").json()) == 1

    def test_fanout_to_other_subscriber(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as sender, client.websocket_connect("/ws") as watcher:
                _handshake(sender)
                _handshake(watcher)

                sender.send_json({
                    "type": "message:create",
                    "payload": {"username": "novita", "text": "halo"},
                    "ack": 1,
                })
                created = watcher.receive_json()
                assert created["type"] == "message:new"
                assert created["payload"]["username"] == "novita"

                sender.send_json({
                    "type": "message:delete",
                    "payload": {"id": created["payload"]["id"]},
                })
                deleted = watcher.receive_json()
                assert deleted["type"] == "message:deleted"
                assert deleted["payload"] == {"id": created["payload"]["id"]}
                assert deleted["sequence"] > created["sequence"]

    def test_http_mutations_reach_subscribers(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                _handshake(ws)

                response = client.post("/messages", json={"username": "lexsa", "text": "via http"})
                frame = ws.receive_json()

                assert frame["type"] == "message:new"
                assert frame["payload"] == response.json()["message"]

    def test_broadcast_order(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as sender, client.websocket_connect("/ws") as watcher:
                _handshake(sender)
                _handshake(watcher)

                for i in range(5):
                    sender.send_json({
                        "type": "message:create",
                        "payload": {"username": "lexsa", "text": f"m{i}"},
                    })

                frames = [watcher.receive_json() for _ in range(5)]

            assert [f["payload"]["text"] for f in frames] == [f"m{i}" for i in range(5)]
            sequences = [f["sequence"] for f in frames]
            assert sequences == sorted(sequences)

    def test_malformed_frames_keep_connection_open(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_text("{not json")
                assert ws.receive_json() == {"type": "error", "error": "invalid JSON frame"}

                ws.send_json(["message:create"])
                assert ws.receive_json() == {"type": "error", "error": "frame must be a JSON object"}

                ws.send_json({"type": "message:create", "payload": "not an object", "ack": 1})
                ack = ws.receive_json()
                assert ack["payload"] == {"status": "error", "error": "username required"}

    def test_binary_frame_keeps_connection_open(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_bytes(b"\x00\x01")
                assert ws.receive_json() == {"type": "error", "error": "frames must be text"}

                ws.send_json({
                    "type": "message:create",
                    "payload": {"username": "lexsa", "text": "still here"},
                    "ack": 1,
                })
                frames = _receive_by_type(ws, 2)

            assert frames["ack"]["payload"]["status"] == "ok"
            assert frames["message:new"]["payload"]["text"] == "still here"

    def test_disconnect_stops_delivery_only_for_that_client(self, app):
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as watcher:
                _handshake(watcher)

                with client.websocket_connect("/ws") as leaver:
                    _handshake(leaver)

                response = client.post("/messages", json={"username": "lexsa", "text": "after"})
                frame = watcher.receive_json()

            assert response.status_code == 201
            assert frame["payload"]["text"] == "after"

    def test_own_broadcast_applied_once(self, app):
        with TestClient(app) as client:
            timeline = MessageTimeline(client.get("/messages").json())

            with client.websocket_connect("/ws") as ws:
                _handshake(ws)
                ws.send_json({
                    "type": "message:create",
                    "payload": {"username": "lexsa", "text": "mine"},
                    "ack": 1,
                })
                frames = _receive_by_type(ws, 2)

            timeline.add(frames["ack"]["payload"]["message"])
            timeline.apply_frame(frames["message:new"])

            assert len(timeline) == 1
            assert timeline.messages[0].text == "mine"
