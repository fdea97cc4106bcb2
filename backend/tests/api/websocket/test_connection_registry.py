"""Tests for the connection registry."""

import pytest

from chatroom.api.websocket.connection_registry import ConnectionRegistry


@pytest.mark.websocket
class TestConnectionRegistry:

    @pytest.mark.asyncio
    async def test_register_and_unregister(self):
        registry = ConnectionRegistry()

        connection = await registry.register("abc", "127.0.0.1:5000")

        assert connection.status == "active"
        assert await registry.active_ids() == ["abc"]
        assert len(registry) == 1

        await registry.unregister("abc", "(code 1000)")

        assert connection.status == "closed"
        assert await registry.get("abc") is None
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_unregister_unknown_is_noop(self):
        registry = ConnectionRegistry()

        await registry.unregister("missing")

        assert len(registry) == 0

    def test_live_app_tracks_connections(self, app):
        from fastapi.testclient import TestClient

        registry = app.state.connection_registry
        with TestClient(app) as client:
            with client.websocket_connect("/ws") as ws:
                ws.send_json({"type": "ping"})
                ws.receive_json()
                assert len(registry) == 1
