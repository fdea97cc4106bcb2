"""WebSocket handler for realtime message create/delete and event fanout."""

import asyncio
import json
import logging
from typing import Any, Dict
from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from chatroom.api.deps import get_connection_registry, get_ws_message_service
from chatroom.api.websocket.connection_registry import ConnectionRegistry
from chatroom.core.errors import ChatroomError
from chatroom.services.broadcaster import Subscription
from chatroom.services.message_service import MessageService

logger = logging.getLogger(__name__)

CREATE_EVENT = "message:create"
DELETE_EVENT = "message:delete"
ACK_EVENT = "ack"
ERROR_EVENT = "error"

# Close code sent when the broadcaster drops a subscriber
CLOSE_TRY_AGAIN_LATER = 1013

router = APIRouter()


class ChatWebSocketHandler:
    """
    Handle one persistent connection.

    Frames from the client are mutations, answered with an ``ack`` frame
    when the client asked for one. Every accepted mutation, including this
    client's own, also arrives as a broadcast frame, so clients must apply
    broadcasts idempotently by message id.
    """

    def __init__(
        self,
        websocket: WebSocket,
        service: MessageService,
        registry: ConnectionRegistry,
    ):
        self.websocket = websocket
        self.service = service
        self.registry = registry
        self.connection_id = uuid4().hex
        self._send_lock = asyncio.Lock()

    async def handle_connection(self) -> None:
        """Run the connection until the client goes away."""
        await self.websocket.accept()

        client = self.websocket.client
        client_label = f"{client.host}:{client.port}" if client else "unknown"
        await self.registry.register(self.connection_id, client_label)

        subscription = self.service.broadcaster.subscribe(name=self.connection_id)
        forwarder = asyncio.create_task(self._forward_broadcasts(subscription))
        reason = ""

        try:
            while True:
                message = await self.websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))

                data = message.get("text")
                if data is None:
                    await self._send_error("frames must be text")
                    continue
                await self._handle_frame(data)
        except WebSocketDisconnect as e:
            reason = f"(code {e.code})"
        finally:
            # Stop receiving broadcasts; mutations already committed stay committed
            self.service.broadcaster.unsubscribe(subscription)
            forwarder.cancel()
            try:
                await forwarder
            except asyncio.CancelledError:
                pass
            await self.registry.unregister(self.connection_id, reason)

    async def _handle_frame(self, data: str) -> None:
        try:
            frame = json.loads(data)
        except json.JSONDecodeError:
            await self._send_error("invalid JSON frame")
            return

        if not isinstance(frame, dict):
            await self._send_error("frame must be a JSON object")
            return

        event_type = frame.get("type")
        payload = frame.get("payload")
        wants_ack = "ack" in frame
        ack = frame.get("ack")

        if event_type == CREATE_EVENT:
            response = await self._create(payload)
        elif event_type == DELETE_EVENT:
            response = await self._delete(payload)
        else:
            await self._send_error(f"unknown event type: {event_type}")
            return

        if wants_ack:
            await self._send_json({"type": ACK_EVENT, "ack": ack, "payload": response})

    async def _create(self, payload: Any) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            payload = {}
        try:
            result = await self.service.create_message(payload)
        except ChatroomError as e:
            return {"status": "error", "error": str(e)}
        return {"status": "ok", "message": result.message.to_wire()}

    async def _delete(self, payload: Any) -> Dict[str, Any]:
        message_id = payload.get("id") if isinstance(payload, dict) else payload
        try:
            removed_id = await self.service.delete_message(message_id)
        except ChatroomError as e:
            return {"status": "error", "error": str(e)}
        return {"status": "ok", "id": removed_id}

    async def _forward_broadcasts(self, subscription: Subscription) -> None:
        """Drain this connection's inbox onto the socket, in order."""
        async for event in subscription:
            if not await self._send_json(event.to_frame()):
                return

        # Iteration only ends on its own when the broadcaster closed the inbox
        logger.warning(f"Closing {self.connection_id}: broadcast subscription closed")
        try:
            await self.websocket.close(code=CLOSE_TRY_AGAIN_LATER)
        except RuntimeError:
            pass

    async def _send_error(self, error: str) -> None:
        await self._send_json({"type": ERROR_EVENT, "error": error})

    async def _send_json(self, frame: Dict[str, Any]) -> bool:
        # Acks and broadcasts share the socket; one writer at a time
        async with self._send_lock:
            try:
                await self.websocket.send_json(frame)
            except (WebSocketDisconnect, RuntimeError) as e:
                logger.debug(f"Send to {self.connection_id} failed: {e}")
                return False
        return True


@router.websocket("/ws")
async def chat_websocket(
    websocket: WebSocket,
    service: MessageService = Depends(get_ws_message_service),
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    handler = ChatWebSocketHandler(websocket, service, registry)
    await handler.handle_connection()
