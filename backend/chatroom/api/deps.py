"""Request-scoped accessors for objects built at startup."""

from fastapi import Request, WebSocket

from chatroom.api.websocket.connection_registry import ConnectionRegistry
from chatroom.core.config import Settings
from chatroom.services.message_service import MessageService


def get_message_service(request: Request) -> MessageService:
    """Return the shared message service from app state."""
    return request.app.state.message_service


def get_ws_message_service(websocket: WebSocket) -> MessageService:
    return websocket.app.state.message_service


def get_connection_registry(websocket: WebSocket) -> ConnectionRegistry:
    return websocket.app.state.connection_registry


def get_settings(request: Request) -> Settings:
    """Return the settings the app was created with."""
    return request.app.state.settings
