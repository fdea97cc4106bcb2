"""Application factory and process wiring."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatroom.api.routes import auth_router, health_router, messages_router
from chatroom.api.websocket.chat_handler import router as websocket_router
from chatroom.api.websocket.connection_registry import ConnectionRegistry
from chatroom.core.config import Settings, settings as default_settings
from chatroom.core.storage.log_store import LogStore
from chatroom.services.broadcaster import Broadcaster
from chatroom.services.message_service import MessageService

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def build_message_service(app_settings: Settings) -> MessageService:
    """Wire the store, broadcaster and service from settings."""
    store = LogStore(app_settings.data_file, max_messages=app_settings.max_messages)
    store.ensure_exists()
    broadcaster = Broadcaster(queue_size=app_settings.subscriber_queue_size)
    return MessageService(store, broadcaster, max_text_length=app_settings.max_text_length)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Create the FastAPI application."""
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Message log at {app_settings.data_file} "
            f"(retaining {app_settings.max_messages} messages)"
        )
        yield
        app.state.message_service.broadcaster.close()

    app = FastAPI(title="Chatroom", lifespan=lifespan)

    # Built eagerly so the state is there even when lifespan events do not run
    app.state.settings = app_settings
    app.state.message_service = build_message_service(app_settings)
    app.state.connection_registry = ConnectionRegistry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(messages_router)
    app.include_router(auth_router)
    app.include_router(websocket_router)

    return app
