"""HTTP routers."""

from chatroom.api.routes.auth import router as auth_router
from chatroom.api.routes.health import router as health_router
from chatroom.api.routes.messages import router as messages_router

__all__ = ["auth_router", "health_router", "messages_router"]
