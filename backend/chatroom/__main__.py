"""Run the chat server with uvicorn."""

import logging

import uvicorn

from chatroom.core.config import settings
from chatroom.main import configure_logging, create_app

logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging(settings.log_level)
    app = create_app(settings)
    logger.info(f"Realtime chat server listening on {settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
