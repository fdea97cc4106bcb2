"""Builds canonical message records from inbound fields."""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from chatroom.core.errors import MessageValidationError
from chatroom.models.schemas.message import Message

MAX_TEXT_LENGTH = 2000


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def create_message(username: Any, text: Any, max_length: int = MAX_TEXT_LENGTH) -> Message:
    """
    Validate and normalize inbound fields into a new message.

    Both fields are trimmed. Text longer than ``max_length`` is truncated
    rather than rejected.

    Raises:
        MessageValidationError: If username or text is empty after trimming
    """
    clean_username = _clean(username)
    clean_text = _clean(text)

    if not clean_username:
        raise MessageValidationError("username required")
    if not clean_text:
        raise MessageValidationError("text required")

    return Message(
        id=str(uuid4()),
        username=clean_username,
        text=clean_text[:max_length],
        created_at=datetime.now(timezone.utc),
    )
