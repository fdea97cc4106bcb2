"""
Subscriber-side view of the message log.
Applies listing snapshots, acks and broadcast frames idempotently by id,
so a client that receives both the ack and the broadcast for its own
message keeps a single copy.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import logging

from pydantic import ValidationError

from chatroom.models.schemas.message import Message
from chatroom.services.broadcaster import BroadcastEvent

logger = logging.getLogger(__name__)

MessageLike = Union[Message, Mapping[str, Any]]


class MessageTimeline:
    """Ordered, de-duplicated local copy of the messages a client has seen."""

    def __init__(self, messages: Optional[Iterable[MessageLike]] = None):
        self._messages: Dict[str, Message] = {}
        self._last_sequence = 0
        if messages is not None:
            self.replace(messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._messages

    @property
    def messages(self) -> List[Message]:
        """Messages ordered by creation time."""
        return sorted(self._messages.values(), key=lambda m: m.created_at)

    def replace(self, messages: Iterable[MessageLike]) -> None:
        """Reset the view from a full listing (``GET /messages``)."""
        self._messages = {}
        for item in messages:
            message = _coerce(item)
            self._messages[message.id] = message

    def add(self, item: MessageLike) -> bool:
        """Insert a message. Returns False if its id was already present."""
        message = _coerce(item)
        if message.id in self._messages:
            return False
        self._messages[message.id] = message
        return True

    def remove(self, message_id: str) -> bool:
        """Drop a message. Returns False if it was not present."""
        return self._messages.pop(message_id, None) is not None

    def apply_frame(self, frame: Mapping[str, Any]) -> bool:
        """
        Apply a broadcast frame from the websocket.

        Frames with a sequence number at or below the last one applied are
        ignored. Returns True if the view changed.
        """
        sequence = frame.get("sequence")
        if isinstance(sequence, int):
            if sequence <= self._last_sequence:
                return False
            self._last_sequence = sequence

        event_type = frame.get("type")
        payload = frame.get("payload")

        if event_type not in (BroadcastEvent.CREATED.value, BroadcastEvent.DELETED.value):
            logger.debug(f"Ignoring frame of type {event_type!r}")
            return False

        if not isinstance(payload, Mapping):
            logger.warning(f"Ignoring {event_type} frame without an object payload")
            return False

        if event_type == BroadcastEvent.DELETED.value:
            return self.remove(payload.get("id"))

        try:
            return self.add(payload)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed {event_type} payload: {e.error_count()} errors")
            return False


def _coerce(item: MessageLike) -> Message:
    if isinstance(item, Message):
        return item
    return Message.model_validate(item)
