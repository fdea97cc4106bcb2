"""
Services layer for the message log.
The factory builds records, the message service serializes mutations
against the store, and the broadcaster fans committed changes out.
"""

from .broadcaster import Broadcaster, BroadcastEvent, EventData, Subscription
from .message_factory import create_message
from .message_service import CreateResult, MessageService

__all__ = [
    "Broadcaster",
    "BroadcastEvent",
    "EventData",
    "Subscription",
    "create_message",
    "CreateResult",
    "MessageService",
]
