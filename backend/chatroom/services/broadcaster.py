"""
Broadcaster - fans accepted mutations out to every connected subscriber.
Both transports commit through the message service, which announces here,
so subscribers see one event per mutation no matter where it came from.
"""

from enum import Enum
from typing import Any, Dict, List, Optional
import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from chatroom.models.schemas.message import Message

logger = logging.getLogger(__name__)


class BroadcastEvent(Enum):
    """Events pushed to subscribers."""
    CREATED = "message:new"
    DELETED = "message:deleted"


@dataclass(frozen=True)
class EventData:
    """Container for a single fanout event."""
    event_type: BroadcastEvent
    payload: Dict[str, Any]
    sequence: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_frame(self) -> Dict[str, Any]:
        """Wire frame sent over a persistent connection."""
        return {
            "type": self.event_type.value,
            "payload": self.payload,
            "sequence": self.sequence,
        }


class Subscription:
    """
    A single subscriber's ordered inbox.

    Iterate it with ``async for`` to receive events. Iteration ends once the
    subscription is closed and whatever was already queued has been drained.
    """

    _ids = itertools.count(1)

    def __init__(self, maxsize: int, name: Optional[str] = None):
        self.id = next(self._ids)
        self.name = name or f"subscriber-{self.id}"
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        return self._queue.qsize()

    def offer(self, event: EventData) -> bool:
        """Queue an event without waiting. Returns False if the inbox is full."""
        if self._closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Wake a consumer parked on an empty queue
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass

    def get_nowait(self) -> Optional[EventData]:
        """Return the next queued event, or None if there is none."""
        try:
            event = self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None
        return event

    def __aiter__(self):
        return self

    async def __anext__(self) -> EventData:
        while True:
            if self._closed and self._queue.empty():
                raise StopAsyncIteration
            event = await self._queue.get()
            if event is not None:
                return event


class Broadcaster:
    """
    Publish-subscribe hub for message events.

    Announcing never blocks: each event is queued on every live subscription
    in submission order. A subscriber whose inbox is full is dropped so that
    one slow connection cannot hold up the others or the mutation path.
    """

    def __init__(self, queue_size: int = 256, max_history_size: int = 1000):
        """
        Initialize the broadcaster.

        Args:
            queue_size: Per-subscriber inbox bound
            max_history_size: Number of recent events kept for inspection
        """
        self._subscriptions: Dict[int, Subscription] = {}
        self._queue_size = queue_size
        self._sequence = itertools.count(1)
        self._event_history: List[EventData] = []
        self._max_history_size = max_history_size

        logger.info("Broadcaster initialized")

    def subscribe(self, name: Optional[str] = None) -> Subscription:
        """Register a new subscriber and return its inbox."""
        subscription = Subscription(self._queue_size, name=name)
        self._subscriptions[subscription.id] = subscription
        logger.debug(f"Subscribed {subscription.name} ({len(self._subscriptions)} total)")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivering to a subscriber. Safe to call more than once."""
        if self._subscriptions.pop(subscription.id, None) is not None:
            logger.debug(f"Unsubscribed {subscription.name} ({len(self._subscriptions)} total)")
        subscription.close()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def announce_created(self, message: Message) -> EventData:
        """Tell every subscriber a message was added."""
        return self._publish(BroadcastEvent.CREATED, message.to_wire())

    def announce_deleted(self, message_id: str) -> EventData:
        """Tell every subscriber a message was removed."""
        return self._publish(BroadcastEvent.DELETED, {"id": message_id})

    def _publish(self, event_type: BroadcastEvent, payload: Dict[str, Any]) -> EventData:
        event_data = EventData(
            event_type=event_type,
            payload=payload,
            sequence=next(self._sequence),
        )
        self._add_to_history(event_data)

        dropped: List[Subscription] = []
        for subscription in list(self._subscriptions.values()):
            if not subscription.offer(event_data):
                dropped.append(subscription)

        for subscription in dropped:
            logger.warning(
                f"Dropping subscriber {subscription.name}: inbox full "
                f"({subscription.pending()} pending)"
            )
            self.unsubscribe(subscription)

        logger.debug(
            f"Announced {event_type.value} #{event_data.sequence} "
            f"to {len(self._subscriptions)} subscriber(s)"
        )
        return event_data

    def _add_to_history(self, event_data: EventData) -> None:
        self._event_history.append(event_data)

        # Trim history if it exceeds max size
        if len(self._event_history) > self._max_history_size:
            self._event_history = self._event_history[-self._max_history_size:]

    def get_history(
        self,
        event_type: Optional[BroadcastEvent] = None,
        limit: int = 100
    ) -> List[EventData]:
        """
        Get recent events, oldest first.

        Args:
            event_type: Optional filter by event type
            limit: Maximum number of events to return
        """
        history = self._event_history

        if event_type:
            history = [e for e in history if e.event_type == event_type]

        return history[-limit:]

    def close(self) -> None:
        """Close every subscription, ending their iterators."""
        for subscription in list(self._subscriptions.values()):
            self.unsubscribe(subscription)
        logger.info("Broadcaster closed")
