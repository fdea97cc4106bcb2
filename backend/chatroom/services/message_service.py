"""
Message Service - the single entry point for mutating the message log.
Both the HTTP routes and the websocket handler call through here, so the
read-modify-write cycle on the log file runs one mutation at a time.
"""

from typing import Any, List, Mapping, NamedTuple, Optional, Union
import asyncio
import logging

from chatroom.core.storage.log_store import LogStore
from chatroom.models.schemas.message import Message, MessageCreate
from chatroom.services.broadcaster import Broadcaster
from chatroom.services.message_factory import MAX_TEXT_LENGTH, create_message

logger = logging.getLogger(__name__)


class CreateResult(NamedTuple):
    """Outcome of an accepted create."""
    message: Message
    total: int


class MessageService:
    """
    Serializes create/delete against the log store and announces commits.
    Knows nothing about HTTP or websockets.
    """

    def __init__(
        self,
        store: LogStore,
        broadcaster: Broadcaster,
        max_text_length: int = MAX_TEXT_LENGTH,
    ):
        """
        Initialize the service with its collaborators.

        Args:
            store: Owner of the snapshot file
            broadcaster: Fanout hub notified after each commit
            max_text_length: Truncation limit passed to the factory
        """
        self.store = store
        self.broadcaster = broadcaster
        self.max_text_length = max_text_length
        self._lock = asyncio.Lock()

        logger.info("MessageService initialized")

    async def list_messages(self) -> List[Message]:
        """Return the current log. Reads need no lock since writes replace the file whole."""
        return await asyncio.to_thread(self.store.read_all)

    async def create_message(
        self,
        payload: Optional[Union[MessageCreate, Mapping[str, Any]]],
    ) -> CreateResult:
        """
        Validate, append and persist a new message, then announce it.

        Raises:
            MessageValidationError: If username or text is empty
            PersistenceError: If the snapshot could not be written
        """
        username, text = _extract_fields(payload)
        message = create_message(username, text, max_length=self.max_text_length)

        # A caller going away mid-commit must not skip the broadcast
        retained = await _shielded(self._commit_create(message))

        logger.info(f"Created message {message.id} from {message.username} ({len(retained)} retained)")
        return CreateResult(message=message, total=len(retained))

    async def _commit_create(self, message: Message) -> List[Message]:
        async with self._lock:
            existing = await asyncio.to_thread(self.store.read_all)
            retained = await asyncio.to_thread(self.store.append_and_persist, existing, message)
            # Announce while still holding the lock so fanout order matches commit order
            self._announce(self.broadcaster.announce_created, message)
        return retained

    async def delete_message(self, message_id: Any) -> str:
        """
        Remove a message by id, persist, then announce the removal.

        Raises:
            MessageNotFoundError: If no message has that id
            PersistenceError: If the snapshot could not be written
        """
        message_id = "" if message_id is None else str(message_id)

        removed_id = await _shielded(self._commit_delete(message_id))

        logger.info(f"Deleted message {removed_id}")
        return removed_id

    async def _commit_delete(self, message_id: str) -> str:
        async with self._lock:
            removed_id = await asyncio.to_thread(self.store.remove_and_persist, message_id)
            self._announce(self.broadcaster.announce_deleted, removed_id)
        return removed_id

    def _announce(self, announce, value) -> None:
        # The mutation is already committed; fanout problems must not undo it
        try:
            announce(value)
        except Exception as e:
            logger.error(f"Broadcast failed after commit: {e}", exc_info=True)


def _extract_fields(payload) -> tuple:
    if payload is None:
        return None, None
    if isinstance(payload, MessageCreate):
        return payload.username, payload.text
    if isinstance(payload, Mapping):
        return payload.get("username"), payload.get("text")
    return None, None


def _shielded(coro):
    """Run a commit to completion even if the awaiting caller is cancelled."""
    task = asyncio.ensure_future(coro)
    task.add_done_callback(_retrieve_outcome)
    return asyncio.shield(task)


def _retrieve_outcome(task: asyncio.Task) -> None:
    # With the caller gone nobody awaits the task; read its exception so
    # asyncio does not report it as never retrieved
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"Commit did not complete: {error}")
