"""File-backed storage for the bounded message log."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Sequence

from pydantic import ValidationError

from chatroom.core.errors import MessageNotFoundError, PersistenceError
from chatroom.models.schemas.message import Message

logger = logging.getLogger(__name__)


class LogStore:
    """
    Owns the on-disk snapshot of the message log.

    Every write replaces the whole file, so a reader always sees a complete
    log. The store holds no in-memory copy; each mutation starts from a fresh
    read. Callers are responsible for serializing mutations.
    """

    def __init__(self, path: str | Path, max_messages: int = 200):
        """
        Initialize the log store.

        Args:
            path: Location of the JSON snapshot file
            max_messages: Retention window, the most messages kept on disk
        """
        if max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        self.path = Path(path)
        self.max_messages = max_messages

    def ensure_exists(self) -> None:
        """Create the parent directory and an empty snapshot if missing."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self._write([])
            logger.info(f"Created empty message log at {self.path}")

    def read_all(self) -> List[Message]:
        """
        Read the full log in stored order.

        Returns:
            The retained messages. A missing file reads as an empty log, and
            so does one that is not a JSON array. Records that fail validation
            are skipped; both cases are logged as warnings.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning(f"Failed to read message log {self.path}: {e}")
            return []

        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Message log {self.path} is not valid JSON: {e}")
            return []

        if not isinstance(parsed, list):
            logger.warning(f"Message log {self.path} does not hold an array")
            return []

        messages: List[Message] = []
        skipped = 0
        for record in parsed:
            try:
                messages.append(Message.model_validate(record))
            except ValidationError:
                skipped += 1

        if skipped:
            logger.warning(f"Message log {self.path}: skipped {skipped} invalid record(s)")
        return messages

    def append_and_persist(
        self,
        existing: Sequence[Message],
        message: Message,
    ) -> List[Message]:
        """
        Append a message, evict the oldest entries beyond the window, persist.

        Args:
            existing: The log as freshly read by the caller
            message: The new message

        Returns:
            The retained log as written

        Raises:
            PersistenceError: If the snapshot could not be written
        """
        retained = [*existing, message][-self.max_messages:]
        evicted = len(existing) + 1 - len(retained)
        if evicted:
            logger.debug(f"Evicting {evicted} oldest message(s) beyond window of {self.max_messages}")
        self._write(retained)
        return retained

    def remove_and_persist(self, message_id: str) -> str:
        """
        Remove every entry with the given id and persist the rest.

        Raises:
            MessageNotFoundError: If no entry has that id
            PersistenceError: If the snapshot could not be written
        """
        messages = self.read_all()
        remaining = [m for m in messages if m.id != message_id]

        if len(remaining) == len(messages):
            raise MessageNotFoundError("message not found")

        self._write(remaining)
        return message_id

    def _write(self, messages: Sequence[Message]) -> None:
        """Atomically replace the snapshot via a temp file in the same directory."""
        payload = json.dumps(
            [m.to_wire() for m in messages],
            indent=2,
            ensure_ascii=False,
        )
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            logger.error(f"Failed to persist message log {self.path}: {e}")
            raise PersistenceError(f"failed to persist messages: {e}") from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.debug(f"Temp snapshot {tmp_path} already gone")
