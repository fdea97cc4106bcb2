"""Registry of open websocket connections."""

import asyncio
import logging
from typing import Dict, List, Optional
from dataclasses import dataclass
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


@dataclass
class Connection:
    """Represents an open persistent connection."""
    connection_id: str
    client: str
    connected_at: datetime
    status: str  # 'active', 'closed'


class ConnectionRegistry:
    """
    Tracks the connect -> active -> disconnect lifecycle of each socket.

    Delivery itself goes through the broadcaster; this only records who is
    connected, for logging and introspection.
    """

    def __init__(self):
        self._connections: Dict[str, Connection] = {}
        self._lock = asyncio.Lock()

    async def register(self, connection_id: str, client: str = "unknown") -> Connection:
        """Record a newly accepted connection."""
        async with self._lock:
            connection = Connection(
                connection_id=connection_id,
                client=client,
                connected_at=datetime.now(timezone.utc),
                status="active",
            )
            self._connections[connection_id] = connection
            total = len(self._connections)
        logger.info(f"Client connected {connection_id} from {client} ({total} open)")
        return connection

    async def unregister(self, connection_id: str, reason: str = "") -> None:
        """Forget a connection once it has closed."""
        async with self._lock:
            connection = self._connections.pop(connection_id, None)
            total = len(self._connections)
        if connection is not None:
            connection.status = "closed"
            suffix = f" {reason}" if reason else ""
            logger.info(f"Client disconnected {connection_id}{suffix} ({total} open)")

    async def get(self, connection_id: str) -> Optional[Connection]:
        async with self._lock:
            return self._connections.get(connection_id)

    async def active_ids(self) -> List[str]:
        async with self._lock:
            return list(self._connections)

    def __len__(self) -> int:
        return len(self._connections)
