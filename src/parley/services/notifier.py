"""Realtime fanout of committed conversation and message changes.

The services call a :class:`Notifier` only after the originating write has
been committed. :class:`RegistryNotifier` delivers events to live WebSocket
connections tracked by a :class:`ConnectionRegistry`; each connection owns a
bounded queue that a single sender task drains.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from parley.core.settings import settings

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Names of the events pushed to connected clients."""

    CONVERSATION_CREATED = "conversation.created"
    PARTICIPANT_ADDED = "participant.added"
    PARTICIPANT_REMOVED = "participant.removed"
    MESSAGE_CREATED = "message.created"
    MESSAGE_UPDATED = "message.updated"
    MESSAGE_DELETED = "message.deleted"


@dataclass(frozen=True)
class NotificationEvent:
    """A committed change addressed to a set of users."""

    type: EventType
    conversation_id: uuid.UUID
    recipients: frozenset[uuid.UUID]
    payload: dict[str, Any] = field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-compatible frame sent over the socket."""
        return {
            "type": self.type.value,
            "conversationId": str(self.conversation_id),
            "data": self.payload,
        }


class Notifier(ABC):
    """Interface consumed by the domain services."""

    @abstractmethod
    async def publish(self, event: NotificationEvent) -> None:
        """Deliver an event to its recipients."""


class NullNotifier(Notifier):
    """Notifier that discards every event."""

    async def publish(self, event: NotificationEvent) -> None:
        return None


@dataclass
class Connection:
    """One live client connection and its outbound queue."""

    id: int
    user_id: uuid.UUID
    queue: asyncio.Queue[dict[str, Any]]

    def offer(self, frame: dict[str, Any]) -> bool:
        """Queue a frame without waiting; return False if the queue is full."""
        try:
            self.queue.put_nowait(frame)
        except asyncio.QueueFull:
            return False
        return True


class ConnectionRegistry:
    """Connections keyed by connection id, guarded by a single lock."""

    def __init__(self, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._connections: dict[int, Connection] = {}
        self._lock = asyncio.Lock()
        self._ids = itertools.count(1)

    async def register(self, user_id: uuid.UUID) -> Connection:
        """Create and track a connection for ``user_id``."""
        async with self._lock:
            connection = Connection(
                id=next(self._ids),
                user_id=user_id,
                queue=asyncio.Queue(maxsize=self._queue_size),
            )
            self._connections[connection.id] = connection
        logger.debug("Registered connection %d for user %s", connection.id, user_id)
        return connection

    async def unregister(self, connection_id: int) -> None:
        """Stop tracking a connection; unknown ids are ignored."""
        async with self._lock:
            removed = self._connections.pop(connection_id, None)
        if removed is not None:
            logger.debug("Unregistered connection %d", connection_id)

    async def connections_for(self, user_ids: Iterable[uuid.UUID]) -> list[Connection]:
        """Return every live connection belonging to one of ``user_ids``."""
        wanted = set(user_ids)
        async with self._lock:
            return [conn for conn in self._connections.values() if conn.user_id in wanted]

    async def count(self) -> int:
        """Return the number of live connections."""
        async with self._lock:
            return len(self._connections)


class RegistryNotifier(Notifier):
    """Fan events out to the registry's connections."""

    def __init__(self, registry: ConnectionRegistry) -> None:
        self.registry = registry

    async def publish(self, event: NotificationEvent) -> None:
        if not event.recipients:
            return
        frame = event.to_wire()
        for connection in await self.registry.connections_for(event.recipients):
            if not connection.offer(frame):
                logger.warning(
                    "Dropped %s event for connection %d: queue full",
                    event.type.value,
                    connection.id,
                )


_registry: ConnectionRegistry | None = None


def get_connection_registry() -> ConnectionRegistry:
    """Return the process-wide connection registry."""
    global _registry
    if _registry is None:
        _registry = ConnectionRegistry(queue_size=settings.realtime_queue_size)
    return _registry
