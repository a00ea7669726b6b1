"""Progress broadcasting — fans pipeline events out to connected UI clients."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Protocol

from litreview.models.progress import ProgressEvent

logger = logging.getLogger(__name__)


class ProgressBroadcaster(Protocol):
    """Anything that accepts progress events. Used for UX only, never control flow."""

    async def publish(self, event: ProgressEvent) -> None: ...


class Connection(Protocol):
    """A duplex channel that can push JSON to one client (e.g. a WebSocket)."""

    async def send_json(self, data: Any) -> None: ...


class NullBroadcaster:
    """Discards every event."""

    async def publish(self, event: ProgressEvent) -> None:
        return None


class _Subscriber:
    def __init__(self, connection: Connection) -> None:
        self.connection = connection
        # Serializes sends so concurrent runs never interleave on one socket.
        self.lock = asyncio.Lock()

    async def send(self, message: dict[str, Any]) -> None:
        async with self.lock:
            await self.connection.send_json(message)


class ConnectionHub:
    """Process-wide fan-out to every open subscriber. No buffering or replay."""

    def __init__(self) -> None:
        self._subscribers: dict[int, _Subscriber] = {}
        self._lock = asyncio.Lock()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @asynccontextmanager
    async def subscribe(self, connection: Connection) -> AsyncIterator[_Subscriber]:
        """Register ``connection`` for the duration of the ``async with`` block."""
        subscriber = _Subscriber(connection)
        async with self._lock:
            self._subscribers[id(subscriber)] = subscriber
        logger.info("Progress subscriber connected (%d open)", self.subscriber_count)
        try:
            yield subscriber
        finally:
            await self._remove(subscriber)
            logger.info("Progress subscriber disconnected (%d open)", self.subscriber_count)

    async def publish(self, event: ProgressEvent) -> None:
        """Send ``event`` to every current subscriber, in order, dropping dead ones."""
        message = progress_message(event)
        async with self._lock:
            subscribers = list(self._subscribers.values())

        for subscriber in subscribers:
            try:
                await subscriber.send(message)
            except Exception as exc:
                logger.warning("Dropping progress subscriber after failed send: %s", exc)
                await self._remove(subscriber)

    async def _remove(self, subscriber: _Subscriber) -> None:
        async with self._lock:
            self._subscribers.pop(id(subscriber), None)


def progress_message(event: ProgressEvent) -> dict[str, Any]:
    """Wire format of a progress event."""
    return {
        "type": "research_progress",
        "data": event.to_dict(),
        "timestamp": event.timestamp.isoformat(),
    }


def connection_message() -> dict[str, Any]:
    return {
        "type": "connection",
        "message": "Connected to research progress updates",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
