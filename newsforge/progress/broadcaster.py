"""In-process progress fan-out.

Each subscriber (typically one WebSocket connection) gets its own bounded
``asyncio.Queue``. ``emit`` never blocks and never raises: a subscriber
whose queue is full misses the event. Subscribers only see events emitted
after they subscribed.

Pattern: send-only channel + per-subscriber queues.
"""

import asyncio
import logging
from typing import Protocol

from newsforge.progress.schemas import ProgressEvent

logger = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    """Sink for progress events."""

    def emit(self, event: ProgressEvent) -> None: ...


class ProgressBroadcaster:
    """Fans progress events out to subscriber queues.

    Lifecycle:
        1. ``subscribe()`` returns a queue (or None when full)
        2. the coordinator calls ``emit(event)``
        3. ``unsubscribe(queue)`` when the consumer goes away
    """

    def __init__(self, max_subscribers: int = 100, queue_size: int = 256) -> None:
        self._max_subscribers = max_subscribers
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue[ProgressEvent]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue[ProgressEvent] | None:
        """Register a new subscriber.

        Returns:
            The subscriber's queue, or None if max subscribers reached.
        """
        if len(self._subscribers) >= self._max_subscribers:
            return None

        queue: asyncio.Queue[ProgressEvent] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        logger.info("Progress subscriber added (total=%d)", len(self._subscribers))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[ProgressEvent]) -> None:
        """Remove a subscriber. Unknown queues are ignored."""
        if queue in self._subscribers:
            self._subscribers.discard(queue)
            logger.info("Progress subscriber removed (total=%d)", len(self._subscribers))

    def emit(self, event: ProgressEvent) -> None:
        """Deliver an event to every subscriber without waiting."""
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.debug("Progress subscriber queue full, dropping event")
