"""In-memory topic bus feeding GraphQL subscriptions.

Every subscriber owns an unbounded ``asyncio.Queue``. Publishing enqueues
the payload on each queue attached to the topic at that moment and returns
without waiting, so a slow consumer never stalls the publisher. There is no
history: a subscriber only sees payloads published after it attached.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any

from ..logging import get_logger

logger = get_logger(__name__)

BOOK_ADDED = "BOOK_ADDED"

# Sentinel that ends a subscription blocked on its queue
_CLOSED = object()


class Subscription:
    """Live, non-restartable stream of payloads for one topic.

    Attached to the bus as soon as it is created. Iteration blocks until
    the next payload arrives and ends once :meth:`close` has been called.
    """

    def __init__(self, bus: EventBus, topic: str) -> None:
        self.topic = topic
        self._bus = bus
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        bus._attach(topic, self._queue)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Detach from the bus. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._bus._detach(self.topic, self._queue)
        # Wake a consumer blocked in __anext__
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> Any:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        payload = await self._queue.get()
        if payload is _CLOSED:
            raise StopAsyncIteration
        return payload

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class EventBus:
    """Topic-keyed fan-out to every currently attached subscriber."""

    def __init__(self) -> None:
        self._queues: dict[str, list[asyncio.Queue[Any]]] = defaultdict(list)

    def subscribe(self, topic: str) -> Subscription:
        subscription = Subscription(self, topic)
        logger.debug(
            "Subscriber attached", topic=topic, subscribers=self.subscriber_count(topic)
        )
        return subscription

    async def publish(self, topic: str, payload: Any) -> int:
        """Deliver ``payload`` to current subscribers of ``topic``.

        Returns:
            Number of subscribers the payload was enqueued for.
        """
        queues = list(self._queues.get(topic, ()))
        for queue in queues:
            queue.put_nowait(payload)
        logger.info("Event published", topic=topic, delivered=len(queues))
        return len(queues)

    def subscriber_count(self, topic: str) -> int:
        return len(self._queues.get(topic, ()))

    def _attach(self, topic: str, queue: asyncio.Queue[Any]) -> None:
        self._queues[topic].append(queue)

    def _detach(self, topic: str, queue: asyncio.Queue[Any]) -> None:
        queues = self._queues.get(topic)
        if not queues:
            return
        try:
            queues.remove(queue)
        except ValueError:
            return
        if not queues:
            del self._queues[topic]
        logger.debug("Subscriber detached", topic=topic, subscribers=len(queues))
