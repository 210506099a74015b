"""In-process change feed for realtime visitor updates.

Each subscriber gets its own bounded queue. Events are small
`{"table", "type", "id"}` dicts; subscribers are expected to re-fetch what
they display rather than patch it, so a subscriber that falls behind simply
loses events.
"""


import asyncio
import logging
from typing import Any

from gatepass.core.config import settings

logger = logging.getLogger(__name__)


class ChangeFeed:
    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        logger.debug("Change feed subscriber added (%d total)", len(self._subscribers))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)
        logger.debug("Change feed subscriber removed (%d total)", len(self._subscribers))

    def publish(self, event: dict[str, Any]) -> None:
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("Change feed subscriber is full; dropping %s", event)


change_feed = ChangeFeed(queue_size=settings.change_feed_queue_size)
