import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List

logger = logging.getLogger(__name__)


class OrderChangeFeed:
    """In-memory broadcaster of order changes per shop (real-time only, not persisted)."""

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._queues: Dict[str, List[asyncio.Queue]] = defaultdict(list)

    def publish(self, shop_id: str, event: Dict[str, Any]) -> int:
        delivered = 0
        for queue in list(self._queues.get(shop_id, [])):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"Dropping order event for slow subscriber on shop {shop_id}")
        return delivered

    def subscriber_count(self, shop_id: str) -> int:
        return len(self._queues.get(shop_id, []))

    @asynccontextmanager
    async def subscribe(self, shop_id: str) -> AsyncIterator[asyncio.Queue]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._queues[shop_id].append(queue)
        try:
            yield queue
        finally:
            try:
                self._queues[shop_id].remove(queue)
            except ValueError:
                pass
            if not self._queues[shop_id]:
                del self._queues[shop_id]


order_feed = OrderChangeFeed()
