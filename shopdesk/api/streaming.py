import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopdesk.core.events import OrderChangeFeed, order_feed

logger = logging.getLogger(__name__)


async def snapshot_events(
    shop_id: str,
    load: Callable[[AsyncSession], Awaitable[Any]],
    session_factory: async_sessionmaker = None,
    feed: OrderChangeFeed = order_feed,
) -> AsyncIterator[str]:
    """
    Server-Sent Events for a live query.

    Emits the current result of `load` straight away and again after each
    change to the shop's orders. Bursts of changes are folded into one
    snapshot.
    """
    if session_factory is None:
        from shopdesk.db.session import async_session
        session_factory = async_session

    async with feed.subscribe(shop_id) as queue:
        while True:
            async with session_factory() as db:
                snapshot = await load(db)
            yield f"data: {json.dumps(jsonable_encoder(snapshot))}\n\n"

            await queue.get()
            while not queue.empty():
                queue.get_nowait()
