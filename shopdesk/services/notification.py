"""Push notifications for order events.

Sends are best-effort: callers hand a coroutine to
:meth:`NotificationDispatcher.dispatch` after their transaction has
committed, and the outcome never flows back into the order write.
"""
import asyncio
import logging
from typing import Awaitable, Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shopdesk.core.push_client import PushClient, push_client
from shopdesk.db.models import User, Shop, utcnow

logger = logging.getLogger(__name__)


STATUS_MESSAGES = {
    "confirmed": "Your order has been confirmed! ✅",
    "preparing": "Your order is being prepared 👨‍🍳",
    "ready": "Your order is ready for pickup! 🎉",
    "completed": "Order completed. Thank you! 🙏",
    "cancelled": "Your order has been cancelled",
}


class NotificationDispatcher:
    def __init__(self, session_factory: async_sessionmaker = None, client: PushClient = None):
        if session_factory is None:
            from shopdesk.db.session import async_session
            session_factory = async_session
        self.session_factory = session_factory
        self.client = client or push_client
        self._tasks: Set[asyncio.Task] = set()

    def dispatch(self, coro: Awaitable) -> asyncio.Task:
        """Run a send in the background; the caller does not wait for it."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Notification dispatch failed: {exc!r}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _resolve_token(self, user_id: str) -> Optional[str]:
        async with self.session_factory() as db:
            result = await db.execute(select(User.fcm_token).where(User.id == user_id))
            token = result.scalar_one_or_none()
        return token or None

    async def send_order_completed(self, user_id: str, order_id: str) -> bool:
        token = await self._resolve_token(user_id)
        if not token:
            logger.info(f"No device token for user {user_id}, skipping completion notice")
            return False

        return await self.client.send(
            token,
            title="Order completed",
            body=f"Your order {order_id} has been marked as completed.",
            data={"type": "order_completed", "orderId": order_id},
        )

    async def send_status_update(self, recipient_id: str, order_id: str, status: str) -> bool:
        token = await self._resolve_token(recipient_id)
        if not token:
            logger.info(f"No device token for customer {recipient_id}")
            return False

        return await self.client.send(
            token,
            title="Order Status Update",
            body=STATUS_MESSAGES.get(status, f"Order status: {status}"),
            data={"type": "status_update", "orderId": order_id, "status": status},
        )

    async def send_new_order(self, shop_id: str, order_id: str, customer_name: str, amount: float) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(select(Shop.owner_id).where(Shop.id == shop_id))
            owner_id = result.scalar_one_or_none()
        if not owner_id:
            logger.info(f"Shop not found or has no owner: {shop_id}")
            return False

        token = await self._resolve_token(owner_id)
        if not token:
            logger.info(f"No device token for shop owner {owner_id}")
            return False

        return await self.client.send(
            token,
            title="New Order Received! 🎉",
            body=f"Order from {customer_name} - ${amount:.2f}",
            data={
                "type": "new_order",
                "orderId": order_id,
                "customerName": customer_name,
                "totalAmount": amount,
            },
        )


async def register_device_token(db: AsyncSession, user_id: str, token: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        user = User(id=user_id)
        db.add(user)

    user.fcm_token = token
    user.fcm_token_updated_at = utcnow()
    await db.commit()
    await db.refresh(user)

    logger.info(f"Registered device token for user {user_id}")
    return user
