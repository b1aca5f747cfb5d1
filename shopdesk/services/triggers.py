"""Side effects that follow a committed order write.

Each lifecycle operation commits its own change first and then calls
:func:`run_order_triggers`. Nothing in here can fail the write that
triggered it.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shopdesk.core.config import settings
from shopdesk.core.events import OrderChangeFeed, order_feed
from shopdesk.db.models import Order, OrderStatus, ShopRevenueCounter, utcnow
from shopdesk.services.revenue import order_amount

logger = logging.getLogger(__name__)

COUNTER_MODE_ACCUMULATE = "accumulate"
COUNTER_MODE_TRANSITION = "transition"


@dataclass
class OrderChange:
    order_id: str
    shop_id: str
    before_status: Optional[str]
    after_status: str
    amount: float
    recipient_id: Optional[str] = None
    customer_name: str = ""
    notify_status: bool = True

    @property
    def created(self) -> bool:
        return self.before_status is None

    @property
    def status_changed(self) -> bool:
        return not self.created and self.before_status != self.after_status

    @classmethod
    def from_order(cls, order: Order, before_status: Optional[str], notify_status: bool = True) -> "OrderChange":
        return cls(
            order_id=order.id,
            shop_id=order.shop_id,
            before_status=before_status,
            after_status=order.status,
            amount=order_amount(order),
            recipient_id=order.recipient_id,
            customer_name=order.customer_name,
            notify_status=notify_status,
        )


def counter_delta(change: OrderChange, mode: str = None) -> int:
    """+1, -1 or 0: how this write moves the shop's revenue counter."""
    mode = mode or settings.REVENUE_COUNTER_MODE
    completed = OrderStatus.COMPLETED.value

    if mode == COUNTER_MODE_ACCUMULATE:
        return 1 if change.after_status == completed else 0

    was_completed = change.before_status == completed
    is_completed = change.after_status == completed
    if is_completed and not was_completed:
        return 1
    if was_completed and not is_completed:
        return -1
    return 0


async def apply_order_write(db: AsyncSession, change: OrderChange, mode: str = None) -> Optional[ShopRevenueCounter]:
    delta = counter_delta(change, mode)
    if delta == 0:
        return None

    try:
        result = await db.execute(
            select(ShopRevenueCounter)
            .where(ShopRevenueCounter.shop_id == change.shop_id)
            .with_for_update()
        )
        counter = result.scalar_one_or_none()

        if not counter:
            if delta < 0:
                await db.commit()
                return None
            counter = ShopRevenueCounter(
                shop_id=change.shop_id,
                total_revenue=change.amount,
                total_orders=1,
                last_updated=utcnow(),
            )
            db.add(counter)
        else:
            counter.total_revenue = (counter.total_revenue or 0.0) + delta * change.amount
            counter.total_orders = max((counter.total_orders or 0) + delta, 0)
            counter.last_updated = utcnow()

        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error updating revenue counter for shop {change.shop_id}: {str(e)}")
        return None

    logger.info(f"Revenue counter updated for shop {change.shop_id}: {counter.total_revenue} / {counter.total_orders}")
    return counter


async def run_order_triggers(
    db: AsyncSession,
    change: OrderChange,
    dispatcher=None,
    feed: OrderChangeFeed = order_feed,
) -> None:
    await apply_order_write(db, change)

    if dispatcher is not None:
        if change.created:
            dispatcher.dispatch(
                dispatcher.send_new_order(change.shop_id, change.order_id, change.customer_name, change.amount)
            )
        elif change.status_changed and change.notify_status and change.recipient_id:
            dispatcher.dispatch(
                dispatcher.send_status_update(change.recipient_id, change.order_id, change.after_status)
            )

    feed.publish(change.shop_id, {
        "type": "order_created" if change.created else "order_updated",
        "orderId": change.order_id,
        "status": change.after_status,
        "previousStatus": change.before_status,
    })
