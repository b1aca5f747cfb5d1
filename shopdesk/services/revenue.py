import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, Mapping, Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shopdesk.core.config import settings
from shopdesk.db.models import Order, OrderStatus, ShopRevenueCounter
from shopdesk.schemas.revenue import RevenueStats, RevenueCounterResponse

logger = logging.getLogger(__name__)


AMOUNT_FIELDS = ("totalPrice", "totalAmount", "price")


def extract_total_amount(data: Mapping[str, Any]) -> float:
    """
    Monetary value of an order document.

    The first of totalPrice, totalAmount, price that is set wins. Only
    int and float values count; anything else is treated as 0.
    """
    amount = None
    for field in AMOUNT_FIELDS:
        amount = data.get(field)
        if amount is not None:
            break

    if isinstance(amount, bool):
        return 0.0
    if isinstance(amount, (int, float)):
        return float(amount)
    return 0.0


def order_amount(order: Order) -> float:
    return extract_total_amount(order.to_document())


def reporting_timezone() -> tzinfo:
    return ZoneInfo(settings.REVENUE_TIMEZONE)


def to_local(value: datetime, tz: tzinfo) -> datetime:
    # Stored timestamps are naive UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def summarize_completed_orders(orders: Iterable[Order], now: Optional[datetime] = None, tz: tzinfo = None) -> RevenueStats:
    """Bucket completed orders into today / this week / this month by completion time."""
    tz = tz or reporting_timezone()
    now_local = to_local(now, tz) if now else datetime.now(tz)
    today = now_local.date()
    this_week = today.isocalendar()[:2]

    stats = RevenueStats(last_updated=to_utc_naive(now_local))

    for order in orders:
        amount = order_amount(order)

        stats.total_revenue += amount
        stats.total_orders += 1

        if order.completed_at is None:
            continue

        completed_day = to_local(order.completed_at, tz).date()

        if completed_day == today:
            stats.today_revenue += amount
            stats.today_orders += 1

        if completed_day.isocalendar()[:2] == this_week:
            stats.week_revenue += amount
            stats.week_orders += 1

        if (completed_day.year, completed_day.month) == (today.year, today.month):
            stats.month_revenue += amount
            stats.month_orders += 1

    return stats


async def fetch_completed_orders(db: AsyncSession, shop_id: str) -> list[Order]:
    # Single equality query, no date range: the windows are cut in memory.
    result = await db.execute(
        select(Order).where(
            (Order.shop_id == shop_id) & (Order.status == OrderStatus.COMPLETED.value)
        )
    )
    return list(result.scalars().all())


async def calculate_revenue_stats(db: AsyncSession, shop_id: str, now: Optional[datetime] = None) -> RevenueStats:
    try:
        orders = await fetch_completed_orders(db, shop_id)
    except SQLAlchemyError as e:
        logger.error(f"Revenue stats unavailable for shop {shop_id}: {str(e)}")
        return RevenueStats.empty()

    stats = summarize_completed_orders(orders, now=now)
    logger.debug(f"Revenue for shop {shop_id}: total={stats.total_revenue} over {stats.total_orders} orders")
    return stats


async def get_daily_revenue(db: AsyncSession, shop_id: str, start: datetime, end: datetime) -> Dict[str, float]:
    """Completed-order totals per calendar day of creation, within [start, end]."""
    tz = reporting_timezone()

    try:
        result = await db.execute(
            select(Order)
            .where(
                (Order.shop_id == shop_id)
                & (Order.created_at >= to_utc_naive(start))
                & (Order.created_at <= to_utc_naive(end))
            )
            .order_by(Order.created_at.desc())
        )
        orders = result.scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"Daily revenue unavailable for shop {shop_id}: {str(e)}")
        return {}

    daily: Dict[str, float] = {}
    for order in orders:
        if order.order_status != OrderStatus.COMPLETED:
            continue
        date_key = to_local(order.created_at, tz).date().isoformat()
        daily[date_key] = daily.get(date_key, 0.0) + order_amount(order)

    return daily


async def get_revenue_counter(db: AsyncSession, shop_id: str) -> RevenueCounterResponse:
    result = await db.execute(select(ShopRevenueCounter).where(ShopRevenueCounter.shop_id == shop_id))
    counter = result.scalar_one_or_none()

    if not counter:
        return RevenueCounterResponse(shop_id=shop_id, total_revenue=0.0, total_orders=0)

    return RevenueCounterResponse(
        shop_id=counter.shop_id,
        total_revenue=counter.total_revenue,
        total_orders=counter.total_orders,
        last_updated=counter.last_updated,
    )
