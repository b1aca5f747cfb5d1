import pytest
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from shopdesk.db.models import Order, OrderStatus
from shopdesk.schemas.revenue import RevenueStats, average_order_value
from shopdesk.services.revenue import (
    extract_total_amount,
    summarize_completed_orders,
    calculate_revenue_stats,
    get_daily_revenue,
    get_revenue_counter,
)

# A Wednesday; its week runs from Monday 12 to Sunday 18 October.
NOW = datetime(2026, 10, 14, 12, 0)


def completed(amount, completed_at, created_at=None, **fields) -> Order:
    return Order(
        shop_id="shop-1",
        status=OrderStatus.COMPLETED.value,
        total_price=amount,
        created_at=created_at or completed_at or NOW,
        completed_at=completed_at,
        **fields,
    )


def test_extract_prefers_total_price():
    assert extract_total_amount({"totalPrice": 10, "price": 5}) == 10.0
    assert extract_total_amount({"totalPrice": 10, "totalAmount": 7}) == 10.0
    assert extract_total_amount({"totalAmount": 7.5, "price": 5}) == 7.5


def test_extract_falls_back_to_legacy_price():
    assert extract_total_amount({"price": 5}) == 5.0
    assert extract_total_amount({"totalPrice": None, "price": 5}) == 5.0


def test_extract_returns_zero_for_unusable_values():
    assert extract_total_amount({}) == 0.0
    assert extract_total_amount({"totalPrice": "100"}) == 0.0
    assert extract_total_amount({"totalPrice": "100", "price": 5}) == 0.0
    assert extract_total_amount({"totalPrice": True}) == 0.0
    assert extract_total_amount({"totalPrice": {"amount": 3}}) == 0.0


def test_extract_returns_float_for_int():
    amount = extract_total_amount({"totalAmount": 12})
    assert amount == 12.0
    assert isinstance(amount, float)


def test_windows_follow_completion_date_not_creation_date():
    orders = [
        completed(50, completed_at=NOW - timedelta(hours=1), created_at=NOW - timedelta(days=1)),
        completed(30, completed_at=datetime(2026, 9, 20, 9, 0), created_at=NOW),
    ]

    stats = summarize_completed_orders(orders, now=NOW)

    assert stats.today_revenue == 50.0
    assert stats.today_orders == 1
    assert stats.month_revenue == 50.0
    assert stats.month_orders == 1
    assert stats.total_revenue == 80.0
    assert stats.total_orders == 2


def test_week_window_starts_on_monday():
    orders = [
        completed(10, completed_at=datetime(2026, 10, 12, 0, 30)),  # Monday
        completed(20, completed_at=datetime(2026, 10, 11, 23, 30)),  # Sunday before
        completed(40, completed_at=datetime(2026, 10, 13, 18, 0)),  # Tuesday
    ]

    stats = summarize_completed_orders(orders, now=NOW)

    assert stats.week_revenue == 50.0
    assert stats.week_orders == 2
    assert stats.today_revenue == 0.0
    assert stats.month_revenue == 70.0


def test_order_without_completed_at_counts_only_toward_total():
    orders = [
        completed(25, completed_at=None, created_at=NOW),
        completed(5, completed_at=NOW),
    ]

    stats = summarize_completed_orders(orders, now=NOW)

    assert stats.total_revenue == 30.0
    assert stats.total_orders == 2
    assert stats.today_revenue == 5.0
    assert stats.month_orders == 1


def test_windows_use_reporting_timezone():
    lagos = ZoneInfo("Africa/Lagos")  # UTC+1
    # 23:30 UTC on the 13th is 00:30 on the 14th in Lagos.
    orders = [completed(15, completed_at=datetime(2026, 10, 13, 23, 30))]

    stats = summarize_completed_orders(orders, now=NOW, tz=lagos)

    assert stats.today_revenue == 15.0


def test_average_order_value_guards_zero_count():
    assert average_order_value(0.0, 0) == 0.0
    assert average_order_value(90.0, 3) == 30.0

    stats = RevenueStats.empty()
    assert stats.today_average == 0.0
    assert stats.week_average == 0.0
    assert stats.month_average == 0.0
    assert stats.total_average == 0.0


def test_stats_serialize_averages():
    stats = summarize_completed_orders([completed(10, NOW), completed(20, NOW)], now=NOW)

    dumped = stats.model_dump()

    assert dumped["today_average"] == 15.0
    assert dumped["total_average"] == 15.0


@pytest.mark.asyncio
async def test_calculate_revenue_stats_reads_only_completed_orders(db_session, active_shop, make_order):
    await make_order(active_shop.id, status="completed", total_price=100, completed_at=NOW - timedelta(hours=2))
    await make_order(active_shop.id, status="completed", price=20, completed_at=NOW - timedelta(days=40))
    await make_order(active_shop.id, status="pending", total_price=999)
    await make_order(active_shop.id, status="cancelled", total_price=999, completed_at=NOW)
    await make_order("other-shop", status="completed", total_price=999, completed_at=NOW)

    stats = await calculate_revenue_stats(db_session, active_shop.id, now=NOW)

    assert stats.total_revenue == 120.0
    assert stats.total_orders == 2
    assert stats.today_revenue == 100.0
    assert stats.month_revenue == 100.0


@pytest.mark.asyncio
async def test_calculate_revenue_stats_degrades_to_zero(tmp_path):
    # No tables: every read fails.
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as session:
        stats = await calculate_revenue_stats(session, "shop-1", now=NOW)
    async with factory() as session:
        daily = await get_daily_revenue(session, "shop-1", NOW - timedelta(days=7), NOW)

    await engine.dispose()

    assert stats.total_revenue == 0.0
    assert stats.total_orders == 0
    assert daily == {}


@pytest.mark.asyncio
async def test_daily_revenue_buckets_by_creation_day(db_session, active_shop, make_order):
    day1 = datetime(2026, 10, 10, 9, 0)
    day2 = datetime(2026, 10, 11, 15, 0)
    await make_order(active_shop.id, status="completed", total_price=10, created_at=day1, completed_at=day2)
    await make_order(active_shop.id, status="completed", total_amount=15.5, created_at=day1 + timedelta(hours=3),
                     completed_at=day2)
    await make_order(active_shop.id, status="completed", total_price=7, created_at=day2, completed_at=day2)
    await make_order(active_shop.id, status="pending", total_price=100, created_at=day2)
    await make_order(active_shop.id, status="completed", total_price=100, created_at=datetime(2026, 9, 1),
                     completed_at=datetime(2026, 9, 1))

    daily = await get_daily_revenue(db_session, active_shop.id, datetime(2026, 10, 1), datetime(2026, 10, 14))

    assert daily == {"2026-10-10": 25.5, "2026-10-11": 7.0}


@pytest.mark.asyncio
async def test_revenue_counter_defaults_to_zero(db_session, active_shop):
    counter = await get_revenue_counter(db_session, active_shop.id)

    assert counter.total_revenue == 0.0
    assert counter.total_orders == 0
    assert counter.last_updated is None
