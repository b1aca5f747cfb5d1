from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shopdesk.api.dependencies import get_current_shop
from shopdesk.api.streaming import snapshot_events
from shopdesk.db.session import get_db
from shopdesk.db.models import Shop, utcnow
from shopdesk.schemas.revenue import RevenueStats, DailyRevenueResponse, RevenueCounterResponse
from shopdesk.services.revenue import calculate_revenue_stats, get_daily_revenue, get_revenue_counter


router = APIRouter(prefix="/api/v1/shop", tags=["revenue"])


@router.get("/revenue", response_model=RevenueStats)
async def revenue_stats(
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    return await calculate_revenue_stats(db, shop.id)


@router.get("/revenue/daily", response_model=DailyRevenueResponse)
async def daily_revenue(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    end = end or utcnow()
    start = start or end - timedelta(days=7)
    if end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end must not be before start")

    days = await get_daily_revenue(db, shop.id, start, end)
    return DailyRevenueResponse(start=start, end=end, days=days)


@router.get("/revenue/counter", response_model=RevenueCounterResponse)
async def revenue_counter(
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    return await get_revenue_counter(db, shop.id)


@router.get("/revenue/stream")
async def stream_revenue(shop: Shop = Depends(get_current_shop)):
    shop_id = shop.id
    return StreamingResponse(
        snapshot_events(shop_id, lambda db: calculate_revenue_stats(db, shop_id)),
        media_type="text/event-stream",
    )
