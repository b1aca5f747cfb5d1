from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shopdesk.api.dependencies import get_current_shop, get_dispatcher
from shopdesk.api.streaming import snapshot_events
from shopdesk.db.session import get_db
from shopdesk.db.models import Shop, OrderStatus
from shopdesk.schemas.order import OrderResponse, OrderStatusUpdate, OrderCancel
from shopdesk.services.notification import NotificationDispatcher
from shopdesk.services.order import (
    get_order,
    list_shop_orders,
    list_pending_orders,
    list_completed_orders,
    get_orders_by_date_range,
    next_statuses,
    update_order_status,
    cancel_order,
    mark_order_completed,
    undo_order_completion,
)


router = APIRouter(prefix="/api/v1/shop", tags=["orders"])


@router.get("/orders", response_model=dict)
async def list_orders(
    page: int = 1,
    limit: int = 10,
    status_filter: Optional[OrderStatus] = None,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    try:
        if page < 1:
            page = 1
        if limit < 1 or limit > 100:
            limit = 10

        orders, total_count = await list_shop_orders(db, shop.id, status_filter, page, limit)
        total_pages = (total_count + limit - 1) // limit

        return {
            "items": orders,
            "total": total_count,
            "page": page,
            "limit": limit,
            "total_pages": total_pages
        }
    except SQLAlchemyError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/orders/pending", response_model=list[OrderResponse])
async def pending_orders(
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    return await list_pending_orders(db, shop.id)


@router.get("/orders/completed", response_model=list[OrderResponse])
async def completed_orders(
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    return await list_completed_orders(db, shop.id)


@router.get("/orders/range", response_model=list[OrderResponse])
async def orders_in_range(
    start: datetime,
    end: datetime,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    if end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end must not be before start")
    return await get_orders_by_date_range(db, shop.id, start, end)


@router.get("/orders/pending/stream")
async def stream_pending_orders(shop: Shop = Depends(get_current_shop)):
    shop_id = shop.id
    return StreamingResponse(
        snapshot_events(shop_id, lambda db: list_pending_orders(db, shop_id)),
        media_type="text/event-stream",
    )


@router.get("/orders/completed/stream")
async def stream_completed_orders(shop: Shop = Depends(get_current_shop)):
    shop_id = shop.id
    return StreamingResponse(
        snapshot_events(shop_id, lambda db: list_completed_orders(db, shop_id)),
        media_type="text/event-stream",
    )


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def order_detail(
    order_id: str,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    return await get_order(db, order_id, shop.id)


@router.get("/orders/{order_id}/transitions", response_model=list[OrderStatus])
async def order_transitions(
    order_id: str,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    order = await get_order(db, order_id, shop.id)
    return next_statuses(order.status)


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def change_status(
    order_id: str,
    data: OrderStatusUpdate,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    return await update_order_status(db, order_id, data.status, shop_id=shop.id, dispatcher=dispatcher)


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
async def cancel(
    order_id: str,
    data: OrderCancel,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    return await cancel_order(db, order_id, data.reason, shop_id=shop.id, dispatcher=dispatcher)


@router.post("/orders/{order_id}/complete", response_model=OrderResponse)
async def complete(
    order_id: str,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    return await mark_order_completed(db, shop.id, order_id, dispatcher=dispatcher)


@router.post("/orders/{order_id}/undo", response_model=OrderResponse)
async def undo_completion(
    order_id: str,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    return await undo_order_completion(db, order_id, shop_id=shop.id)
