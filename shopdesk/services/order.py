import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from shopdesk.core.config import settings
from shopdesk.core.exceptions import OrderNotFoundError, InvalidTransitionError
from shopdesk.db.models import Order, OrderItem, OrderStatus, AuditLog, new_id, utcnow
from shopdesk.schemas.order import OrderDocument, OrderResponse, OrderItemResponse
from shopdesk.services.revenue import order_amount, to_utc_naive
from shopdesk.services.triggers import OrderChange, run_order_triggers

logger = logging.getLogger(__name__)


ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}

_LIFECYCLE = [
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.COMPLETED,
]


def next_statuses(status: OrderStatus) -> list[OrderStatus]:
    """Moves allowed from `status`, in lifecycle order with cancel last."""
    allowed = ORDER_TRANSITIONS[status]
    return [s for s in _LIFECYCLE + [OrderStatus.CANCELLED] if s in allowed]


def check_transition(current: OrderStatus, requested: OrderStatus, strict: bool = None) -> None:
    if strict is None:
        strict = settings.STRICT_STATUS_TRANSITIONS
    if not strict or current == requested:
        return
    if requested not in ORDER_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, requested.value)


def order_to_response(order: Order) -> OrderResponse:
    return OrderResponse(
        id=order.id,
        shop_id=order.shop_id,
        user_id=order.user_id,
        customer_id=order.customer_id,
        customer_name=order.customer_name or "",
        customer_phone=order.customer_phone or "",
        total=order_amount(order),
        quantity=order.quantity or 0,
        status=order.order_status,
        delivery_type=order.delivery_type or "",
        address=order.address or "",
        notes=order.notes,
        cancel_reason=order.cancel_reason,
        created_at=order.created_at,
        completed_at=order.completed_at,
        items=[OrderItemResponse.model_validate(item) for item in order.items],
    )


def _select_orders():
    return select(Order).execution_options(populate_existing=True)


async def _load_order(db: AsyncSession, order_id: str, shop_id: Optional[str] = None, lock: bool = False) -> Order:
    query = _select_orders().where(Order.id == order_id)
    if shop_id is not None:
        query = query.where(Order.shop_id == shop_id)
    if lock:
        query = query.with_for_update()

    result = await db.execute(query)
    order = result.scalar_one_or_none()

    if not order:
        raise OrderNotFoundError(order_id)
    return order


async def get_order(db: AsyncSession, order_id: str, shop_id: Optional[str] = None) -> OrderResponse:
    order = await _load_order(db, order_id, shop_id)
    return order_to_response(order)


async def list_shop_orders(
    db: AsyncSession,
    shop_id: str,
    status_filter: Optional[OrderStatus] = None,
    page: int = 1,
    limit: int = 10
) -> tuple[list[OrderResponse], int]:
    offset = (page - 1) * limit

    condition = Order.shop_id == shop_id
    if status_filter is not None:
        condition = condition & (Order.status == status_filter.value)

    result = await db.execute(
        _select_orders().where(condition).order_by(Order.created_at.desc()).offset(offset).limit(limit)
    )
    orders = result.scalars().all()

    count_result = await db.execute(select(func.count(Order.id)).where(condition))
    total_count = count_result.scalar()

    return [order_to_response(order) for order in orders], total_count or 0


async def list_pending_orders(db: AsyncSession, shop_id: str) -> list[OrderResponse]:
    result = await db.execute(
        _select_orders()
        .where((Order.shop_id == shop_id) & (Order.status == OrderStatus.PENDING.value))
        .order_by(Order.created_at.desc())
    )
    return [order_to_response(order) for order in result.scalars().all()]


async def list_completed_orders(db: AsyncSession, shop_id: str) -> list[OrderResponse]:
    result = await db.execute(
        _select_orders()
        .where((Order.shop_id == shop_id) & (Order.status == OrderStatus.COMPLETED.value))
        .order_by(Order.completed_at.is_(None), Order.completed_at.desc())
    )
    return [order_to_response(order) for order in result.scalars().all()]


async def get_orders_by_date_range(
    db: AsyncSession,
    shop_id: str,
    start: datetime,
    end: datetime
) -> list[OrderResponse]:
    result = await db.execute(
        _select_orders()
        .where(
            (Order.shop_id == shop_id)
            & (Order.created_at >= to_utc_naive(start))
            & (Order.created_at <= to_utc_naive(end))
        )
        .order_by(Order.created_at.desc())
    )
    return [order_to_response(order) for order in result.scalars().all()]


async def create_order(db: AsyncSession, data: OrderDocument, dispatcher=None) -> OrderResponse:
    order = Order(
        id=new_id(),
        shop_id=data.shopId,
        user_id=data.userId,
        customer_id=data.customerId,
        customer_name=data.customerName or data.userName or "",
        customer_phone=data.customerPhone,
        total_price=data.totalPrice,
        total_amount=data.totalAmount,
        price=data.price,
        quantity=data.quantity,
        delivery_type=data.deliveryType,
        address=data.address,
        notes=data.notes,
        status=OrderStatus.PENDING.value,
        created_at=utcnow(),
        updated_at=utcnow(),
    )

    for position, item in enumerate(data.items):
        total_price = item.totalPrice
        if total_price is None:
            total_price = item.quantity * item.unitPrice
        order.items.append(OrderItem(
            position=position,
            product_id=item.productId,
            product_name=item.productName,
            quantity=item.quantity,
            unit_price=item.unitPrice,
            total_price=total_price,
        ))

    db.add(order)
    db.add(AuditLog(
        shop_id=order.shop_id,
        action="ORDER_CREATE",
        entity="order",
        entity_id=order.id,
        audit_data={"customer": order.customer_name, "items": len(data.items)}
    ))
    await db.commit()
    logger.info(f"Order {order.id} created for shop {order.shop_id}")

    response = order_to_response(order)
    await run_order_triggers(db, OrderChange.from_order(order, before_status=None), dispatcher)
    return response


async def update_order_status(
    db: AsyncSession,
    order_id: str,
    new_status: OrderStatus,
    shop_id: Optional[str] = None,
    dispatcher=None
) -> OrderResponse:
    """
    Write a new status onto an order.

    Any status is accepted unless STRICT_STATUS_TRANSITIONS is set.
    Moving to completed stamps completed_at and moving out of it clears it. No row lock is taken, so
    concurrent writers resolve as last write wins.
    """
    order = await _load_order(db, order_id, shop_id)
    before_status = order.status
    check_transition(order.order_status, new_status)

    order.status = new_status.value
    if new_status == OrderStatus.COMPLETED:
        order.completed_at = utcnow()
    elif before_status == OrderStatus.COMPLETED.value:
        order.completed_at = None
    order.updated_at = utcnow()

    db.add(AuditLog(
        shop_id=order.shop_id,
        action="ORDER_STATUS",
        entity="order",
        entity_id=order.id,
        audit_data={"from": before_status, "to": new_status.value}
    ))
    await db.commit()
    logger.info(f"Order {order_id} status {before_status} -> {new_status.value}")

    response = order_to_response(order)
    await run_order_triggers(db, OrderChange.from_order(order, before_status), dispatcher)
    return response


async def cancel_order(
    db: AsyncSession,
    order_id: str,
    reason: str,
    shop_id: Optional[str] = None,
    dispatcher=None
) -> OrderResponse:
    order = await _load_order(db, order_id, shop_id)
    before_status = order.status
    check_transition(order.order_status, OrderStatus.CANCELLED)

    order.status = OrderStatus.CANCELLED.value
    order.cancel_reason = reason
    order.completed_at = utcnow() if settings.CANCEL_STAMPS_COMPLETED_AT else None
    order.updated_at = utcnow()

    db.add(AuditLog(
        shop_id=order.shop_id,
        action="ORDER_CANCEL",
        entity="order",
        entity_id=order.id,
        audit_data={"from": before_status, "reason": reason}
    ))
    await db.commit()
    logger.info(f"Order {order_id} cancelled: {reason}")

    response = order_to_response(order)
    await run_order_triggers(db, OrderChange.from_order(order, before_status), dispatcher)
    return response


async def mark_order_completed(db: AsyncSession, shop_id: str, order_id: str, dispatcher=None) -> OrderResponse:
    """
    Complete an order inside a locked transaction.

    The customer's completion notice is dispatched only after the commit
    and is never awaited here; a failed send leaves the order completed.
    """
    order = await _load_order(db, order_id, shop_id, lock=True)
    before_status = order.status
    recipient_id = order.recipient_id

    order.status = OrderStatus.COMPLETED.value
    order.completed_at = utcnow()
    order.updated_at = utcnow()

    db.add(AuditLog(
        shop_id=shop_id,
        action="ORDER_COMPLETE",
        entity="order",
        entity_id=order.id,
        audit_data={"from": before_status}
    ))
    await db.commit()
    logger.info(f"Order {order_id} marked completed")

    response = order_to_response(order)

    if dispatcher is not None and recipient_id:
        dispatcher.dispatch(dispatcher.send_order_completed(recipient_id, order_id))

    await run_order_triggers(
        db, OrderChange.from_order(order, before_status, notify_status=False), dispatcher
    )
    return response


async def undo_order_completion(db: AsyncSession, order_id: str, shop_id: Optional[str] = None) -> OrderResponse:
    order = await _load_order(db, order_id, shop_id, lock=True)
    before_status = order.status

    order.status = OrderStatus.PENDING.value
    order.completed_at = None
    order.updated_at = utcnow()

    db.add(AuditLog(
        shop_id=order.shop_id,
        action="ORDER_UNDO",
        entity="order",
        entity_id=order.id,
        audit_data={"from": before_status}
    ))
    await db.commit()
    logger.info(f"Order {order_id} moved back to pending")

    response = order_to_response(order)
    await run_order_triggers(db, OrderChange.from_order(order, before_status, notify_status=False))
    return response
