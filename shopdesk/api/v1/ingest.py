from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from shopdesk.api.dependencies import get_current_user_id, get_dispatcher
from shopdesk.db.session import get_db
from shopdesk.schemas.order import OrderDocument, OrderResponse
from shopdesk.services.notification import NotificationDispatcher
from shopdesk.services.order import create_order


router = APIRouter(prefix="/api/v1", tags=["ingest"])


@router.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def place_order(
    data: OrderDocument,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    """Entry point for the customer ordering app. New orders always start as pending."""
    if any(claimed_id not in (None, user_id) for claimed_id in (data.userId, data.customerId)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Orders can only be placed for the authenticated customer",
        )
    if not data.userId and not data.customerId:
        data.userId = user_id
    return await create_order(db, data, dispatcher=dispatcher)
