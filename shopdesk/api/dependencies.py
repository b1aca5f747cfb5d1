from typing import Optional

from fastapi import Depends, HTTPException, status, Query
from fastapi.security import HTTPBearer
from fastapi.security.http import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from shopdesk.core.exceptions import ShopNotFoundError
from shopdesk.core.security import verify_token
from shopdesk.db.models import Shop
from shopdesk.db.session import get_db
from shopdesk.services.notification import NotificationDispatcher
from shopdesk.services.shop import get_shop_by_owner


security = HTTPBearer(auto_error=False)

_dispatcher: Optional[NotificationDispatcher] = None


def get_dispatcher() -> NotificationDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token: Optional[str] = Query(None, description="For event streams, which cannot send headers"),
) -> str:
    raw_token = credentials.credentials if credentials else token
    payload = verify_token(raw_token) if raw_token else None

    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )

    return str(payload["sub"])


async def get_current_shop(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> Shop:
    try:
        shop = await get_shop_by_owner(db, user_id)
    except ShopNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    if not shop.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Shop is not active",
        )

    return shop
