from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from shopdesk.api.dependencies import get_current_shop, get_current_user_id
from shopdesk.db.session import get_db
from shopdesk.db.models import Shop
from shopdesk.schemas.shop import ShopResponse, ShopUpdate, DeviceTokenUpdate
from shopdesk.services.notification import register_device_token
from shopdesk.services.shop import get_shop_profile, update_shop_profile


router = APIRouter(prefix="/api/v1", tags=["profile"])


@router.get("/shop/profile", response_model=ShopResponse)
async def get_profile(
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    profile = await get_shop_profile(db, shop.id)
    return profile


@router.patch("/shop/profile", response_model=ShopResponse)
async def update_profile(
    data: ShopUpdate,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    if not data.model_dump(exclude_unset=True):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update"
        )

    updated = await update_shop_profile(db, shop.id, data)
    return updated


@router.put("/me/device-token", status_code=status.HTTP_204_NO_CONTENT)
async def put_device_token(
    data: DeviceTokenUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    await register_device_token(db, user_id, data.token)
