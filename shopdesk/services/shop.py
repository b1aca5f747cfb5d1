from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from shopdesk.core.exceptions import ShopNotFoundError
from shopdesk.db.models import Shop, AuditLog
from shopdesk.schemas.shop import ShopResponse, ShopUpdate


async def get_shop_by_owner(db: AsyncSession, owner_id: str) -> Shop:
    result = await db.execute(
        select(Shop).where(Shop.owner_id == owner_id).order_by(Shop.created_at).limit(1)
    )
    shop = result.scalar_one_or_none()

    if not shop:
        raise ShopNotFoundError("No shop registered for this account")
    return shop


async def get_shop_profile(db: AsyncSession, shop_id: str) -> ShopResponse:
    result = await db.execute(select(Shop).where(Shop.id == shop_id))
    shop = result.scalar_one_or_none()

    if not shop:
        raise ShopNotFoundError()

    return ShopResponse.model_validate(shop)


async def update_shop_profile(
    db: AsyncSession,
    shop_id: str,
    data: ShopUpdate
) -> ShopResponse:
    result = await db.execute(select(Shop).where(Shop.id == shop_id))
    shop = result.scalar_one_or_none()

    if not shop:
        raise ShopNotFoundError()

    update_data = data.model_dump(exclude_unset=True)

    for field, value in update_data.items():
        if value is not None:
            setattr(shop, field, value)

    audit_log = AuditLog(
        shop_id=shop_id,
        action="PROFILE_UPDATE",
        entity="shop",
        entity_id=shop_id,
        audit_data=update_data
    )
    db.add(audit_log)
    await db.commit()
    await db.refresh(shop)

    return ShopResponse.model_validate(shop)
