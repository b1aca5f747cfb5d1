import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from shopdesk.core.exceptions import ProductNotFoundError
from shopdesk.db.models import Product, AuditLog, new_id, utcnow
from shopdesk.schemas.product import ProductCreate, ProductUpdate, ProductResponse

logger = logging.getLogger(__name__)


async def _get_product(db: AsyncSession, shop_id: str, product_id: str) -> Product:
    result = await db.execute(
        select(Product).where((Product.shop_id == shop_id) & (Product.id == product_id))
    )
    product = result.scalar_one_or_none()

    if not product:
        raise ProductNotFoundError(product_id)
    return product


async def get_shop_products(
    db: AsyncSession,
    shop_id: str,
    page: int = 1,
    limit: int = 50,
    category: str = None
) -> tuple[list[ProductResponse], int]:
    offset = (page - 1) * limit

    condition = Product.shop_id == shop_id
    if category:
        condition = condition & (Product.category == category)
        logger.info(f"Filtering products of shop {shop_id} by category={category}")

    result = await db.execute(
        select(Product).where(condition).order_by(Product.name).offset(offset).limit(limit)
    )
    products = result.scalars().all()

    count_result = await db.execute(select(func.count(Product.id)).where(condition))
    total_count = count_result.scalar()

    return [ProductResponse.model_validate(p) for p in products], total_count or 0


async def get_product(db: AsyncSession, shop_id: str, product_id: str) -> ProductResponse:
    product = await _get_product(db, shop_id, product_id)
    return ProductResponse.model_validate(product)


async def create_product(db: AsyncSession, shop_id: str, data: ProductCreate) -> ProductResponse:
    product = Product(id=new_id(), shop_id=shop_id, created_at=utcnow(), **data.model_dump())
    db.add(product)

    db.add(AuditLog(
        shop_id=shop_id,
        action="PRODUCT_CREATE",
        entity="product",
        entity_id=product.id,
        audit_data={"name": data.name}
    ))
    await db.commit()
    await db.refresh(product)

    return ProductResponse.model_validate(product)


async def update_product(
    db: AsyncSession,
    shop_id: str,
    product_id: str,
    data: ProductUpdate
) -> ProductResponse:
    product = await _get_product(db, shop_id, product_id)

    update_data = data.model_dump(exclude_unset=True)

    for field, value in update_data.items():
        if value is not None:
            setattr(product, field, value)

    product.updated_at = utcnow()

    db.add(AuditLog(
        shop_id=shop_id,
        action="PRODUCT_UPDATE",
        entity="product",
        entity_id=product_id,
        audit_data=update_data
    ))
    await db.commit()
    await db.refresh(product)

    return ProductResponse.model_validate(product)


async def set_product_availability(db: AsyncSession, shop_id: str, product_id: str, available: bool) -> ProductResponse:
    product = await _get_product(db, shop_id, product_id)
    product.available = available
    product.updated_at = utcnow()
    await db.commit()
    await db.refresh(product)

    return ProductResponse.model_validate(product)


async def set_product_stock(db: AsyncSession, shop_id: str, product_id: str, quantity: int) -> ProductResponse:
    # Overwrite, not increment: the dashboard sends the counted stock.
    product = await _get_product(db, shop_id, product_id)
    product.stock_quantity = quantity
    product.updated_at = utcnow()
    await db.commit()
    await db.refresh(product)

    return ProductResponse.model_validate(product)


async def delete_product(db: AsyncSession, shop_id: str, product_id: str) -> None:
    product = await _get_product(db, shop_id, product_id)
    await db.delete(product)

    db.add(AuditLog(
        shop_id=shop_id,
        action="PRODUCT_DELETE",
        entity="product",
        entity_id=product_id,
        audit_data={"name": product.name}
    ))
    await db.commit()
