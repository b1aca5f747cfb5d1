import pytest
from sqlalchemy import select

from shopdesk.core.exceptions import ProductNotFoundError
from shopdesk.db.models import AuditLog, Product
from shopdesk.schemas.product import ProductCreate, ProductUpdate
from shopdesk.services.product import (
    create_product,
    get_product,
    get_shop_products,
    update_product,
    set_product_availability,
    set_product_stock,
    delete_product,
)


@pytest.mark.asyncio
async def test_create_product_defaults(db_session, active_shop):
    result = await create_product(db_session, active_shop.id, ProductCreate(name="Whole chicken", price=4500))

    assert result.shop_id == active_shop.id
    assert result.price == 4500.0
    assert result.available is True
    assert result.stock_quantity == 0
    assert result.unit == "kg"


@pytest.mark.asyncio
async def test_update_product_description(db_session, active_shop):
    product = await create_product(db_session, active_shop.id, ProductCreate(name="Eggs", price=3000, unit="crate"))

    result = await update_product(
        db_session, active_shop.id, product.id, ProductUpdate(description="Fresh farm eggs")
    )

    assert result.description == "Fresh farm eggs"
    assert result.price == 3000.0
    assert result.unit == "crate"
    assert result.updated_at is not None


@pytest.mark.asyncio
async def test_product_of_other_shop_is_not_found(db_session, active_shop):
    db_session.add(Product(id="foreign", shop_id="other-shop", name="Turkey", price=9000))
    await db_session.commit()

    with pytest.raises(ProductNotFoundError):
        await get_product(db_session, active_shop.id, "foreign")
    with pytest.raises(ProductNotFoundError):
        await update_product(db_session, active_shop.id, "foreign", ProductUpdate(price=1))


@pytest.mark.asyncio
async def test_availability_and_stock(db_session, active_shop):
    product = await create_product(db_session, active_shop.id, ProductCreate(name="Gizzard", price=2500))

    result = await set_product_availability(db_session, active_shop.id, product.id, False)
    assert result.available is False

    result = await set_product_stock(db_session, active_shop.id, product.id, 12)
    assert result.stock_quantity == 12
    result = await set_product_stock(db_session, active_shop.id, product.id, 5)
    assert result.stock_quantity == 5


@pytest.mark.asyncio
async def test_list_products_filters_by_category(db_session, active_shop):
    await create_product(db_session, active_shop.id, ProductCreate(name="Broiler", price=6000, category="chicken"))
    await create_product(db_session, active_shop.id, ProductCreate(name="Layer", price=5000, category="chicken"))
    await create_product(db_session, active_shop.id, ProductCreate(name="Eggs", price=3000, category="eggs"))

    products, total = await get_shop_products(db_session, active_shop.id, category="chicken")

    assert total == 2
    assert [p.name for p in products] == ["Broiler", "Layer"]

    products, total = await get_shop_products(db_session, active_shop.id, page=2, limit=2)
    assert total == 3
    assert [p.name for p in products] == ["Layer"]


@pytest.mark.asyncio
async def test_delete_product_is_audited(db_session, active_shop):
    product = await create_product(db_session, active_shop.id, ProductCreate(name="Wings", price=1500))

    await delete_product(db_session, active_shop.id, product.id)

    with pytest.raises(ProductNotFoundError):
        await get_product(db_session, active_shop.id, product.id)

    result = await db_session.execute(
        select(AuditLog.action).where(AuditLog.entity_id == product.id).order_by(AuditLog.id)
    )
    assert result.scalars().all() == ["PRODUCT_CREATE", "PRODUCT_DELETE"]
