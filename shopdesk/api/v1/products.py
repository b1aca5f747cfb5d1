from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from shopdesk.api.dependencies import get_current_shop
from shopdesk.db.session import get_db
from shopdesk.db.models import Shop
from shopdesk.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductAvailabilityUpdate,
    ProductStockUpdate,
)
from shopdesk.services.product import (
    get_shop_products,
    get_product,
    create_product,
    update_product,
    set_product_availability,
    set_product_stock,
    delete_product,
)


router = APIRouter(prefix="/api/v1/shop", tags=["products"])


@router.get("/products", response_model=dict)
async def list_products(
    page: int = 1,
    limit: int = 50,
    category: Optional[str] = None,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    if page < 1:
        page = 1
    if limit < 1 or limit > 200:
        limit = 50

    products, total_count = await get_shop_products(db, shop.id, page, limit, category)
    total_pages = (total_count + limit - 1) // limit

    return {
        "items": products,
        "total": total_count,
        "page": page,
        "limit": limit,
        "total_pages": total_pages
    }


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def add_product(
    data: ProductCreate,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    return await create_product(db, shop.id, data)


@router.get("/products/{product_id}", response_model=ProductResponse)
async def product_detail(
    product_id: str,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    return await get_product(db, shop.id, product_id)


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def edit_product(
    product_id: str,
    data: ProductUpdate,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    return await update_product(db, shop.id, product_id, data)


@router.put("/products/{product_id}/availability", response_model=ProductResponse)
async def change_availability(
    product_id: str,
    data: ProductAvailabilityUpdate,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    return await set_product_availability(db, shop.id, product_id, data.available)


@router.put("/products/{product_id}/stock", response_model=ProductResponse)
async def change_stock(
    product_id: str,
    data: ProductStockUpdate,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    return await set_product_stock(db, shop.id, product_id, data.stock_quantity)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_product(
    product_id: str,
    shop: Shop = Depends(get_current_shop),
    db: AsyncSession = Depends(get_db)
):
    await delete_product(db, shop.id, product_id)
