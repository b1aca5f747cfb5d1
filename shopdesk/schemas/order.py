from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime

from shopdesk.db.models import OrderStatus


class OrderItemDocument(BaseModel):
    productId: str = ""
    productName: str = ""
    quantity: int = 0
    unitPrice: float = 0.0
    totalPrice: Optional[float] = None


class OrderDocument(BaseModel):
    """Order as written by the ordering client.

    Two schema variants are in the wild: `userId`/`userName` and
    `customerId`/`customerName`, and the amount under `totalPrice`,
    `totalAmount` or the legacy `price`. Amounts are kept untyped and
    stored verbatim.
    """
    shopId: str
    userId: Optional[str] = None
    customerId: Optional[str] = None
    customerName: Optional[str] = None
    userName: Optional[str] = None
    customerPhone: str = ""
    items: List[OrderItemDocument] = []
    totalPrice: Any = None
    totalAmount: Any = None
    price: Any = None
    quantity: int = 0
    deliveryType: str = ""
    address: str = ""
    notes: Optional[str] = None


class OrderItemResponse(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    total_price: float

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: str
    shop_id: str
    user_id: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: str = ""
    customer_phone: str = ""
    total: float
    quantity: int = 0
    status: OrderStatus
    delivery_type: str = ""
    address: str = ""
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    items: List[OrderItemResponse] = []

    class Config:
        from_attributes = True


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderCancel(BaseModel):
    reason: str = Field("", max_length=500)
