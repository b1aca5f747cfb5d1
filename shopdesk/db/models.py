import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from shopdesk.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid.uuid4().hex


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value) -> "OrderStatus":
        """Read a stored status, falling back to PENDING for anything unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.PENDING


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=new_id)
    display_name = Column(String(255), nullable=False, default="")
    fcm_token = Column(String(512), nullable=True)
    fcm_token_updated_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Shop(Base):
    __tablename__ = "shops"

    id = Column(String(64), primary_key=True, default=new_id)
    owner_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")
    address = Column(Text, nullable=False, default="")
    phone = Column(String(50), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    logo_url = Column(String(1024), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    settings = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    products = relationship("Product", back_populates="shop")


class Product(Base):
    __tablename__ = "products"

    id = Column(String(64), primary_key=True, default=new_id)
    shop_id = Column(String(64), ForeignKey("shops.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False, default=0.0)
    category = Column(String(100), nullable=False, default="")
    image_url = Column(String(1024), nullable=True)
    available = Column(Boolean, default=True, nullable=False)
    stock_quantity = Column(Integer, default=0, nullable=False)
    unit = Column(String(20), default="kg", nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, nullable=True)

    shop = relationship("Shop", back_populates="products")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True, default=new_id)
    # No foreign key: orders of a missing shop are still valid orders.
    shop_id = Column(String(64), nullable=False, index=True)
    user_id = Column(String(64), nullable=True, index=True)
    customer_id = Column(String(64), nullable=True)
    customer_name = Column(String(255), nullable=False, default="")
    customer_phone = Column(String(50), nullable=False, default="")
    # Amounts are kept exactly as the ordering client wrote them.
    total_price = Column(JSON, nullable=True)
    total_amount = Column(JSON, nullable=True)
    price = Column(JSON, nullable=True)
    quantity = Column(Integer, nullable=False, default=0)
    delivery_type = Column(String(50), nullable=False, default="")
    address = Column(Text, nullable=False, default="")
    status = Column(String(20), default=OrderStatus.PENDING.value, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    cancel_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    completed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def order_status(self) -> OrderStatus:
        return OrderStatus.parse(self.status)

    @property
    def recipient_id(self):
        return self.user_id or self.customer_id

    def to_document(self) -> dict:
        """Render the row in the ordering client's document shape."""
        return {
            "id": self.id,
            "shopId": self.shop_id,
            "userId": self.user_id,
            "customerId": self.customer_id,
            "customerName": self.customer_name,
            "customerPhone": self.customer_phone,
            "totalPrice": self.total_price,
            "totalAmount": self.total_amount,
            "price": self.price,
            "quantity": self.quantity,
            "status": self.status,
            "createdAt": self.created_at,
            "completedAt": self.completed_at,
            "cancelReason": self.cancel_reason,
            "deliveryType": self.delivery_type,
            "address": self.address,
        }


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(64), ForeignKey("orders.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    product_id = Column(String(64), nullable=False, default="")
    product_name = Column(String(255), nullable=False, default="")
    quantity = Column(Integer, nullable=False, default=0)
    unit_price = Column(Float, nullable=False, default=0.0)
    total_price = Column(Float, nullable=False, default=0.0)

    order = relationship("Order", back_populates="items")


class ShopRevenueCounter(Base):
    __tablename__ = "shop_revenue_counters"

    shop_id = Column(String(64), primary_key=True)
    total_revenue = Column(Float, nullable=False, default=0.0)
    total_orders = Column(Integer, nullable=False, default=0)
    last_updated = Column(DateTime, default=utcnow, nullable=False)


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    shop_id = Column(String(64), nullable=True, index=True)
    action = Column(String(50), nullable=False, index=True)
    entity = Column(String(50), nullable=False)
    entity_id = Column(String(64), nullable=True)
    audit_data = Column(JSON, default=dict, nullable=False)
    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)
