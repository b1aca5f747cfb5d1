from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    price: float = Field(0.0, ge=0)
    category: str = ""
    image_url: Optional[str] = None
    available: bool = True
    stock_quantity: int = Field(0, ge=0)
    unit: str = "kg"


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    image_url: Optional[str] = None
    unit: Optional[str] = None


class ProductAvailabilityUpdate(BaseModel):
    available: bool


class ProductStockUpdate(BaseModel):
    stock_quantity: int = Field(..., ge=0)


class ProductResponse(BaseModel):
    id: str
    shop_id: str
    name: str
    description: str = ""
    price: float
    category: str = ""
    image_url: Optional[str] = None
    available: bool = True
    stock_quantity: int = 0
    unit: str = "kg"
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
