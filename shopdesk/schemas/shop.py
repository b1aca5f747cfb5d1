from pydantic import BaseModel, EmailStr
from typing import Any, Dict, Optional
from datetime import datetime


class ShopResponse(BaseModel):
    id: str
    owner_id: str
    name: str
    address: str = ""
    phone: str = ""
    email: str = ""
    logo_url: Optional[str] = None
    is_active: bool = True
    settings: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ShopUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    logo_url: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


class DeviceTokenUpdate(BaseModel):
    token: str
