from pydantic import BaseModel, computed_field
from typing import Dict, Optional
from datetime import datetime

from shopdesk.db.models import utcnow


def average_order_value(revenue: float, count: int) -> float:
    if count == 0:
        return 0.0
    return revenue / count


class RevenueStats(BaseModel):
    today_revenue: float = 0.0
    week_revenue: float = 0.0
    month_revenue: float = 0.0
    total_revenue: float = 0.0
    today_orders: int = 0
    week_orders: int = 0
    month_orders: int = 0
    total_orders: int = 0
    last_updated: datetime

    @computed_field
    @property
    def today_average(self) -> float:
        return average_order_value(self.today_revenue, self.today_orders)

    @computed_field
    @property
    def week_average(self) -> float:
        return average_order_value(self.week_revenue, self.week_orders)

    @computed_field
    @property
    def month_average(self) -> float:
        return average_order_value(self.month_revenue, self.month_orders)

    @computed_field
    @property
    def total_average(self) -> float:
        return average_order_value(self.total_revenue, self.total_orders)

    @classmethod
    def empty(cls) -> "RevenueStats":
        return cls(last_updated=utcnow())


class DailyRevenueResponse(BaseModel):
    start: datetime
    end: datetime
    days: Dict[str, float]


class RevenueCounterResponse(BaseModel):
    shop_id: str
    total_revenue: float
    total_orders: int
    last_updated: Optional[datetime] = None
