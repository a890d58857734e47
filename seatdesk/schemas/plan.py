from typing import Optional
from pydantic import BaseModel, UUID4
from decimal import Decimal
from datetime import datetime


class PlanBase(BaseModel):
    name: str
    price: Decimal
    duration: str  # "1 month", "2 weeks", "30 days"
    is_active: bool = True


class PlanCreate(PlanBase):
    pass


class PlanUpdate(BaseModel):
    price: Optional[Decimal] = None
    duration: Optional[str] = None
    is_active: Optional[bool] = None


class Plan(PlanBase):
    id: UUID4
    subscriber_count: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
