from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime


class Coupon(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True, unique=True)  # stored upper-case
    description: Optional[str] = None

    discount_type: str  # percentage | fixed
    discount_value: float
    max_discount_amount: Optional[float] = None
    min_purchase_amount: float = 0

    usage_limit: Optional[int] = None
    usage_count: int = 0
    usage_per_customer: int = 1

    # empty lists mean the coupon applies to the whole catalog
    categories: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    product_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON))

    valid_from: datetime
    valid_until: datetime
    is_active: bool = True

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
