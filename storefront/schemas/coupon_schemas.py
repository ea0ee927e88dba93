from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class CouponCreate(BaseModel):
    code: str = Field(..., min_length=3, max_length=40)
    description: Optional[str] = None
    discount_type: Literal["percentage", "fixed"]
    discount_value: float = Field(..., gt=0)
    max_discount_amount: Optional[float] = Field(None, gt=0)
    min_purchase_amount: float = Field(default=0, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    usage_per_customer: int = Field(default=1, ge=1)
    categories: List[str] = []
    product_ids: List[int] = []
    valid_from: datetime
    valid_until: datetime
    is_active: bool = True

    @model_validator(mode="after")
    def check_window(self):
        if self.valid_until <= self.valid_from:
            raise ValueError("valid_until must be after valid_from")
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        return self


class CouponUpdate(BaseModel):
    description: Optional[str] = None
    discount_value: Optional[float] = Field(None, gt=0)
    max_discount_amount: Optional[float] = Field(None, gt=0)
    min_purchase_amount: Optional[float] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    usage_per_customer: Optional[int] = Field(None, ge=1)
    categories: Optional[List[str]] = None
    product_ids: Optional[List[int]] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: Optional[bool] = None
