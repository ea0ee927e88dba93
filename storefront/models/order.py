from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime

from storefront.constants.order_status import OrderStatus, PaymentStatus
from storefront.models.order_item import OrderItem


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: Optional[str] = Field(default=None, index=True, unique=True)
    payment_reference: str = Field(index=True, unique=True)
    customer_id: int = Field(foreign_key="user.id", index=True)

    # address snapshots, never references
    shipping_address: dict = Field(sa_column=Column(JSON, nullable=False))
    billing_address: dict = Field(sa_column=Column(JSON, nullable=False))

    subtotal: float
    tax: float
    shipping_cost: float
    discount: float = 0
    total: float

    coupon_code: Optional[str] = None

    payment_status: str = Field(default=PaymentStatus.PENDING, index=True)
    order_status: str = Field(default=OrderStatus.PENDING, index=True)
    payment_method: str = Field(default="paystack")
    payment_details: dict = Field(default_factory=dict, sa_column=Column(JSON))

    tracking_number: Optional[str] = None
    shipping_provider: Optional[str] = None
    fulfillment_exception: bool = False

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["OrderItem"] = Relationship(back_populates="order")
