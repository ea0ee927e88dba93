from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Payment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    order_id: int = Field(foreign_key="order.id", index=True)
    customer_id: int = Field(index=True)

    reference: str = Field(index=True, unique=True)
    transaction_id: Optional[str] = Field(default=None, index=True)

    amount: float
    currency: str = "NGN"
    status: str  # completed | refunded
    method: str = "paystack"
    channel: Optional[str] = None

    card_brand: Optional[str] = None
    card_last4: Optional[str] = None
    paid_at: Optional[str] = None

    refund_reference: Optional[str] = None
    refunded_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
