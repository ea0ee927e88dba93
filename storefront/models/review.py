from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from sqlalchemy import UniqueConstraint


class Review(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("product_id", "customer_id", name="uq_review_product_customer"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="product.id", index=True)
    customer_id: int = Field(foreign_key="user.id", index=True)

    rating: int  # 1..5
    title: Optional[str] = None
    comment: str

    # reviewer has a paid order containing the product
    verified: bool = False

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
