from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from sqlalchemy import Column, ForeignKey, UniqueConstraint


class WishlistItem(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("customer_id", "product_id", name="uq_wishlist_customer_product"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="user.id", index=True)
    product_id: int = Field(
        sa_column=Column(
            ForeignKey("product.id", ondelete="CASCADE"),
            nullable=False
        )
    )
    added_at: datetime = Field(default_factory=datetime.utcnow)
