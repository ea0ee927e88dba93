from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime, timedelta

CART_LIFETIME_DAYS = 30


class Cart(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="user.id", unique=True)

    coupon_code: Optional[str] = None
    coupon_discount: float = 0

    expires_at: datetime = Field(
        default_factory=lambda: datetime.utcnow() + timedelta(days=CART_LIFETIME_DAYS)
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    items: List["CartItem"] = Relationship(back_populates="cart")


class CartItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    cart_id: int = Field(foreign_key="cart.id", index=True)
    product_id: int = Field(foreign_key="product.id")
    quantity: int = 1
    added_at: datetime = Field(default_factory=datetime.utcnow)

    cart: Optional[Cart] = Relationship(back_populates="items")
