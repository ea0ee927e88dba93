from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


PRODUCT_CATEGORIES = ("bedding", "interiors", "decor", "accessories")


class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True, unique=True)
    description: str
    category: str = Field(index=True)

    # Shop details
    price: float
    discount_price: Optional[float] = None
    stock: int = 0
    sku: str = Field(unique=True)

    is_active: bool = True
    is_featured: bool = False

    # denormalised from reviews
    rating: float = 0.0
    review_count: int = 0

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def effective_price(self) -> float:
        return self.discount_price or self.price

    @property
    def in_stock(self) -> bool:
        return self.stock > 0
