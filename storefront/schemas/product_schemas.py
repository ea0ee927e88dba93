from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


Category = Literal["bedding", "interiors", "decor", "accessories"]


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    slug: Optional[str] = None
    description: str = ""
    category: Category
    sku: str = Field(..., min_length=1)

    price: float = Field(..., gt=0)
    discount_price: Optional[float] = Field(None, gt=0)
    stock: int = Field(default=0, ge=0)

    is_active: bool = True
    is_featured: bool = False

    @model_validator(mode="after")
    def check_discount(self):
        if self.discount_price is not None and self.discount_price >= self.price:
            raise ValueError("discount_price must be lower than price")
        return self


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = None
    description: Optional[str] = None
    category: Optional[Category] = None
    sku: Optional[str] = None

    price: Optional[float] = Field(None, gt=0)
    discount_price: Optional[float] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)

    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
