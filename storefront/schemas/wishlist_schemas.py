from sqlmodel import SQLModel


class WishlistAddRequest(SQLModel):
    product_id: int
