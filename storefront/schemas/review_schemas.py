from typing import Optional

from sqlmodel import Field, SQLModel


class ReviewCreate(SQLModel):
    rating: int = Field(ge=1, le=5)
    title: Optional[str] = Field(default=None, max_length=120)
    comment: str = Field(min_length=1, max_length=2000)


class ReviewUpdate(SQLModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    title: Optional[str] = Field(default=None, max_length=120)
    comment: Optional[str] = Field(default=None, min_length=1, max_length=2000)
