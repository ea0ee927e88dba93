from typing import Optional

from pydantic import BaseModel, Field


class AddressSnapshot(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    street: str = Field(..., min_length=1)
    city: str
    state: str
    zip_code: Optional[str] = None
    country: str = "Nigeria"
