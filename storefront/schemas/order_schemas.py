from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from storefront.schemas.address_schemas import AddressSnapshot


class OrderItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)


class CreateOrderRequest(BaseModel):
    items: List[OrderItemRequest] = Field(..., min_length=1)
    shipping_address: AddressSnapshot
    billing_address: Optional[AddressSnapshot] = None
    coupon_code: Optional[str] = None


class VerifyPaymentRequest(BaseModel):
    reference: str = Field(..., min_length=1)


class OrderStatusUpdate(BaseModel):
    status: Literal["processing", "shipped", "delivered"]
    note: Optional[str] = None
    tracking_number: Optional[str] = None
    shipping_provider: Optional[str] = None


class RefundRequest(BaseModel):
    reason: Optional[str] = None


class CancelOrderRequest(BaseModel):
    reason: Optional[str] = None
