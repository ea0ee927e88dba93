import logging
from datetime import datetime
from typing import Iterable, Optional

from fastapi import HTTPException
from sqlalchemy import func, update
from sqlmodel import Session, select

from storefront.constants.order_status import PaymentStatus
from storefront.models.coupon import Coupon
from storefront.models.order import Order
from storefront.models.product import Product

logger = logging.getLogger(__name__)


def find_valid_coupon(session: Session, code: str, now: Optional[datetime] = None) -> Coupon:
    now = now or datetime.utcnow()

    coupon = session.exec(
        select(Coupon)
        .where(Coupon.code == code.strip().upper())
        .where(Coupon.is_active == True)  # noqa: E712
        .where(Coupon.valid_from <= now)
        .where(Coupon.valid_until >= now)
    ).first()

    if not coupon:
        raise HTTPException(400, "Invalid or expired coupon code")

    return coupon


def customer_coupon_usage(session: Session, code: str, customer_id: int) -> int:
    """Paid orders of this customer that already used the coupon."""
    return session.exec(
        select(func.count())
        .select_from(Order)
        .where(Order.customer_id == customer_id)
        .where(Order.coupon_code == code)
        .where(Order.payment_status == PaymentStatus.COMPLETED)
    ).one()


def validate_coupon(
    coupon: Coupon,
    subtotal: float,
    products: Iterable[Product],
    customer_usage: int = 0,
) -> None:
    if coupon.usage_limit and coupon.usage_count >= coupon.usage_limit:
        raise HTTPException(400, "Coupon usage limit exceeded")

    if coupon.usage_per_customer and customer_usage >= coupon.usage_per_customer:
        raise HTTPException(400, "You have already used this coupon")

    if subtotal < coupon.min_purchase_amount:
        raise HTTPException(
            400,
            f"Minimum purchase amount for this coupon is {coupon.min_purchase_amount:,.2f}",
        )

    if coupon.categories or coupon.product_ids:
        applies = any(
            p.id in (coupon.product_ids or []) or p.category in (coupon.categories or [])
            for p in products
        )
        if not applies:
            raise HTTPException(400, "This coupon does not apply to items in your cart")


def compute_discount(coupon: Coupon, subtotal: float) -> float:
    if coupon.discount_type == "percentage":
        discount = round(subtotal * coupon.discount_value / 100, 2)
    else:
        discount = coupon.discount_value

    if coupon.max_discount_amount:
        discount = min(discount, coupon.max_discount_amount)

    return round(min(discount, subtotal), 2)


def increment_coupon_usage(session: Session, code: str) -> bool:
    result = session.execute(
        update(Coupon)
        .where(Coupon.code == code)
        .values(usage_count=Coupon.usage_count + 1, updated_at=datetime.utcnow())
    )
    if result.rowcount == 0:
        logger.warning(f"Coupon {code} vanished before its usage could be counted")
        return False
    return True
