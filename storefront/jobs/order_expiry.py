import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from storefront.config import settings
from storefront.constants.order_status import (
    EXPIRABLE_ORDER_STATUSES,
    EXPIRABLE_PAYMENT_STATUSES,
    OrderStatus,
    PaymentStatus,
)
from storefront.models.order import Order
from storefront.services.order_event_service import log_order_status

logger = logging.getLogger(__name__)


def expire_unpaid_orders(session: Session, now: Optional[datetime] = None) -> int:
    """
    Abandon orders whose payment never arrived.

    Covers pending and failed payments on orders that are still pending or
    were cancelled by the customer before paying. The clock runs from the
    last change to the order, so a retried payment gets a fresh window.
    Each order is moved with a guarded update so a payment confirmed in the
    meantime is never overwritten.
    """
    now = now or datetime.utcnow()
    cutoff = now - timedelta(hours=settings.payment_expiry_hours)

    orders = session.exec(
        select(Order)
        .where(Order.payment_status.in_(EXPIRABLE_PAYMENT_STATUSES))
        .where(Order.order_status.in_(EXPIRABLE_ORDER_STATUSES))
        .where(Order.updated_at < cutoff)
    ).all()

    expired = 0
    for order in orders:
        was_cancelled = order.order_status == OrderStatus.CANCELLED

        result = session.execute(
            update(Order)
            .where(Order.id == order.id)
            .where(Order.payment_status.in_(EXPIRABLE_PAYMENT_STATUSES))
            .where(Order.order_status.in_(EXPIRABLE_ORDER_STATUSES))
            .values(
                payment_status=PaymentStatus.ABANDONED,
                order_status=OrderStatus.CANCELLED,
                updated_at=now,
            )
        )
        if result.rowcount == 0:
            continue

        log_order_status(
            session,
            order.id,
            "payment_abandoned" if was_cancelled else OrderStatus.CANCELLED,
            note=f"Payment not received within {settings.payment_expiry_hours} hours",
        )
        session.commit()
        expired += 1

    logger.info(f"Expired {expired} unpaid order(s)")
    return expired


if __name__ == "__main__":
    from storefront.database import engine

    logging.basicConfig(level=settings.log_level.upper())
    with Session(engine) as session:
        expire_unpaid_orders(session)
