import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import update
from sqlmodel import Session, select

from storefront.constants.order_status import (
    CONFIRMABLE_PAYMENT_STATUSES,
    OrderStatus,
    PaymentStatus,
)
from storefront.models.order import Order
from storefront.models.payment import Payment
from storefront.models.user import User
from storefront.notifications import OrderEvent, dispatch_order_event
from storefront.services.cart_service import clear_cart
from storefront.services.coupon_service import increment_coupon_usage
from storefront.services.inventory_service import reduce_inventory
from storefront.services.order_event_service import log_order_status

logger = logging.getLogger(__name__)


def gateway_details(transaction: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten the parts of a Paystack transaction kept on the order."""
    authorization = transaction.get("authorization") or {}
    customer = transaction.get("customer") or {}

    details = {
        "transaction_id": str(transaction["id"]) if transaction.get("id") else None,
        "card_brand": authorization.get("brand") or "unknown",
        "card_last4": authorization.get("last4") or "N/A",
        "paid_at": transaction.get("paid_at"),
        "channel": transaction.get("channel"),
        "customer_email": customer.get("email"),
        "gateway_response": transaction.get("gateway_response"),
    }
    return {k: v for k, v in details.items() if v is not None}


def merge_payment_details(order: Order, **details) -> None:
    # reassign so the JSON column is flagged dirty
    order.payment_details = {**(order.payment_details or {}), **details}


def finalize_payment(
    *,
    session: Session,
    order: Order,
    transaction: Dict[str, Any],
    note: str = "Payment confirmed",
    created_by: str = "system",
) -> Tuple[Order, bool]:
    """
    Single source of truth for completing payments.

    Used by the client verify call, the browser callback and the
    ``charge.success`` webhook. Only the caller whose conditional update moves
    the order out of an unpaid state performs the side effects; every other
    caller gets the current order back and ``False``.
    """
    now = datetime.utcnow()

    try:
        # 🔒 Atomic state change
        result = session.execute(
            update(Order)
            .where(Order.id == order.id)
            .where(Order.payment_status.in_(CONFIRMABLE_PAYMENT_STATUSES))
            .values(
                payment_status=PaymentStatus.COMPLETED,
                order_status=OrderStatus.CONFIRMED,
                updated_at=now,
            )
        )

        if result.rowcount == 0:
            session.rollback()
            session.refresh(order)
            logger.info(f"Order {order.order_number} already processed ({order.payment_status})")
            return order, False

        session.refresh(order)

        details = gateway_details(transaction)
        merge_payment_details(order, reference=order.payment_reference, **details)
        session.add(order)

        log_order_status(session, order.id, OrderStatus.CONFIRMED, note=note, created_by=created_by)

        amount = transaction.get("amount")
        payment = Payment(
            order_id=order.id,
            customer_id=order.customer_id,
            reference=order.payment_reference,
            transaction_id=details.get("transaction_id"),
            amount=round(amount / 100, 2) if amount else order.total,
            currency=transaction.get("currency") or "NGN",
            status=PaymentStatus.COMPLETED,
            channel=details.get("channel"),
            card_brand=details.get("card_brand"),
            card_last4=details.get("card_last4"),
            paid_at=details.get("paid_at"),
        )
        session.add(payment)

        # 📦 Reduce inventory ONCE
        shortfalls = reduce_inventory(session, order)
        if shortfalls:
            order.fulfillment_exception = True
            session.add(order)
            missing = ", ".join(f"{i.product_name} x{i.quantity}" for i in shortfalls)
            log_order_status(
                session,
                order.id,
                "fulfillment_exception",
                note=f"Insufficient stock after payment: {missing}",
            )
            logger.warning(f"Order {order.order_number} paid with insufficient stock: {missing}")

        if order.coupon_code:
            increment_coupon_usage(session, order.coupon_code)

        clear_cart(session, order.customer_id, commit=False)

        # 📧 Emails are queued in the same transaction
        user = session.get(User, order.customer_id)
        dispatch_order_event(event=OrderEvent.ORDER_CONFIRMED, order=order, user=user, session=session)
        dispatch_order_event(
            event=OrderEvent.PAYMENT_SUCCESS,
            order=order,
            user=user,
            session=session,
            notify_admin=False,
        )
        if shortfalls:
            dispatch_order_event(
                event=OrderEvent.FULFILLMENT_EXCEPTION,
                order=order,
                user=user,
                session=session,
                extra={"note": f"Short on stock: {missing}"},
                notify_user=False,
            )

        session.commit()
        session.refresh(order)

    except Exception:
        session.rollback()
        logger.exception(f"Could not finalize payment for order {order.id}")
        raise

    logger.info(f"Payment confirmed for order {order.order_number}")
    return order, True


def mark_payment_failed(
    session: Session,
    order: Order,
    reason: Optional[str] = None,
    created_by: str = "system",
) -> Tuple[Order, bool]:
    """Move a still pending payment to failed. Paid orders are never touched."""
    reason = reason or "Payment processing failed"

    result = session.execute(
        update(Order)
        .where(Order.id == order.id)
        .where(Order.payment_status == PaymentStatus.PENDING)
        .values(payment_status=PaymentStatus.FAILED, updated_at=datetime.utcnow())
    )

    if result.rowcount == 0:
        session.rollback()
        session.refresh(order)
        logger.info(f"Ignoring failed charge for order {order.order_number} ({order.payment_status})")
        return order, False

    session.refresh(order)
    merge_payment_details(order, failure_reason=reason)
    session.add(order)

    log_order_status(
        session,
        order.id,
        "payment_failed",
        note=f"Payment failed - Reason: {reason}",
        created_by=created_by,
    )

    user = session.get(User, order.customer_id)
    dispatch_order_event(
        event=OrderEvent.PAYMENT_FAILED,
        order=order,
        user=user,
        session=session,
        extra={"reason": reason},
    )

    session.commit()
    session.refresh(order)

    logger.warning(f"Payment failed for order {order.order_number}: {reason}")
    return order, True


def apply_refund(
    session: Session,
    order: Order,
    *,
    note: Optional[str] = None,
    refund_reference: Optional[str] = None,
    created_by: str = "system",
) -> Tuple[Order, bool]:
    """
    Record a refund once.

    A cancelled order keeps its cancelled status; anything else becomes
    refunded.
    """
    now = datetime.utcnow()
    values = {"payment_status": PaymentStatus.REFUNDED, "updated_at": now}
    if order.order_status != OrderStatus.CANCELLED:
        values["order_status"] = OrderStatus.REFUNDED

    result = session.execute(
        update(Order)
        .where(Order.id == order.id)
        .where(Order.payment_status == PaymentStatus.COMPLETED)
        .values(**values)
    )

    if result.rowcount == 0:
        session.rollback()
        session.refresh(order)
        logger.info(f"Refund already recorded for order {order.order_number}")
        return order, False

    session.refresh(order)
    merge_payment_details(
        order,
        refund_reference=refund_reference,
        refunded_at=now.isoformat(),
    )
    session.add(order)

    payment = session.exec(
        select(Payment).where(Payment.order_id == order.id).order_by(Payment.id.desc())
    ).first()
    if payment:
        payment.status = PaymentStatus.REFUNDED
        payment.refund_reference = refund_reference
        payment.refunded_at = now
        session.add(payment)

    log_order_status(
        session,
        order.id,
        OrderStatus.REFUNDED,
        note=note or "Refund processed",
        created_by=created_by,
    )

    user = session.get(User, order.customer_id)
    dispatch_order_event(
        event=OrderEvent.REFUND_PROCESSED,
        order=order,
        user=user,
        session=session,
        extra={"refund_reference": refund_reference},
    )

    session.commit()
    session.refresh(order)

    logger.info(f"Refund recorded for order {order.order_number}")
    return order, True
