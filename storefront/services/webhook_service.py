import logging
from typing import Any, Dict, Optional

from sqlmodel import Session, select

from storefront.models.order import Order
from storefront.models.payment import Payment
from storefront.services.order_service import get_order_by_reference
from storefront.services.payment_service import apply_refund, finalize_payment, mark_payment_failed

logger = logging.getLogger(__name__)


def _order_for_refund(session: Session, data: Dict[str, Any]) -> Optional[Order]:
    transaction = data.get("transaction")
    if isinstance(transaction, dict):
        transaction = transaction.get("id")

    if transaction:
        payment = session.exec(
            select(Payment).where(Payment.transaction_id == str(transaction))
        ).first()
        if payment:
            return session.get(Order, payment.order_id)

    reference = data.get("transaction_reference") or data.get("reference")
    if reference:
        return get_order_by_reference(session, reference)

    return None


def handle_charge_success(session: Session, data: Dict[str, Any]) -> None:
    reference = data.get("reference")
    order = get_order_by_reference(session, reference) if reference else None
    if not order:
        logger.warning(f"Order not found for reference: {reference}")
        return

    finalize_payment(
        session=session,
        order=order,
        transaction=data,
        note="Payment confirmed via Paystack webhook",
        created_by="webhook",
    )


def handle_charge_failed(session: Session, data: Dict[str, Any]) -> None:
    reference = data.get("reference")
    order = get_order_by_reference(session, reference) if reference else None
    if not order:
        logger.warning(f"Order not found for failed charge: {reference}")
        return

    reason = data.get("gateway_response") or data.get("reason")
    mark_payment_failed(session, order, reason=reason, created_by="webhook")


def handle_refund(session: Session, data: Dict[str, Any]) -> None:
    order = _order_for_refund(session, data)
    if not order:
        logger.warning(f"Order not found for refund: {data.get('transaction')}")
        return

    refund_reference = data.get("refund_reference") or data.get("id")
    apply_refund(
        session,
        order,
        note="Refund confirmed via Paystack webhook",
        refund_reference=str(refund_reference) if refund_reference else None,
        created_by="webhook",
    )


def handle_refund_failed(session: Session, data: Dict[str, Any]) -> None:
    order = _order_for_refund(session, data)
    logger.error(
        f"Refund failed for order {order.order_number if order else 'unknown'}: "
        f"{data.get('reason') or data.get('status')}"
    )


EVENT_HANDLERS = {
    "charge.success": handle_charge_success,
    "charge.failed": handle_charge_failed,
    "refund.created": handle_refund,
    "refund.processed": handle_refund,
    "refund.failed": handle_refund_failed,
}


def handle_paystack_event(session: Session, event: Dict[str, Any]) -> None:
    """Route a signature-checked Paystack event to its handler."""
    name = event.get("event")
    data = event.get("data") or {}

    logger.info(f"Paystack webhook received: {name}")

    handler = EVENT_HANDLERS.get(name)
    if handler is None:
        logger.info(f"Unhandled event type: {name}")
        return

    handler(session, data)
