import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import HTTPException
from sqlalchemy import delete, update
from sqlmodel import Session, select

from storefront.config import settings
from storefront.constants.order_status import (
    ALLOWED_TRANSITIONS,
    NON_CANCELLABLE_STATUSES,
    REFUNDABLE_STATUSES,
    RETRYABLE_PAYMENT_STATUSES,
    OrderStatus,
    PaymentStatus,
)
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.order_status_history import OrderStatusHistory
from storefront.models.product import Product
from storefront.models.user import User
from storefront.notifications import OrderEvent, dispatch_order_event
from storefront.schemas.order_schemas import CreateOrderRequest, OrderStatusUpdate
from storefront.services import coupon_service
from storefront.services.inventory_service import restore_inventory
from storefront.services.order_event_service import get_order_history, log_order_status
from storefront.services.payment_service import apply_refund, finalize_payment, merge_payment_details
from storefront.services.paystack_client import PaystackClient, PaystackError
from storefront.services.pricing import compute_totals, effective_price, to_minor_units

logger = logging.getLogger(__name__)


STATUS_MESSAGES = {
    OrderStatus.PROCESSING: "Your order is being prepared.",
    OrderStatus.SHIPPED: "Your order is on its way.",
    OrderStatus.DELIVERED: "Your order has been delivered. Enjoy!",
}


def generate_payment_reference() -> str:
    return f"{settings.payment_reference_prefix}-{int(time.time() * 1000)}-{uuid4().hex[:8]}".upper()


def generate_order_number(order_id: int, now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    return f"{settings.order_number_prefix}-{now:%Y%m%d%H%M%S}-{order_id:06d}"


def actor(user: Optional[User]) -> str:
    if user is None:
        return "system"
    return f"{'admin' if user.role == 'admin' else 'customer'}:{user.id}"


def callback_url() -> str:
    return f"{settings.base_url.rstrip('/')}/payments/callback"


# --------------------------------------------------
# LOOKUPS
# --------------------------------------------------

def get_order_or_404(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")
    return order


def get_order_by_reference(session: Session, reference: str) -> Optional[Order]:
    return session.exec(
        select(Order).where(Order.payment_reference == reference)
    ).first()


def ensure_order_access(order: Order, user: User) -> None:
    if user.role != "admin" and order.customer_id != user.id:
        raise HTTPException(403, "Not authorized")


def serialize_order(session: Session, order: Order, include_history: bool = True) -> Dict[str, Any]:
    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id).order_by(OrderItem.id)
    ).all()

    data = {
        "id": order.id,
        "order_number": order.order_number,
        "payment_reference": order.payment_reference,
        "customer_id": order.customer_id,
        "order_status": order.order_status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "items": [
            {
                "product_id": i.product_id,
                "product_name": i.product_name,
                "unit_price": i.unit_price,
                "quantity": i.quantity,
                "line_total": i.line_total,
            }
            for i in items
        ],
        "subtotal": order.subtotal,
        "tax": order.tax,
        "shipping_cost": order.shipping_cost,
        "discount": order.discount,
        "total": order.total,
        "coupon_code": order.coupon_code,
        "shipping_address": order.shipping_address,
        "billing_address": order.billing_address,
        "payment_details": order.payment_details or {},
        "tracking_number": order.tracking_number,
        "shipping_provider": order.shipping_provider,
        "fulfillment_exception": order.fulfillment_exception,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }

    if include_history:
        data["status_history"] = [
            {
                "status": h.status,
                "note": h.note,
                "created_by": h.created_by,
                "created_at": h.created_at,
            }
            for h in get_order_history(session, order.id)
        ]

    return data


# --------------------------------------------------
# CREATE
# --------------------------------------------------

def _discard_order(session: Session, order_id: int) -> None:
    """Compensating action for an order whose payment session never opened."""
    session.rollback()
    session.execute(delete(OrderStatusHistory).where(OrderStatusHistory.order_id == order_id))
    session.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
    session.execute(delete(Order).where(Order.id == order_id))
    session.commit()


def create_order(
    session: Session,
    user: User,
    data: CreateOrderRequest,
    gateway: PaystackClient,
) -> Dict[str, Any]:
    """
    Validate the basket against the live catalog, persist a pending order and
    open a hosted payment session for it.

    Nothing is written when validation fails. Stock is only taken once the
    payment is confirmed.
    """
    quantities: Dict[int, int] = {}
    for line in data.items:
        quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

    lines = []
    for product_id, quantity in quantities.items():
        product = session.get(Product, product_id)
        if not product or not product.is_active:
            raise HTTPException(404, f"Product {product_id} not found")
        if product.stock < quantity:
            raise HTTPException(400, f"Insufficient stock for {product.name}")
        lines.append((product, quantity))

    subtotal = round(sum(effective_price(p) * q for p, q in lines), 2)

    discount = 0
    coupon_code = None
    if data.coupon_code:
        coupon = coupon_service.find_valid_coupon(session, data.coupon_code)
        usage = coupon_service.customer_coupon_usage(session, coupon.code, user.id)
        coupon_service.validate_coupon(coupon, subtotal, [p for p, _ in lines], usage)
        discount = coupon_service.compute_discount(coupon, subtotal)
        coupon_code = coupon.code

    totals = compute_totals(subtotal, discount)
    reference = generate_payment_reference()
    shipping_address = data.shipping_address.model_dump()
    billing_address = (data.billing_address or data.shipping_address).model_dump()

    order = Order(
        payment_reference=reference,
        customer_id=user.id,
        shipping_address=shipping_address,
        billing_address=billing_address,
        coupon_code=coupon_code,
        payment_details={"reference": reference},
        **totals,
    )
    session.add(order)
    session.flush()

    order.order_number = generate_order_number(order.id)

    for product, quantity in lines:
        session.add(
            OrderItem(
                order_id=order.id,
                product_id=product.id,
                product_name=product.name,
                unit_price=effective_price(product),
                quantity=quantity,
            )
        )

    log_order_status(session, order.id, OrderStatus.PENDING, note="Order created", created_by=actor(user))
    session.commit()
    session.refresh(order)

    try:
        payment_session = gateway.initialize_transaction(
            amount=to_minor_units(order.total),
            email=user.email,
            reference=reference,
            callback_url=callback_url(),
            metadata={
                "order_id": order.id,
                "order_number": order.order_number,
                "customer_id": user.id,
            },
        )
    except PaystackError as e:
        logger.error(f"Discarding order {order.order_number}: {e}")
        _discard_order(session, order.id)
        raise HTTPException(400, f"Payment initialization failed: {e}")

    merge_payment_details(
        order,
        authorization_url=payment_session.get("authorization_url"),
        access_code=payment_session.get("access_code"),
    )
    session.add(order)
    session.commit()
    session.refresh(order)

    logger.info(f"Order created: {order.order_number} ({order.total:.2f})")

    return {
        "order": serialize_order(session, order, include_history=False),
        "authorization_url": payment_session.get("authorization_url"),
        "access_code": payment_session.get("access_code"),
        "reference": reference,
    }


# --------------------------------------------------
# VERIFY
# --------------------------------------------------

def verify_order_payment(
    session: Session,
    reference: str,
    gateway: PaystackClient,
    user: Optional[User] = None,
) -> Order:
    order = get_order_by_reference(session, reference)
    if not order:
        raise HTTPException(404, "Order not found")

    if user is not None:
        ensure_order_access(order, user)

    try:
        transaction = gateway.verify_transaction(reference)
    except PaystackError as e:
        raise HTTPException(502, f"Payment verification failed: {e}")

    status = transaction.get("status")
    if status != "success":
        raise HTTPException(400, f"Payment not successful: {status}")

    order, _ = finalize_payment(
        session=session,
        order=order,
        transaction=transaction,
        note="Payment confirmed via client verification",
        created_by=actor(user),
    )
    return order


# --------------------------------------------------
# CANCEL / REFUND
# --------------------------------------------------

def cancel_order(
    session: Session,
    order: Order,
    user: User,
    gateway: PaystackClient,
    reason: Optional[str] = None,
) -> Order:
    ensure_order_access(order, user)

    result = session.execute(
        update(Order)
        .where(Order.id == order.id)
        .where(Order.order_status.not_in(NON_CANCELLABLE_STATUSES))
        .values(order_status=OrderStatus.CANCELLED, updated_at=datetime.utcnow())
    )
    if result.rowcount == 0:
        session.rollback()
        session.refresh(order)
        raise HTTPException(400, f"Order cannot be cancelled in {order.order_status} status")

    session.refresh(order)
    log_order_status(
        session,
        order.id,
        OrderStatus.CANCELLED,
        note=reason or "Order cancelled",
        created_by=actor(user),
    )

    paid = order.payment_status == PaymentStatus.COMPLETED
    if paid:
        restore_inventory(session, order)

    session.commit()
    session.refresh(order)
    logger.info(f"Order cancelled: {order.order_number}")

    refund_initiated = False
    transaction_id = (order.payment_details or {}).get("transaction_id")
    if paid and transaction_id:
        try:
            refund = gateway.create_refund(transaction_id)
        except PaystackError as e:
            logger.warning(f"Refund for cancelled order {order.order_number} failed: {e}")
        else:
            order, refund_initiated = apply_refund(
                session,
                order,
                note="Refund issued for cancelled order",
                refund_reference=str(refund.get("id") or "") or None,
                created_by=actor(user),
            )
    elif paid:
        logger.warning(f"Cancelled order {order.order_number} has no transaction id to refund")

    dispatch_order_event(
        event=OrderEvent.ORDER_CANCELLED,
        order=order,
        user=session.get(User, order.customer_id),
        session=session,
        extra={
            "refund_initiated": refund_initiated,
            "refund_required": paid and not refund_initiated,
            "note": reason,
        },
    )
    session.commit()
    session.refresh(order)

    return order


def request_refund(
    session: Session,
    order: Order,
    user: User,
    gateway: PaystackClient,
    reason: Optional[str] = None,
) -> Order:
    ensure_order_access(order, user)

    if order.order_status not in REFUNDABLE_STATUSES:
        raise HTTPException(400, "Only delivered orders can be refunded")

    if order.payment_status != PaymentStatus.COMPLETED:
        raise HTTPException(400, "Order payment is not refundable")

    transaction_id = (order.payment_details or {}).get("transaction_id")
    if not transaction_id:
        raise HTTPException(400, "No payment transaction recorded for this order")

    try:
        refund = gateway.create_refund(transaction_id)
    except PaystackError as e:
        raise HTTPException(400, f"Refund failed: {e}")

    order, _ = apply_refund(
        session,
        order,
        note=reason or "Refund requested",
        refund_reference=str(refund.get("id") or "") or None,
        created_by=actor(user),
    )
    return order


# --------------------------------------------------
# ADMIN STATUS
# --------------------------------------------------

def update_order_status(
    session: Session,
    order: Order,
    admin: User,
    data: OrderStatusUpdate,
) -> Order:
    current = order.order_status
    if data.status not in ALLOWED_TRANSITIONS.get(current, []):
        raise HTTPException(400, f"Cannot change order from {current} to {data.status}")

    values = {"order_status": data.status, "updated_at": datetime.utcnow()}
    if data.tracking_number:
        values["tracking_number"] = data.tracking_number
    if data.shipping_provider:
        values["shipping_provider"] = data.shipping_provider

    result = session.execute(
        update(Order)
        .where(Order.id == order.id)
        .where(Order.order_status == current)
        .values(**values)
    )
    if result.rowcount == 0:
        session.rollback()
        raise HTTPException(409, "Order was updated by someone else, reload and try again")

    session.refresh(order)
    log_order_status(
        session,
        order.id,
        data.status,
        note=data.note or f"Status changed from {current} to {data.status}",
        created_by=actor(admin),
    )

    dispatch_order_event(
        event=OrderEvent.STATUS_UPDATED,
        order=order,
        user=session.get(User, order.customer_id),
        session=session,
        extra={"status_message": STATUS_MESSAGES.get(data.status, "")},
    )

    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.order_number}: {current} -> {data.status}")
    return order


# --------------------------------------------------
# RETRY
# --------------------------------------------------

def retry_payment(
    session: Session,
    order: Order,
    user: User,
    gateway: PaystackClient,
) -> Dict[str, Any]:
    ensure_order_access(order, user)

    if (
        order.payment_status not in RETRYABLE_PAYMENT_STATUSES
        or order.order_status in (OrderStatus.CANCELLED, OrderStatus.REFUNDED)
    ):
        raise HTTPException(400, "Payment cannot be retried in current status")

    customer = session.get(User, order.customer_id)
    previous_reference = order.payment_reference
    reference = generate_payment_reference()

    try:
        payment_session = gateway.initialize_transaction(
            amount=to_minor_units(order.total),
            email=customer.email,
            reference=reference,
            callback_url=callback_url(),
            metadata={
                "order_id": order.id,
                "order_number": order.order_number,
                "customer_id": order.customer_id,
                "retry": True,
            },
        )
    except PaystackError as e:
        raise HTTPException(400, f"Payment initialization failed: {e}")

    result = session.execute(
        update(Order)
        .where(Order.id == order.id)
        .where(Order.payment_status.in_(RETRYABLE_PAYMENT_STATUSES))
        .values(
            payment_reference=reference,
            payment_status=PaymentStatus.PENDING,
            updated_at=datetime.utcnow(),
        )
    )
    if result.rowcount == 0:
        session.rollback()
        raise HTTPException(409, "Order payment changed while retrying, reload and try again")

    session.refresh(order)
    merge_payment_details(
        order,
        reference=reference,
        previous_reference=previous_reference,
        authorization_url=payment_session.get("authorization_url"),
        access_code=payment_session.get("access_code"),
    )
    session.add(order)

    log_order_status(
        session,
        order.id,
        "payment_retried",
        note=f"New payment reference {reference}",
        created_by=actor(user),
    )
    session.commit()
    session.refresh(order)

    logger.info(f"Payment retry for order {order.order_number}: {reference}")

    return {
        "order_id": order.id,
        "authorization_url": payment_session.get("authorization_url"),
        "access_code": payment_session.get("access_code"),
        "reference": reference,
    }
