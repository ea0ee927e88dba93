from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.order import Order
from storefront.models.payment import Payment
from storefront.models.user import User
from storefront.utils.pagination import paginate

router = APIRouter()


def _payment_row(row) -> dict:
    payment, user, order = row
    return {
        "id": payment.id,
        "reference": payment.reference,
        "transaction_id": payment.transaction_id,
        "amount": payment.amount,
        "currency": payment.currency,
        "status": payment.status,
        "channel": payment.channel,
        "card_brand": payment.card_brand,
        "card_last4": payment.card_last4,
        "paid_at": payment.paid_at,
        "refund_reference": payment.refund_reference,
        "created_at": payment.created_at,
        "order_id": payment.order_id,
        "order_number": order.order_number,
        "customer": {
            "id": user.id,
            "name": f"{user.first_name} {user.last_name}".strip(),
            "email": user.email,
        },
    }


@router.get("")
def list_payments(
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = Query(None, description="Reference, transaction id, order number or customer email"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = (
        select(Payment, User, Order)
        .join(User, User.id == Payment.customer_id)
        .join(Order, Order.id == Payment.order_id)
    )

    if status and status.lower() != "all":
        query = query.where(Payment.status == status.lower())

    if start_date:
        query = query.where(Payment.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.where(Payment.created_at <= datetime.combine(end_date, time.max))

    if search:
        like = f"%{search.strip()}%"
        query = query.where(
            Payment.reference.ilike(like)
            | Payment.transaction_id.ilike(like)
            | Order.order_number.ilike(like)
            | User.email.ilike(like)
        )

    query = query.order_by(Payment.created_at.desc(), Payment.id.desc())

    result = paginate(session=session, query=query, page=page, limit=limit, serializer=_payment_row)

    collected = session.exec(
        select(func.coalesce(func.sum(Payment.amount), 0))
        .where(Payment.status == "completed")
    ).one()
    result["total_collected"] = round(float(collected), 2)
    return result
