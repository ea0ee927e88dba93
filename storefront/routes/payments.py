import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from sqlmodel import Session, select

from storefront.config import settings
from storefront.database import get_session
from storefront.models.payment import Payment
from storefront.models.user import User
from storefront.notifications.delivery import schedule_email_delivery
from storefront.services import order_service
from storefront.services.paystack_client import PaystackClient, get_payment_gateway
from storefront.utils.pagination import paginate
from storefront.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def my_payments(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = (
        select(Payment)
        .where(Payment.customer_id == current_user.id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
    )
    if status:
        query = query.where(Payment.status == status)

    return paginate(session=session, query=query, page=page, limit=limit)


# Registered before /{payment_id} so "callback" is not parsed as an id
@router.get("/callback")
def payment_callback(
    background_tasks: BackgroundTasks,
    reference: Optional[str] = None,
    trxref: Optional[str] = None,
    session: Session = Depends(get_session),
    gateway: PaystackClient = Depends(get_payment_gateway),
):
    """Browser lands here from the hosted Paystack page."""
    reference = reference or trxref
    frontend = settings.frontend_url.rstrip("/")

    if not reference:
        return RedirectResponse(f"{frontend}/payment-failed?reason=missing_reference", status_code=302)

    try:
        order = order_service.verify_order_payment(session, reference, gateway)
    except HTTPException as e:
        logger.warning(f"Payment callback for {reference} failed: {e.detail}")
        return RedirectResponse(f"{frontend}/payment-failed?reference={reference}", status_code=302)

    schedule_email_delivery(background_tasks)
    return RedirectResponse(f"{frontend}/payment-success?order={order.id}", status_code=302)


@router.post("/retry/{order_id}")
def retry_payment(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: PaystackClient = Depends(get_payment_gateway),
):
    order = order_service.get_order_or_404(session, order_id)
    result = order_service.retry_payment(session, order, current_user, gateway)
    return {"message": "Payment re-initialized", **result}


@router.get("/{payment_id}")
def get_payment(
    payment_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    payment = session.get(Payment, payment_id)

    if not payment:
        raise HTTPException(404, "Payment not found")

    if payment.customer_id != current_user.id and current_user.role != "admin":
        raise HTTPException(403, "Not authorized")

    return {
        "receipt_id": f"RCT-{payment.id}",
        "payment": payment,
    }
