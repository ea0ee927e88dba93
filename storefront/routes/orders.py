from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.order import Order
from storefront.models.user import User
from storefront.notifications.delivery import schedule_email_delivery
from storefront.schemas.order_schemas import (
    CancelOrderRequest,
    CreateOrderRequest,
    OrderStatusUpdate,
    RefundRequest,
    VerifyPaymentRequest,
)
from storefront.services import order_service
from storefront.services.paystack_client import PaystackClient, get_payment_gateway
from storefront.utils.pagination import paginate
from storefront.utils.token import get_current_user

router = APIRouter()


@router.post("", status_code=201)
def create_order(
    data: CreateOrderRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: PaystackClient = Depends(get_payment_gateway),
):
    result = order_service.create_order(session, current_user, data, gateway)
    return {"message": "Order created", **result}


@router.post("/verify")
def verify_payment(
    data: VerifyPaymentRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: PaystackClient = Depends(get_payment_gateway),
):
    order = order_service.verify_order_payment(session, data.reference, gateway, user=current_user)
    schedule_email_delivery(background_tasks)

    return {
        "message": "Payment verified",
        "order": order_service.serialize_order(session, order),
    }


@router.get("")
def list_my_orders(
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = (
        select(Order)
        .where(Order.customer_id == current_user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    if status:
        query = query.where(Order.order_status == status)

    return paginate(
        session=session,
        query=query,
        page=page,
        limit=limit,
        serializer=lambda o: order_service.serialize_order(session, o, include_history=False),
    )


@router.get("/{order_id}")
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_order_or_404(session, order_id)
    order_service.ensure_order_access(order, current_user)
    return order_service.serialize_order(session, order)


@router.put("/{order_id}/status")
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    order = order_service.get_order_or_404(session, order_id)
    order = order_service.update_order_status(session, order, admin, data)
    schedule_email_delivery(background_tasks)

    return {
        "message": f"Order status updated to {order.order_status}",
        "order": order_service.serialize_order(session, order),
    }


@router.put("/{order_id}/cancel")
def cancel_order(
    order_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[CancelOrderRequest] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: PaystackClient = Depends(get_payment_gateway),
):
    order = order_service.get_order_or_404(session, order_id)
    order = order_service.cancel_order(
        session, order, current_user, gateway, reason=data.reason if data else None
    )
    schedule_email_delivery(background_tasks)

    return {
        "message": "Order cancelled",
        "order": order_service.serialize_order(session, order),
    }


@router.post("/{order_id}/refund")
def request_refund(
    order_id: int,
    background_tasks: BackgroundTasks,
    data: Optional[RefundRequest] = None,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
    gateway: PaystackClient = Depends(get_payment_gateway),
):
    order = order_service.get_order_or_404(session, order_id)
    order = order_service.request_refund(
        session, order, current_user, gateway, reason=data.reason if data else None
    )
    schedule_email_delivery(background_tasks)

    return {
        "message": "Refund processed",
        "order": order_service.serialize_order(session, order),
    }
