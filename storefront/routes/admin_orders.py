from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.order import Order
from storefront.models.user import User
from storefront.services import order_service
from storefront.utils.pagination import paginate

router = APIRouter()


@router.get("")
def list_orders(
    order_status: Optional[str] = None,
    payment_status: Optional[str] = None,
    search: Optional[str] = Query(None, description="Order number or payment reference"),
    fulfillment_exception: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = select(Order).order_by(Order.created_at.desc(), Order.id.desc())

    if order_status:
        query = query.where(Order.order_status == order_status)
    if payment_status:
        query = query.where(Order.payment_status == payment_status)
    if fulfillment_exception is not None:
        query = query.where(Order.fulfillment_exception == fulfillment_exception)
    if search:
        like = f"%{search.strip()}%"
        query = query.where(Order.order_number.ilike(like) | Order.payment_reference.ilike(like))

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
    _: User = Depends(require_admin),
):
    order = order_service.get_order_or_404(session, order_id)
    return order_service.serialize_order(session, order)
