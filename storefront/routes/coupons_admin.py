from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.coupon import Coupon
from storefront.models.user import User
from storefront.schemas.coupon_schemas import CouponCreate, CouponUpdate
from storefront.utils.pagination import paginate

router = APIRouter()


@router.post("", status_code=201)
def create_coupon(
    data: CouponCreate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    code = data.code.strip().upper()
    if session.exec(select(Coupon).where(Coupon.code == code)).first():
        raise HTTPException(400, "Coupon code already exists")

    coupon = Coupon(**data.model_dump(exclude={"code"}), code=code)
    session.add(coupon)
    session.commit()
    session.refresh(coupon)
    return coupon


@router.get("")
def list_coupons(
    active: bool | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    query = select(Coupon).order_by(Coupon.created_at.desc())
    if active is not None:
        query = query.where(Coupon.is_active == active)

    return paginate(session=session, query=query, page=page, limit=limit)


@router.put("/{coupon_id}")
def update_coupon(
    coupon_id: int,
    data: CouponUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    coupon = session.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(404, "Coupon not found")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(coupon, key, value)

    if coupon.valid_until <= coupon.valid_from:
        raise HTTPException(400, "valid_until must be after valid_from")

    coupon.updated_at = datetime.utcnow()
    session.add(coupon)
    session.commit()
    session.refresh(coupon)
    return coupon
