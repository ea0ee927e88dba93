from fastapi import APIRouter, Depends
from sqlmodel import Session, func, select

from storefront.database import get_session
from storefront.models.cart import Cart, CartItem
from storefront.models.user import User
from storefront.schemas.cart_schemas import ApplyCouponRequest, CartAddRequest, CartUpdateRequest
from storefront.services import cart_service
from storefront.utils.token import get_current_user

router = APIRouter()


@router.get("")
def view_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    cart = cart_service.get_cart(session, current_user.id)
    return cart_service.cart_summary(session, cart)


@router.get("/count")
def cart_count(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    count = session.exec(
        select(func.coalesce(func.sum(CartItem.quantity), 0))
        .select_from(CartItem)
        .join(Cart, Cart.id == CartItem.cart_id)
        .where(Cart.customer_id == current_user.id)
    ).one()
    return {"count": count}


@router.post("/items")
def add_to_cart(
    data: CartAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    cart = cart_service.add_item(session, current_user.id, data.product_id, data.quantity)
    return {"message": "Added to cart", **cart_service.cart_summary(session, cart)}


@router.put("/items/{item_id}")
def update_cart_item(
    item_id: int,
    data: CartUpdateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    cart = cart_service.update_item(session, current_user.id, item_id, data.quantity)
    return {"message": "Cart updated", **cart_service.cart_summary(session, cart)}


@router.delete("/items/{item_id}")
def remove_cart_item(
    item_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    cart = cart_service.remove_item(session, current_user.id, item_id)
    return {"message": "Item removed", **cart_service.cart_summary(session, cart)}


@router.post("/coupon")
def apply_coupon(
    data: ApplyCouponRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    cart = cart_service.apply_coupon(session, current_user.id, data.code)
    return {"message": "Coupon applied", **cart_service.cart_summary(session, cart)}


@router.delete("/coupon")
def remove_coupon(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    cart = cart_service.remove_coupon(session, current_user.id)
    return {"message": "Coupon removed", **cart_service.cart_summary(session, cart)}


@router.delete("/clear")
def clear_cart(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    cart_service.clear_cart(session, current_user.id)
    return {"message": "Cart cleared"}
