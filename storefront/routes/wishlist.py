import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, func
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.models.product import Product
from storefront.models.user import User
from storefront.models.wishlist import WishlistItem
from storefront.routes.products_public import product_card
from storefront.schemas.wishlist_schemas import WishlistAddRequest
from storefront.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def get_wishlist(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    rows = session.exec(
        select(WishlistItem, Product)
        .join(Product, Product.id == WishlistItem.product_id)
        .where(WishlistItem.customer_id == current_user.id)
        .order_by(WishlistItem.added_at.desc(), WishlistItem.id.desc())
    ).all()

    return {
        "items": [
            {"id": item.id, "added_at": item.added_at, "product": product_card(product)}
            for item, product in rows
        ]
    }


@router.post("", status_code=201)
def add_to_wishlist(
    data: WishlistAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    product = session.get(Product, data.product_id)
    if not product or not product.is_active:
        raise HTTPException(404, "Product not found")

    existing = session.exec(
        select(WishlistItem)
        .where(WishlistItem.customer_id == current_user.id, WishlistItem.product_id == product.id)
    ).first()
    if existing:
        raise HTTPException(400, "Product already in wishlist")

    item = WishlistItem(customer_id=current_user.id, product_id=product.id)
    session.add(item)
    session.commit()
    session.refresh(item)

    return {"message": "Added to wishlist", "item": item}


@router.get("/count")
def wishlist_count(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    count = session.exec(
        select(func.count()).select_from(WishlistItem).where(
            WishlistItem.customer_id == current_user.id
        )
    ).one()

    return {"count": count or 0}


@router.get("/status/{product_id}")
def wishlist_status(
    product_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    exists = session.exec(
        select(WishlistItem).where(
            WishlistItem.customer_id == current_user.id,
            WishlistItem.product_id == product_id,
        )
    ).first()

    return {"in_wishlist": bool(exists)}


@router.delete("/{item_id}")
def remove_from_wishlist(
    item_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    item = session.get(WishlistItem, item_id)

    if not item or item.customer_id != current_user.id:
        raise HTTPException(404, "Wishlist item not found")

    session.delete(item)
    session.commit()

    return {"message": "Removed from wishlist"}


@router.delete("")
def clear_wishlist(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    session.execute(delete(WishlistItem).where(WishlistItem.customer_id == current_user.id))
    session.commit()

    logger.info(f"Wishlist cleared for customer {current_user.id}")
    return {"message": "Wishlist cleared"}
