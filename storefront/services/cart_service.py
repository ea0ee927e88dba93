from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlmodel import Session, select

from storefront.models.cart import Cart, CartItem
from storefront.models.product import Product
from storefront.services import coupon_service
from storefront.services.pricing import compute_totals, effective_price

EMPTY_SUMMARY = {"subtotal": 0, "tax": 0, "shipping_cost": 0, "discount": 0, "total": 0}


def get_cart(session: Session, customer_id: int) -> Optional[Cart]:
    return session.exec(
        select(Cart).where(Cart.customer_id == customer_id)
    ).first()


def get_or_create_cart(session: Session, customer_id: int) -> Cart:
    cart = get_cart(session, customer_id)
    if cart:
        return cart

    cart = Cart(customer_id=customer_id)
    session.add(cart)
    session.commit()
    session.refresh(cart)
    return cart


def _cart_lines(session: Session, cart: Cart):
    return session.exec(
        select(CartItem, Product)
        .join(Product, CartItem.product_id == Product.id)
        .where(CartItem.cart_id == cart.id)
        .order_by(CartItem.added_at, CartItem.id)
    ).all()


def cart_subtotal(session: Session, cart: Cart) -> float:
    return round(
        sum(effective_price(p) * item.quantity for item, p in _cart_lines(session, cart)),
        2,
    )


def reset_coupon(cart: Cart) -> None:
    # any change to the items invalidates the computed discount
    cart.coupon_code = None
    cart.coupon_discount = 0
    cart.updated_at = datetime.utcnow()


def cart_summary(session: Session, cart: Optional[Cart]) -> dict:
    if not cart:
        return {
            "items": [],
            "coupon_code": None,
            "summary": EMPTY_SUMMARY,
        }

    items = []
    subtotal = 0
    for item, product in _cart_lines(session, cart):
        price = effective_price(product)
        subtotal += price * item.quantity
        items.append({
            "item_id": item.id,
            "product_id": product.id,
            "name": product.name,
            "slug": product.slug,
            "price": product.price,
            "discount_price": product.discount_price,
            "effective_price": price,
            "quantity": item.quantity,
            "stock": product.stock,
            "in_stock": product.in_stock,
            "total": round(price * item.quantity, 2),
        })

    return {
        "items": items,
        "coupon_code": cart.coupon_code,
        "summary": compute_totals(subtotal, cart.coupon_discount or 0) if items else EMPTY_SUMMARY,
    }


def add_item(session: Session, customer_id: int, product_id: int, quantity: int) -> Cart:
    product = session.get(Product, product_id)
    if not product or not product.is_active:
        raise HTTPException(404, "Product not found")

    cart = get_or_create_cart(session, customer_id)

    existing = session.exec(
        select(CartItem)
        .where(CartItem.cart_id == cart.id)
        .where(CartItem.product_id == product_id)
    ).first()

    wanted = quantity + (existing.quantity if existing else 0)
    if product.stock < wanted:
        raise HTTPException(400, f"Insufficient stock for {product.name}. Available: {product.stock}")

    if existing:
        existing.quantity = wanted
        session.add(existing)
    else:
        session.add(CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity))

    reset_coupon(cart)
    session.add(cart)
    session.commit()
    session.refresh(cart)
    return cart


def update_item(session: Session, customer_id: int, item_id: int, quantity: int) -> Cart:
    cart = get_cart(session, customer_id)
    item = session.get(CartItem, item_id)
    if not cart or not item or item.cart_id != cart.id:
        raise HTTPException(404, "Cart item not found")

    if quantity <= 0:
        session.delete(item)
    else:
        product = session.get(Product, item.product_id)
        if product and product.stock < quantity:
            raise HTTPException(400, f"Insufficient stock for {product.name}. Available: {product.stock}")
        item.quantity = quantity
        session.add(item)

    reset_coupon(cart)
    session.add(cart)
    session.commit()
    session.refresh(cart)
    return cart


def remove_item(session: Session, customer_id: int, item_id: int) -> Cart:
    return update_item(session, customer_id, item_id, 0)


def apply_coupon(session: Session, customer_id: int, code: str) -> Cart:
    cart = get_cart(session, customer_id)
    if not cart:
        raise HTTPException(400, "Your cart is empty")

    lines = _cart_lines(session, cart)
    if not lines:
        raise HTTPException(400, "Your cart is empty")

    coupon = coupon_service.find_valid_coupon(session, code)
    subtotal = round(sum(effective_price(p) * i.quantity for i, p in lines), 2)
    usage = coupon_service.customer_coupon_usage(session, coupon.code, customer_id)
    coupon_service.validate_coupon(coupon, subtotal, [p for _, p in lines], usage)

    cart.coupon_code = coupon.code
    cart.coupon_discount = coupon_service.compute_discount(coupon, subtotal)
    cart.updated_at = datetime.utcnow()
    session.add(cart)
    session.commit()
    session.refresh(cart)
    return cart


def remove_coupon(session: Session, customer_id: int) -> Optional[Cart]:
    cart = get_cart(session, customer_id)
    if cart:
        reset_coupon(cart)
        session.add(cart)
        session.commit()
        session.refresh(cart)
    return cart


def clear_cart(session: Session, customer_id: int, commit: bool = True) -> None:
    """Delete the whole cart document, items included."""
    cart = get_cart(session, customer_id)
    if not cart:
        return

    items = session.exec(
        select(CartItem).where(CartItem.cart_id == cart.id)
    ).all()
    for item in items:
        session.delete(item)
    session.delete(cart)

    if commit:
        session.commit()
