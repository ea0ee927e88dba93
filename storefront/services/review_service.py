import logging

from sqlalchemy import func
from sqlmodel import Session, select

from storefront.constants.order_status import PaymentStatus
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.product import Product
from storefront.models.review import Review

logger = logging.getLogger(__name__)


def has_purchased(session: Session, customer_id: int, product_id: int) -> bool:
    """True when the customer has a paid order containing the product."""
    match = session.exec(
        select(OrderItem.id)
        .join(Order, Order.id == OrderItem.order_id)
        .where(Order.customer_id == customer_id)
        .where(OrderItem.product_id == product_id)
        .where(Order.payment_status == PaymentStatus.COMPLETED)
    ).first()
    return match is not None


def refresh_product_rating(session: Session, product: Product) -> None:
    """Recompute the product's average rating and review count. Caller commits."""
    average, count = session.exec(
        select(func.avg(Review.rating), func.count(Review.id))
        .where(Review.product_id == product.id)
    ).one()

    product.rating = round(float(average), 1) if count else 0.0
    product.review_count = count
    session.add(product)

    logger.debug(f"Product {product.id} rating now {product.rating} from {count} review(s)")


def summarize_reviews(session: Session, product: Product) -> dict:
    reviews = session.exec(
        select(Review)
        .where(Review.product_id == product.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    ).all()

    return {
        "product_slug": product.slug,
        "average_rating": product.rating,
        "total_reviews": len(reviews),
        "reviews": reviews,
    }
