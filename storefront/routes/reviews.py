import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.models.product import Product
from storefront.models.review import Review
from storefront.models.user import User
from storefront.schemas.review_schemas import ReviewCreate, ReviewUpdate
from storefront.services.review_service import (
    has_purchased,
    refresh_product_rating,
    summarize_reviews,
)
from storefront.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _active_product(session: Session, slug: str) -> Product:
    product = session.exec(
        select(Product)
        .where(Product.slug == slug)
        .where(Product.is_active == True)  # noqa: E712
    ).first()

    if not product:
        raise HTTPException(404, "Product not found")
    return product


def _own_review(session: Session, review_id: int, user: User) -> Review:
    review = session.get(Review, review_id)

    if not review:
        raise HTTPException(404, "Review not found")

    if review.customer_id != user.id and user.role != "admin":
        raise HTTPException(403, "Not authorized")
    return review


# ---------------------------------------------------------
# CREATE A REVIEW (BY PRODUCT SLUG)
# ---------------------------------------------------------

@router.post("/products/{slug}/reviews", status_code=201)
def create_review(
    slug: str,
    data: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    product = _active_product(session, slug)

    existing = session.exec(
        select(Review)
        .where(Review.product_id == product.id, Review.customer_id == current_user.id)
    ).first()
    if existing:
        raise HTTPException(400, "You have already reviewed this product")

    review = Review(
        product_id=product.id,
        customer_id=current_user.id,
        rating=data.rating,
        title=data.title,
        comment=data.comment,
        verified=has_purchased(session, current_user.id, product.id),
    )
    session.add(review)
    session.flush()

    refresh_product_rating(session, product)
    session.commit()
    session.refresh(review)

    logger.info(f"Review {review.id} added to product {product.id} by customer {current_user.id}")
    return {"message": "Review added", "review": review}


# ---------------------------------------------------------
# LIST REVIEWS FOR A PRODUCT
# ---------------------------------------------------------

@router.get("/products/{slug}/reviews")
def list_reviews(slug: str, session: Session = Depends(get_session)):
    product = _active_product(session, slug)
    return summarize_reviews(session, product)


# ---------------------------------------------------------
# UPDATE / DELETE (AUTHOR OR ADMIN)
# ---------------------------------------------------------

@router.put("/reviews/{review_id}")
def update_review(
    review_id: int,
    data: ReviewUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    review = _own_review(session, review_id, current_user)

    for key, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(review, key, value)

    review.updated_at = datetime.utcnow()
    session.add(review)
    session.flush()

    refresh_product_rating(session, session.get(Product, review.product_id))
    session.commit()
    session.refresh(review)

    return {"message": "Review updated successfully", "review": review}


@router.delete("/reviews/{review_id}")
def delete_review(
    review_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    review = _own_review(session, review_id, current_user)
    product = session.get(Product, review.product_id)

    session.delete(review)
    session.flush()

    refresh_product_rating(session, product)
    session.commit()

    return {"message": "Review deleted successfully"}
