from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.models.product import PRODUCT_CATEGORIES, Product
from storefront.services.pricing import effective_price
from storefront.utils.pagination import paginate

router = APIRouter()


def product_card(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "category": product.category,
        "description": product.description,
        "price": product.price,
        "discount_price": product.discount_price,
        "effective_price": effective_price(product),
        "in_stock": product.in_stock,
        "stock": product.stock,
        "is_featured": product.is_featured,
        "rating": product.rating,
        "review_count": product.review_count,
    }


@router.get("")
def list_products(
    category: Optional[str] = None,
    q: Optional[str] = None,
    featured: Optional[bool] = None,
    in_stock: Optional[bool] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    session: Session = Depends(get_session),
):
    query = select(Product).where(Product.is_active == True)  # noqa: E712

    if category:
        if category not in PRODUCT_CATEGORIES:
            raise HTTPException(400, f"Unknown category: {category}")
        query = query.where(Product.category == category)

    # 🔍 name / description search
    if q:
        like = f"%{q}%"
        query = query.where(Product.name.ilike(like) | Product.description.ilike(like))

    if featured is not None:
        query = query.where(Product.is_featured == featured)

    if in_stock:
        query = query.where(Product.stock > 0)

    query = query.order_by(Product.created_at.desc(), Product.id.desc())

    return paginate(session=session, query=query, page=page, limit=limit, serializer=product_card)


@router.get("/{slug}")
def get_product(slug: str, session: Session = Depends(get_session)):
    product = session.exec(
        select(Product)
        .where(Product.slug == slug)
        .where(Product.is_active == True)  # noqa: E712
    ).first()

    if not product:
        raise HTTPException(404, "Product not found")

    return product_card(product)
