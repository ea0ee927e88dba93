import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from slugify import slugify
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.product_schemas import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_unique(session: Session, product_id, slug: str, sku: str) -> None:
    clash = session.exec(
        select(Product).where((Product.slug == slug) | (Product.sku == sku))
    ).first()
    if clash and clash.id != product_id:
        raise HTTPException(400, "A product with this slug or SKU already exists")


@router.post("", status_code=201)
def create_product(
    data: ProductCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    slug = data.slug.strip() if data.slug and data.slug.strip() else slugify(data.name)
    _ensure_unique(session, None, slug, data.sku)

    product = Product(**data.model_dump(exclude={"slug"}), slug=slug)
    session.add(product)
    session.commit()
    session.refresh(product)

    logger.info(f"Product created: {product.sku} by admin {admin.id}")
    return product


@router.put("/{product_id}")
def update_product(
    product_id: int,
    data: ProductUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    product = session.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")

    changes = data.model_dump(exclude_unset=True)
    if "slug" in changes and not (changes["slug"] or "").strip():
        changes["slug"] = slugify(changes.get("name") or product.name)

    for key, value in changes.items():
        setattr(product, key, value)

    if product.discount_price is not None and product.discount_price >= product.price:
        raise HTTPException(400, "discount_price must be lower than price")

    _ensure_unique(session, product.id, product.slug, product.sku)

    product.updated_at = datetime.utcnow()
    session.add(product)
    session.commit()
    session.refresh(product)

    return product


@router.delete("/{product_id}")
def delete_product(
    product_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    """Soft delete: the product leaves the catalog but past orders keep their line items."""
    product = session.get(Product, product_id)
    if not product:
        raise HTTPException(404, "Product not found")

    product.is_active = False
    product.updated_at = datetime.utcnow()
    session.add(product)
    session.commit()

    logger.info(f"Product deactivated: {product.sku} by admin {admin.id}")
    return {"message": "Product deleted successfully"}
