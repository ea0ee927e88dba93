from typing import Dict

from storefront.config import settings
from storefront.models.product import Product


def effective_price(product: Product) -> float:
    """Discount price wins over the list price when one is set."""
    return product.discount_price or product.price


def compute_shipping(subtotal: float) -> float:
    return 0 if subtotal > settings.free_shipping_threshold else settings.flat_shipping_fee


def compute_tax(subtotal: float) -> float:
    return round(subtotal * settings.tax_rate, 2)


def compute_totals(subtotal: float, discount: float = 0) -> Dict[str, float]:
    """
    Server-side money breakdown for a cart or an order.

    total = subtotal + tax + shipping - discount, never below zero.
    """
    subtotal = round(subtotal, 2)
    tax = compute_tax(subtotal)
    shipping = compute_shipping(subtotal)
    total = max(round(subtotal + tax + shipping - discount, 2), 0)

    return {
        "subtotal": subtotal,
        "tax": tax,
        "shipping_cost": shipping,
        "discount": round(discount, 2),
        "total": total,
    }


def to_minor_units(amount: float) -> int:
    """Naira -> kobo, the unit the gateway charges in."""
    return int(round(amount * 100))
