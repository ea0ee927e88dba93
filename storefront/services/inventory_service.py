import logging
from datetime import datetime
from typing import List

from sqlalchemy import update
from sqlmodel import Session, select

from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.product import Product

logger = logging.getLogger(__name__)


def reduce_inventory(session: Session, order: Order) -> List[OrderItem]:
    """
    Take the paid quantities out of stock.

    Each line is decremented with a single conditional update so stock never
    goes negative. Lines that no longer fit are returned to the caller, the
    payment has already been captured so they are a fulfilment problem, not a
    reason to fail.
    """
    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id)
    ).all()

    shortfalls = []
    for item in items:
        if item.stock_applied:
            continue

        result = session.execute(
            update(Product)
            .where(Product.id == item.product_id)
            .where(Product.stock >= item.quantity)
            .values(stock=Product.stock - item.quantity, updated_at=datetime.utcnow())
        )

        if result.rowcount == 0:
            logger.warning(
                f"Insufficient stock for product {item.product_id} "
                f"on order {order.order_number} (wanted {item.quantity})"
            )
            shortfalls.append(item)
            continue

        item.stock_applied = True
        session.add(item)

    return shortfalls


def restore_inventory(session: Session, order: Order) -> int:
    """Put back every unit a confirmed payment took out of stock."""
    items = session.exec(
        select(OrderItem)
        .where(OrderItem.order_id == order.id)
        .where(OrderItem.stock_applied == True)  # noqa: E712
    ).all()

    for item in items:
        session.execute(
            update(Product)
            .where(Product.id == item.product_id)
            .values(stock=Product.stock + item.quantity, updated_at=datetime.utcnow())
        )
        item.stock_applied = False
        session.add(item)

    logger.info(f"Restocked {len(items)} line(s) for order {order.order_number}")
    return len(items)
