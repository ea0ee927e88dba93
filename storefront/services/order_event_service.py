from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, select

from storefront.models.order_status_history import OrderStatusHistory


def log_order_status(
    session: Session,
    order_id: int,
    status: str,
    note: Optional[str] = None,
    created_by: str = "system",
) -> OrderStatusHistory:
    """
    Append-only status history for the order timeline
    """

    entry = OrderStatusHistory(
        order_id=order_id,
        status=status,
        note=note,
        created_by=created_by,
        created_at=datetime.utcnow(),
    )

    session.add(entry)
    return entry


def get_order_history(session: Session, order_id: int) -> List[OrderStatusHistory]:
    return session.exec(
        select(OrderStatusHistory)
        .where(OrderStatusHistory.order_id == order_id)
        .order_by(OrderStatusHistory.created_at, OrderStatusHistory.id)
    ).all()
