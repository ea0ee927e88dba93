import logging

from storefront.notifications.rules import NOTIFICATION_RULES
from storefront.notifications.channels import Channel
from storefront.notifications.email_handlers import build_user_email, build_admin_emails
from storefront.notifications.events import OrderEvent

logger = logging.getLogger(__name__)


def dispatch_order_event(
    *,
    event: OrderEvent,
    order,
    user,
    session,
    extra: dict | None = None,
    notify_user: bool = True,
    notify_admin: bool = True,
):
    """
    Central notification dispatcher.

    Emails are rendered now and queued in the outbox inside the caller's
    transaction; delivery happens later (see notifications.delivery). A
    template or rendering problem is logged and never reaches the order flow.
    """

    rules = NOTIFICATION_RULES.get(event, {})
    extra = extra or {}
    queued = []

    # -------------------------
    # USER EMAIL
    # -------------------------
    if notify_user and rules.get(Channel.EMAIL_USER) and user:
        try:
            queued.append(build_user_email(event, order, user, **extra))
        except Exception:
            logger.exception(f"Could not render {event.value} email for order {order.id}")

    # -------------------------
    # ADMIN EMAIL
    # -------------------------
    if notify_admin and rules.get(Channel.EMAIL_ADMIN):
        try:
            queued.extend(build_admin_emails(event, order, user, **extra))
        except Exception:
            logger.exception(f"Could not render {event.value} admin email for order {order.id}")

    for email in queued:
        session.add(email)

    return queued
