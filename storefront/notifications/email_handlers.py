from storefront.config import settings
from storefront.models.email import EmailLog
from storefront.notifications.events import OrderEvent
from storefront.utils.template import render_template


USER_TEMPLATES = {
    OrderEvent.ORDER_CONFIRMED: ("emails/order_confirmation.html", "Order Confirmation - {store}"),
    OrderEvent.PAYMENT_SUCCESS: ("emails/payment_success.html", "Payment Successful - {store}"),
    OrderEvent.PAYMENT_FAILED: ("emails/payment_failed.html", "Payment Failed - {store}"),
    OrderEvent.STATUS_UPDATED: ("emails/order_status_update.html", "Order Status Update - {store}"),
    OrderEvent.ORDER_CANCELLED: ("emails/order_cancelled.html", "Order Cancelled - {store}"),
    OrderEvent.REFUND_PROCESSED: ("emails/refund_processed.html", "Refund Processed - {store}"),
}

ADMIN_TITLES = {
    OrderEvent.ORDER_CONFIRMED: "New paid order",
    OrderEvent.ORDER_CANCELLED: "Order cancelled",
    OrderEvent.REFUND_PROCESSED: "Order refunded",
    OrderEvent.FULFILLMENT_EXCEPTION: "Paid order short on stock",
}


def build_user_email(event: OrderEvent, order, user, **ctx) -> EmailLog:
    template, subject = USER_TEMPLATES[event]
    ctx.setdefault("items", order.items)
    html = render_template(
        template,
        order=order,
        first_name=user.first_name,
        frontend_url=settings.frontend_url,
        **ctx,
    )
    return EmailLog(
        to_email=user.email,
        subject=subject.format(store=settings.store_name),
        html=html,
        event=event.value,
        order_id=order.id,
    )


def build_admin_emails(event: OrderEvent, order, user, **ctx) -> list:
    title = ADMIN_TITLES.get(event, "Order update")
    html = render_template(
        "emails/admin_order_event.html",
        order=order,
        title=title,
        customer_name=user.full_name if user else "",
        customer_email=user.email if user else "",
        **ctx,
    )
    return [
        EmailLog(
            to_email=admin_email,
            subject=f"{title} - {order.order_number}",
            html=html,
            event=event.value,
            order_id=order.id,
        )
        for admin_email in settings.admin_emails
    ]
