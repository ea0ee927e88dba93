from storefront.notifications.events import OrderEvent
from storefront.notifications.channels import Channel


NOTIFICATION_RULES = {

    OrderEvent.ORDER_CONFIRMED: {
        Channel.EMAIL_USER: True,
        Channel.EMAIL_ADMIN: True,
    },

    OrderEvent.PAYMENT_SUCCESS: {
        Channel.EMAIL_USER: True,
    },

    OrderEvent.PAYMENT_FAILED: {
        Channel.EMAIL_USER: True,
    },

    OrderEvent.STATUS_UPDATED: {
        Channel.EMAIL_USER: True,
    },

    OrderEvent.ORDER_CANCELLED: {
        Channel.EMAIL_USER: True,
        Channel.EMAIL_ADMIN: True,
    },

    OrderEvent.REFUND_PROCESSED: {
        Channel.EMAIL_USER: True,
        Channel.EMAIL_ADMIN: True,
    },

    OrderEvent.FULFILLMENT_EXCEPTION: {
        Channel.EMAIL_ADMIN: True,
    },

}
