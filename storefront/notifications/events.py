from enum import Enum


class OrderEvent(str, Enum):
    ORDER_CONFIRMED = "order_confirmed"
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_FAILED = "payment_failed"
    STATUS_UPDATED = "status_updated"
    ORDER_CANCELLED = "order_cancelled"
    REFUND_PROCESSED = "refund_processed"
    FULFILLMENT_EXCEPTION = "fulfillment_exception"
