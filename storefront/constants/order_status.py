class PaymentStatus:
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    ABANDONED = "abandoned"


class OrderStatus:
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


# payment states a confirmed charge may still move out of
CONFIRMABLE_PAYMENT_STATUSES = (
    PaymentStatus.PENDING,
    PaymentStatus.FAILED,
    PaymentStatus.ABANDONED,
)

NON_CANCELLABLE_STATUSES = (
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
    OrderStatus.CANCELLED,
    OrderStatus.REFUNDED,
)

REFUNDABLE_STATUSES = (OrderStatus.DELIVERED, "completed")

RETRYABLE_PAYMENT_STATUSES = (PaymentStatus.PENDING, PaymentStatus.FAILED)

# unpaid orders the expiry job abandons
EXPIRABLE_PAYMENT_STATUSES = (PaymentStatus.PENDING, PaymentStatus.FAILED)
EXPIRABLE_ORDER_STATUSES = (OrderStatus.PENDING, OrderStatus.CANCELLED)

# admin fulfilment moves, forward only
ALLOWED_TRANSITIONS = {
    "pending": [],
    "confirmed": ["processing", "shipped"],
    "processing": ["shipped"],
    "shipped": ["delivered"],
    "delivered": [],
    "cancelled": [],
    "refunded": [],
}
