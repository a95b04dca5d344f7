# schemas/__init__.py
from schemas.order_definitions import (
    OrderStatus,
    LineItem,
    Customer,
    PaymentRecord,
    Order,
    CreateOrderRequest,
    CreateOrderResponse,
    Preference,
    Payment,
    PaymentEvent,
)

__all__ = [
    "OrderStatus",
    "LineItem",
    "Customer",
    "PaymentRecord",
    "Order",
    "CreateOrderRequest",
    "CreateOrderResponse",
    "Preference",
    "Payment",
    "PaymentEvent",
]
