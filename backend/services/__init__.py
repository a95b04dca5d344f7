# services/__init__.py
# ============================================================================
# NUDE STOREFRONT v1.0 — SERVICES MODULE
# ============================================================================
# Payment gateway client, signature check, notifications and the order
# lifecycle that ties them to storage
# ============================================================================

from services.signature import (
    SIGNATURE_HEADER,
    verify_signature,
)

from services.payment_gateway import (
    MercadoPagoClient,
    WEBHOOK_ROUTE,
)

from services.notifier import (
    EmailNotifier,
)

from services.order_lifecycle import (
    OrderLifecycle,
    ConfirmOutcome,
)

__all__ = [
    # Signature
    "SIGNATURE_HEADER",
    "verify_signature",
    # Gateway
    "MercadoPagoClient",
    "WEBHOOK_ROUTE",
    # Notifications
    "EmailNotifier",
    # Lifecycle
    "OrderLifecycle",
    "ConfirmOutcome",
]
