"""
Order Lifecycle - NUDE STOREFRONT v1.0
=======================================
Drives an order from `created` to `paid`:

    create_order()      cart -> order file (created) -> preference -> checkout URL
    confirm_payment()   webhook -> signature -> payment -> order file (paid) -> emails

Each call is stateless. The only coordination between the two paths is
the order file's sha, passed back on update so a stale write fails.
"""

import json
from enum import Enum
from typing import Any, Optional, Union

import pydantic
import structlog

from config import StoreConfig
from errors import AuthError, EmptyCart, StorageError, ValidationError
from schemas.order_definitions import (
    CreateOrderRequest,
    CreateOrderResponse,
    Order,
    PaymentEvent,
)
from services.notifier import EmailNotifier
from services.payment_gateway import MercadoPagoClient
from services.signature import verify_signature
from storage.github_storage import GitHubFileStore


class ConfirmOutcome(str, Enum):
    """How a webhook delivery ended. All of these answer 200."""
    CONFIRMED = "OK"
    ALREADY_PAID = "Already paid."
    NO_PAYMENT_ID = "No payment id."
    NOT_APPROVED = "Payment not approved."
    NO_ORDER_ID = "No order id."
    IGNORED = "Ignored payload."


def _load_json(body: Union[bytes, str, None]) -> Any:
    if not body:
        return {}
    return json.loads(body)


class OrderLifecycle:
    """
    Order creation and payment confirmation.

    Collaborators are injected so tests can swap in fakes:
        lifecycle = OrderLifecycle(config, store, gateway, notifier)
        result = await lifecycle.create_order(body, base_url)
        outcome = await lifecycle.confirm_payment(body, signature_header)
    """

    def __init__(
        self,
        config: StoreConfig,
        store: GitHubFileStore,
        gateway: MercadoPagoClient,
        notifier: EmailNotifier,
    ):
        self.config = config
        self.store = store
        self.gateway = gateway
        self.notifier = notifier
        self._logger = structlog.get_logger().bind(component="order_lifecycle")

    # =========================================================================
    # CREATE
    # =========================================================================

    def parse_create_request(self, body: Union[bytes, str, None]) -> CreateOrderRequest:
        """
        Validate a create-order body.

        Raises:
            EmptyCart: items missing, not a list, or empty
            ValidationError: malformed JSON or malformed items
        """
        try:
            payload = _load_json(body)
        except ValueError:
            raise ValidationError("Invalid JSON body.")

        if not isinstance(payload, dict):
            raise EmptyCart()

        try:
            request = CreateOrderRequest.model_validate(payload)
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first.get("loc", ()))
            detail = " ".join(part for part in (location, first.get("msg", "")) if part)
            raise ValidationError(f"Invalid order: {detail}")

        if not request.items:
            raise EmptyCart()
        return request

    async def create_order(
        self,
        body: Union[bytes, str, None],
        base_url: str,
    ) -> CreateOrderResponse:
        """
        Store a new order and open a checkout preference for it.

        The order id is only handed back once both the order file and the
        preference exist.
        """
        request = self.parse_create_request(body)

        order = Order.new(
            items=request.items,
            customer_email=request.customer_email,
            currency=self.config.currency,
        )
        log = self._logger.bind(order_id=order.id)
        log.info("order_received", items=len(order.items), total=order.total)

        await self.store.put(
            path=self.config.order_path(order.id),
            content=order.to_json(),
            message=f"chore: create order {order.id}",
        )
        log.info("order_stored", status=order.status.value)

        preference = await self.gateway.create_preference(
            items=order.items,
            order_id=order.id,
            base_url=base_url,
        )

        log.info("order_created", preference_id=preference.id)
        return CreateOrderResponse(order_id=order.id, checkout_url=preference.checkout_url)

    # =========================================================================
    # CONFIRM (WEBHOOK)
    # =========================================================================

    def _extract_payment_id(self, body: Union[bytes, str, None]) -> Optional[str]:
        payload = _load_json(body)
        if not isinstance(payload, dict):
            return None
        return PaymentEvent.model_validate(payload).payment_id

    async def confirm_payment(
        self,
        body: Union[bytes, str, None],
        signature_header: Optional[str],
    ) -> ConfirmOutcome:
        """
        Handle a payment notification.

        Raises:
            AuthError: signature does not verify
            GatewayError / StorageError: downstream failure, the gateway
                should redeliver
        """
        if not verify_signature(signature_header, body or b"", self.config.mp_webhook_secret):
            self._logger.warning("webhook_signature_invalid")
            raise AuthError()

        try:
            payment_id = self._extract_payment_id(body)
        except (ValueError, pydantic.ValidationError) as e:
            self._logger.info("webhook_payload_ignored", error=str(e))
            return ConfirmOutcome.IGNORED

        if not payment_id:
            self._logger.info("webhook_without_payment_id")
            return ConfirmOutcome.NO_PAYMENT_ID

        log = self._logger.bind(payment_id=payment_id)
        payment = await self.gateway.fetch_payment(payment_id)
        if not payment.is_approved:
            log.info("payment_not_approved", status=payment.status)
            return ConfirmOutcome.NOT_APPROVED

        order_id = payment.external_reference
        if not order_id:
            log.info("payment_without_order_id")
            return ConfirmOutcome.NO_ORDER_ID

        log = log.bind(order_id=order_id)
        path = self.config.order_path(order_id)
        stored = await self.store.get(path)
        try:
            order = Order.model_validate_json(stored.content)
        except pydantic.ValidationError as e:
            log.error("stored_order_invalid", error=str(e))
            raise StorageError(f"Stored order {order_id} is not a valid order record.")

        if order.is_paid:
            log.info("order_already_paid", paid_payment_id=order.payment.id if order.payment else None)
            return ConfirmOutcome.ALREADY_PAID

        # Only the confirmation keys are rewritten; everything else in the
        # stored document is written back with the values it was read with.
        paid = order.mark_paid(payment.to_record())
        document = {**json.loads(stored.content), **paid.paid_fields()}
        await self.store.update(
            path=path,
            content=json.dumps(document, indent=2, ensure_ascii=False),
            message=f"chore: mark order {order_id} as paid",
            sha=stored.sha,
        )
        log.info("order_marked_paid", amount=payment.transaction_amount)

        await self._notify(paid, log)
        return ConfirmOutcome.CONFIRMED

    async def _notify(self, order: Order, log):
        """Best-effort emails. The order is already durably paid."""
        if order.customer.email:
            try:
                await self.notifier.notify_customer(order)
            except Exception as e:
                log.error("notification_failed", recipient="customer", error=str(e))

        if self.config.store_email:
            try:
                await self.notifier.notify_store(order, to=self.config.store_email)
            except Exception as e:
                log.error("notification_failed", recipient="store", error=str(e))


__all__ = ["OrderLifecycle", "ConfirmOutcome"]
