"""
Payment Gateway Client - NUDE STOREFRONT v1.0
==============================================
Thin async client for the two Mercado Pago calls the storefront makes:

- create_preference(): checkout preference for an order, returns the
  checkout URL the browser is redirected to
- fetch_payment(): current state of a payment named in a webhook

Single attempt per call. Redelivery of webhooks is the only retry layer.
"""

from typing import List, Optional
from urllib.parse import quote

import httpx
import structlog

from config import StoreConfig
from errors import ConfigurationError, GatewayError
from schemas.order_definitions import LineItem, Payment, Preference

WEBHOOK_ROUTE = "/api/mp-webhook"


class MercadoPagoClient:
    """
    Mercado Pago REST client.

    Example:
        gateway = MercadoPagoClient(config)
        preference = await gateway.create_preference(order.items, order.id, base_url)
        # Browser goes to preference.checkout_url
        # Webhook: payment = await gateway.fetch_payment(payment_id)
    """

    def __init__(self, config: StoreConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client
        self._owns_client = client is None
        self._logger = structlog.get_logger().bind(component="payment_gateway")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.http_timeout)
        return self._client

    async def close(self):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _auth_headers(self) -> dict:
        if not self.config.mp_access_token:
            raise ConfigurationError("Missing MP_ACCESS_TOKEN.")
        return {"Authorization": f"Bearer {self.config.mp_access_token}"}

    def _url(self, path: str) -> str:
        return f"{self.config.mp_api_url.rstrip('/')}{path}"

    @staticmethod
    def _raise_for_response(response: httpx.Response, default: str):
        if response.is_success:
            return
        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("message") if isinstance(body, dict) else None
        raise GatewayError(message or default, status_code=response.status_code)

    @staticmethod
    def build_preference(items: List[LineItem], order_id: str, base_url: str) -> dict:
        """Request body for POST /checkout/preferences."""
        base_url = base_url.rstrip("/")
        return {
            "items": [
                {
                    "title": item.title,
                    "quantity": item.quantity,
                    "unit_price": float(item.price),
                }
                for item in items
            ],
            "external_reference": order_id,
            "back_urls": {
                "success": f"{base_url}/success.html?order_id={order_id}",
                "failure": f"{base_url}/?payment=failed",
                "pending": f"{base_url}/?payment=pending",
            },
            "auto_return": "approved",
            "notification_url": f"{base_url}{WEBHOOK_ROUTE}",
            "metadata": {"order_id": order_id},
        }

    async def create_preference(
        self,
        items: List[LineItem],
        order_id: str,
        base_url: str,
    ) -> Preference:
        """
        Create a checkout preference for an order.

        Raises:
            ConfigurationError: no access token
            GatewayError: non-success response, or no checkout URL in it
        """
        headers = self._auth_headers()
        log = self._logger.bind(order_id=order_id)

        response = await self._get_client().post(
            self._url("/checkout/preferences"),
            headers={**headers, "Content-Type": "application/json"},
            json=self.build_preference(items, order_id, base_url),
        )
        self._raise_for_response(response, "Failed to create Mercado Pago preference.")

        preference = Preference.model_validate(response.json())
        if not preference.checkout_url:
            log.error("preference_without_checkout_url", preference_id=preference.id)
            raise GatewayError("Mercado Pago preference has no checkout URL.")

        log.info("preference_created", preference_id=preference.id)
        return preference

    async def fetch_payment(self, payment_id: str) -> Payment:
        """
        Fetch a payment's status, amount, method and external reference.

        Raises:
            ConfigurationError: no access token
            GatewayError: non-success response
        """
        headers = self._auth_headers()

        response = await self._get_client().get(
            self._url(f"/v1/payments/{quote(str(payment_id), safe='')}"),
            headers=headers,
        )
        self._raise_for_response(response, "Failed to fetch payment.")

        payment = Payment.model_validate(response.json())
        self._logger.info("payment_fetched", payment_id=payment_id, status=payment.status)
        return payment


__all__ = ["MercadoPagoClient", "WEBHOOK_ROUTE"]
