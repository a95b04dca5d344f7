# services/notifier.py
# ============================================================================
# NUDE STOREFRONT v1.0 — EMAIL NOTIFIER
# ============================================================================
# Plain-text payment confirmations for the customer and the store owner,
# sent over SMTP. Callers treat every send as best-effort.
# ============================================================================

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from config import StoreConfig
from schemas.order_definitions import Order

logger = logging.getLogger("Storefront.Notifier")

SMTPS_PORT = 465


class EmailNotifier:
    """
    SMTP notifier.

    Port 465 uses implicit TLS; any other port upgrades with STARTTLS when
    the server offers it. If host, port, user or password is missing the
    send is skipped with a warning.
    """

    def __init__(self, config: StoreConfig):
        self.config = config

    def _build_message(self, to: str, subject: str, text: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.config.sender_address
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        return message

    def _deliver(self, message: EmailMessage):
        host = self.config.smtp_host
        port = self.config.smtp_port

        if port == SMTPS_PORT:
            smtp = smtplib.SMTP_SSL(host, port, timeout=self.config.http_timeout)
        else:
            smtp = smtplib.SMTP(host, port, timeout=self.config.http_timeout)

        with smtp:
            if port != SMTPS_PORT:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
            smtp.login(self.config.smtp_user, self.config.smtp_pass)
            smtp.send_message(message)

    async def send(self, to: str, subject: str, text: str) -> bool:
        """
        Send one plain-text email.

        Returns:
            True if handed to the SMTP server, False if SMTP is not configured
        """
        if not self.config.smtp_configured:
            logger.warning("SMTP env vars missing; skipping email.")
            return False

        message = self._build_message(to, subject, text)
        await asyncio.get_event_loop().run_in_executor(None, self._deliver, message)
        logger.info(f"Sent '{subject}' to {to}")
        return True

    async def notify_customer(self, order: Order) -> bool:
        """Payment confirmation for the buyer."""
        return await self.send(
            to=order.customer.email,
            subject="Pago confirmado - nude",
            text=customer_text(order),
        )

    async def notify_store(self, order: Order, to: Optional[str] = None) -> bool:
        """New paid order alert for the store owner."""
        return await self.send(
            to=to or self.config.store_email,
            subject=f"Nuevo pedido pagado {order.id}",
            text=store_text(order),
        )


def customer_text(order: Order) -> str:
    return f"¡Gracias por tu compra! Tu pedido {order.id} fue confirmado."


def store_text(order: Order) -> str:
    lines = [f"El pedido {order.id} está pagado y listo para preparar.", ""]
    for item in order.items:
        lines.append(f"- {item.title} x{item.quantity}: {item.subtotal:.2f} {order.currency}")
    lines.append("")
    lines.append(f"Total: {order.total:.2f} {order.currency}")
    if order.customer.email:
        lines.append(f"Cliente: {order.customer.email}")
    return "\n".join(lines)


__all__ = ["EmailNotifier", "customer_text", "store_text"]
