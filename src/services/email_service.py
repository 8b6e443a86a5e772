"""Email service using Resend for order notifications."""

import logging
from decimal import Decimal
from typing import Any

import resend

from src.core.config import get_settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending order notification emails via Resend.

    Sending is best effort: failures are logged and reported in the return
    value, never raised, so a mail outage cannot undo a committed order.
    """

    def __init__(self) -> None:
        """Initialize email service with Resend API key."""
        settings = get_settings()
        resend.api_key = settings.resend_api_key
        self.enabled = bool(settings.resend_api_key)
        self.from_email = settings.email_from_address
        self.frontend_url = settings.frontend_url

    async def send_order_confirmation(self, to_email: str, order: dict[str, Any]) -> dict[str, Any]:
        """Send an order confirmation email.

        Args:
            to_email: Recipient email address.
            order: Order with its lines.

        Returns:
            dict: success flag and Resend email ID or error.
        """
        order_url = f"{self.frontend_url}/orders/{order['id']}"
        rows = "".join(
            f"<tr><td style=\"padding: 6px 0;\">{item['product_id']}</td>"
            f"<td style=\"padding: 6px 0; text-align: center;\">{item['quantity']}</td>"
            f"<td style=\"padding: 6px 0; text-align: right;\">{_money(item['price'])}</td></tr>"
            for item in order.get("items", [])
        )

        html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Order confirmed</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1 style="color: #111827; font-size: 22px;">Thanks for your order, {order['name']}!</h1>
    <p style="color: #6b7280;">Order <strong>{order['id']}</strong> has been received and is now {order['status']}.</p>

    <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
        <tr><th style="text-align: left;">Product</th><th>Qty</th><th style="text-align: right;">Price</th></tr>
        {rows}
    </table>

    <p style="font-size: 16px;"><strong>Total: {_money(order['total_amount'])}</strong></p>
    <p style="color: #6b7280;">Shipping to: {order['shipping_address']}</p>

    <div style="text-align: center; margin: 30px 0;">
        <a href="{order_url}" style="background: #111827; color: white; padding: 12px 28px; text-decoration: none; border-radius: 6px; font-weight: 600;">
            View order
        </a>
    </div>
</body>
</html>
"""

        text_content = f"""
Thanks for your order, {order['name']}!

Order {order['id']} has been received and is now {order['status']}.
Total: {_money(order['total_amount'])}
Shipping to: {order['shipping_address']}

View your order: {order_url}
"""

        return self._send(
            to_email,
            f"Order {order['id']} confirmed",
            html_content,
            text_content,
            kind="confirmation",
        )

    async def send_order_cancelled(
        self,
        to_email: str,
        order: dict[str, Any],
        message: str | None = None,
    ) -> dict[str, Any]:
        """Send an order cancellation email.

        Args:
            to_email: Recipient email address.
            order: The cancelled order.
            message: Extra instruction for the customer, such as refund steps.

        Returns:
            dict: success flag and Resend email ID or error.
        """
        extra_html = f"<p style=\"color: #b45309;\">{message}</p>" if message else ""
        extra_text = f"\n{message}\n" if message else ""

        html_content = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Order cancelled</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <h1 style="color: #111827; font-size: 22px;">Order cancelled</h1>
    <p>Order <strong>{order['id']}</strong> ({_money(order['total_amount'])}) has been cancelled.</p>
    {extra_html}
</body>
</html>
"""

        text_content = f"""
Order {order['id']} ({_money(order['total_amount'])}) has been cancelled.
{extra_text}"""

        return self._send(
            to_email,
            f"Order {order['id']} cancelled",
            html_content,
            text_content,
            kind="cancellation",
        )

    def _send(self, to_email: str, subject: str, html: str, text: str, kind: str) -> dict[str, Any]:
        if not self.enabled:
            logger.info("Email disabled, skipping %s email to %s", kind, to_email)
            return {"success": False, "error": "email disabled"}

        try:
            response = resend.Emails.send({
                "from": self.from_email,
                "to": [to_email],
                "subject": subject,
                "html": html,
                "text": text,
            })

            logger.info("Order %s email sent to %s, id: %s", kind, to_email, response.get("id"))
            return {"success": True, "email_id": response.get("id")}

        except Exception as e:
            logger.error("Failed to send order %s email to %s: %s", kind, to_email, str(e))
            return {"success": False, "error": str(e)}


def _money(amount: Decimal | str) -> str:
    return f"{Decimal(str(amount)):,.2f}"
