"""Paid-invoice workflow: find the matching Shopify order and mark it paid."""

import logging
from typing import Optional

from ..clients.base import Invoice, Order, OrderDirectory
from ..config import is_dry_run
from ..database import NotificationLog, NotificationStatus, NotificationType
from .notifier import EmailNotifier
from .reference import extract_order_reference

logger = logging.getLogger(__name__)

NO_REFERENCE_REASON = (
    "No Shopify order number in invoice header (may be cancellation or manual invoice)"
)
ALREADY_PAID_REASON = "Order already marked as paid"


class PaymentProcessor:
    """Processes one paid invoice at a time and records exactly one log row per call.

    Invoices with a `sent` record are skipped without any external call.
    Every other outcome (skipped, failed, dry-run, sent) appends a new row,
    so failed invoices are retried by the next poll cycle that sees them.
    """

    def __init__(
        self,
        orders: OrderDirectory,
        log: Optional[NotificationLog] = None,
        notifier: Optional[EmailNotifier] = None,
        dry_run: Optional[bool] = None,
        notification_type: str = NotificationType.PAYMENT_RECEIVED.value,
    ):
        """
        Args:
            orders: Shopify order directory.
            log: Notification log; defaults to one on the process-wide database.
            notifier: Email notifier.
            dry_run: Force dry-run on or off. None reads DRY_RUN from the
                environment on every invocation.
            notification_type: Tag written to the log.
        """
        self.orders = orders
        self.log = log or NotificationLog()
        self.notifier = notifier or EmailNotifier()
        self._dry_run = dry_run
        self.notification_type = notification_type

    def is_dry_run(self) -> bool:
        if self._dry_run is not None:
            return self._dry_run
        return is_dry_run()

    async def _record(
        self,
        invoice: Invoice,
        customer_email: str,
        order_id: Optional[str],
        status: NotificationStatus,
        reason: Optional[str] = None,
    ) -> None:
        await self.log.append(
            invoice_id=invoice.id,
            notification_type=self.notification_type,
            customer_email=customer_email,
            order_id=order_id,
            status=status.value,
            error_message=reason,
        )

    async def process_paid_invoice(self, invoice: Invoice) -> Optional[NotificationStatus]:
        """Reconcile one paid invoice.

        Never raises. Returns the recorded status, or None when the invoice
        had already been processed and nothing was recorded.
        """
        logger.info(f"Processing invoice {invoice.invoice_number or invoice.id}")
        try:
            return await self._process(invoice)
        except Exception as e:
            logger.error(f"Error processing invoice {invoice.invoice_number or invoice.id}: {e}", exc_info=True)
            try:
                await self._record(invoice, "", None, NotificationStatus.FAILED, str(e))
            except Exception as record_error:
                logger.error(
                    f"Could not record failure for invoice {invoice.id}; "
                    f"needs manual follow-up: {record_error}",
                    exc_info=True,
                )
            return NotificationStatus.FAILED

    async def _process(self, invoice: Invoice) -> Optional[NotificationStatus]:
        existing = await self.log.find_sent_record(invoice.id, self.notification_type)
        if existing is not None:
            logger.info(f"Invoice {invoice.id} already processed, skipping")
            return None

        reference = extract_order_reference(invoice.header)
        if reference is None:
            logger.warning(f"No order number in header of invoice {invoice.id}: {invoice.header!r}")
            await self._record(invoice, "", None, NotificationStatus.SKIPPED, NO_REFERENCE_REASON)
            return NotificationStatus.SKIPPED

        order = await self.orders.find_order_by_reference(reference)
        if order is None:
            logger.warning(f"No matching Shopify order for order number {reference}")
            await self._record(
                invoice,
                "",
                None,
                NotificationStatus.FAILED,
                f"No matching Shopify order found for order number {reference}",
            )
            return NotificationStatus.FAILED

        email = order.email or ""
        logger.info(f"Matched invoice {invoice.id} to order {order.name} ({order.id})")

        if self.is_dry_run():
            logger.info(f"Dry run: not marking order {order.name} as paid")
            await self._record(
                invoice,
                email,
                order.id,
                NotificationStatus.DRY_RUN,
                f"Dry run: order {order.name} would be marked as paid",
            )
            return NotificationStatus.DRY_RUN

        if order.is_paid:
            logger.info(f"Order {order.name} is already paid")
            await self._record(invoice, email, order.id, NotificationStatus.SENT, ALREADY_PAID_REASON)
            return NotificationStatus.SENT

        try:
            await self.orders.mark_order_paid(order.id)
        except Exception as e:
            logger.error(f"Failed to mark order {order.name} as paid: {e}")
            await self._record(invoice, email, order.id, NotificationStatus.FAILED, str(e))
            return NotificationStatus.FAILED

        await self._notify(order)

        await self._record(invoice, email, order.id, NotificationStatus.SENT)
        logger.info(f"Invoice {invoice.id}: order {order.name} marked as paid")
        return NotificationStatus.SENT

    async def _notify(self, order: Order) -> None:
        # The order is already paid at this point; email problems only get logged.
        try:
            result = await self.notifier.send_payment_confirmation(order)
        except Exception as e:
            logger.warning(f"Payment email for order {order.name} failed: {e}")
            return
        if not result.success:
            logger.warning(f"Payment email for order {order.name} not sent: {result.message}")
