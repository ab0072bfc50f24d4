"""Repository layer for the notification log."""

import logging
from typing import Optional, Dict, List

from sqlalchemy import select, and_, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .models import (
    NotificationHistory,
    NotificationStatus,
    NotificationType,
)
from .session import session_scope

logger = logging.getLogger(__name__)


class NotificationRepository:
    """Insert and query operations on notification_history. There is no update path."""

    def __init__(self, session: AsyncSession):
        """Initialize the repository with a database session.

        Args:
            session: AsyncSession instance for database operations.
        """
        self.session = session

    async def create(
        self,
        invoice_id: str,
        notification_type: str,
        customer_email: str,
        order_id: Optional[str],
        status: str,
        error_message: Optional[str] = None,
    ) -> NotificationHistory:
        """Append a notification record.

        Args:
            invoice_id: Sevdesk invoice id.
            notification_type: Notification tag, e.g. "payment_received".
            customer_email: Customer email at processing time; may be empty.
            order_id: Resolved Shopify order id, if any.
            status: One of NotificationStatus values.
            error_message: Reason for a non-sent outcome.

        Returns:
            The inserted NotificationHistory row.
        """
        record = NotificationHistory(
            sevdesk_invoice_id=invoice_id,
            notification_type=notification_type,
            customer_email=customer_email or "",
            shopify_order_id=order_id,
            status=status,
            error_message=error_message,
        )
        self.session.add(record)
        await self.session.flush()

        logger.debug(f"Recorded {notification_type} for invoice {invoice_id}: {status}")
        return record

    async def get_sent(
        self,
        invoice_id: str,
        notification_type: str = NotificationType.PAYMENT_RECEIVED.value,
    ) -> Optional[NotificationHistory]:
        """Return the earliest `sent` record for the pair, if one exists."""
        result = await self.session.execute(
            select(NotificationHistory)
            .where(
                and_(
                    NotificationHistory.sevdesk_invoice_id == invoice_id,
                    NotificationHistory.notification_type == notification_type,
                    NotificationHistory.status == NotificationStatus.SENT.value,
                )
            )
            .order_by(NotificationHistory.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_by_invoice(self, invoice_id: str) -> List[NotificationHistory]:
        """All records for an invoice, oldest first."""
        result = await self.session.execute(
            select(NotificationHistory)
            .where(NotificationHistory.sevdesk_invoice_id == invoice_id)
            .order_by(NotificationHistory.id)
        )
        return list(result.scalars().all())

    async def list_recent(
        self,
        limit: int = 100,
        status: Optional[str] = None,
    ) -> List[NotificationHistory]:
        """Most recent records first, optionally filtered by status."""
        query = select(NotificationHistory)
        if status is not None:
            query = query.where(NotificationHistory.status == status)
        result = await self.session.execute(
            query.order_by(NotificationHistory.id.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_status(self) -> Dict[str, int]:
        result = await self.session.execute(
            select(NotificationHistory.status, func.count(NotificationHistory.id))
            .group_by(NotificationHistory.status)
        )
        return {status: count for status, count in result.all()}


class NotificationLog:
    """
    Workflow-facing view of the log. Each call runs in its own committed
    transaction, so a record is durable as soon as append() returns.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self._session_factory = session_factory

    async def find_sent_record(
        self,
        invoice_id: str,
        notification_type: str = NotificationType.PAYMENT_RECEIVED.value,
    ) -> Optional[NotificationHistory]:
        async with session_scope(self._session_factory) as session:
            return await NotificationRepository(session).get_sent(invoice_id, notification_type)

    async def append(
        self,
        invoice_id: str,
        notification_type: str,
        customer_email: str,
        order_id: Optional[str],
        status: str,
        error_message: Optional[str] = None,
    ) -> NotificationHistory:
        async with session_scope(self._session_factory) as session:
            return await NotificationRepository(session).create(
                invoice_id=invoice_id,
                notification_type=notification_type,
                customer_email=customer_email,
                order_id=order_id,
                status=status,
                error_message=error_message,
            )
