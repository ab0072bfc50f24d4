"""SQLAlchemy models for the notification log."""

from datetime import datetime, timezone
from typing import Optional, Dict, Any

from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Text,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
import enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class NotificationStatus(str, enum.Enum):
    """Outcome of one workflow invocation on an invoice."""
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"
    DRY_RUN = "dry-run"


class NotificationType(str, enum.Enum):
    PAYMENT_RECEIVED = "payment_received"


class NotificationHistory(Base):
    """Append-only record of attempted payment notifications.

    Rows are inserted once and never updated. A `sent` row for an
    (invoice, type) pair marks that invoice as fully processed.
    """
    __tablename__ = "notification_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sevdesk_invoice_id: Mapped[str] = mapped_column(String(255), nullable=False)
    notification_type: Mapped[str] = mapped_column(String(50), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    shopify_order_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_notification_history_invoice_type", "sevdesk_invoice_id", "notification_type"),
        Index("ix_notification_history_status", "status"),
        Index("ix_notification_history_created_at", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "sevdesk_invoice_id": self.sevdesk_invoice_id,
            "notification_type": self.notification_type,
            "customer_email": self.customer_email,
            "shopify_order_id": self.shopify_order_id,
            "status": self.status,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
