"""Paid-invoice reconciliation between Sevdesk and Shopify.

- Extract the Shopify order number from a Sevdesk invoice header
- Mark the matching Shopify order as paid, exactly once per invoice
- Record every attempt in the append-only notification log
- Poll Sevdesk on an interval with a moving watermark
"""

from .reference import extract_order_reference, is_cancellation
from .notifier import EmailNotifier, NotificationResult
from .processor import PaymentProcessor
from .poller import Poller, PollerState, CycleSummary, DEFAULT_LOOKBACK
from .report import HistoryReport

__all__ = [
    # Matching
    "extract_order_reference",
    "is_cancellation",
    # Notifications
    "EmailNotifier",
    "NotificationResult",
    # Core components
    "PaymentProcessor",
    "Poller",
    "PollerState",
    "CycleSummary",
    "DEFAULT_LOOKBACK",
    "HistoryReport",
]
