"""Adapters for the accounting (Sevdesk) and commerce (Shopify) platforms."""

from .base import (
    ClientError,
    SevdeskError,
    ShopifyError,
    Invoice,
    InvoiceStatus,
    Order,
    InvoiceSource,
    OrderDirectory,
)
from .sevdesk import SevdeskClient
from .shopify import ShopifyClient, normalize_order_name

__all__ = [
    # Errors
    "ClientError",
    "SevdeskError",
    "ShopifyError",
    # Canonical models
    "Invoice",
    "InvoiceStatus",
    "Order",
    # Interfaces
    "InvoiceSource",
    "OrderDirectory",
    # Clients
    "SevdeskClient",
    "ShopifyClient",
    "normalize_order_name",
]
