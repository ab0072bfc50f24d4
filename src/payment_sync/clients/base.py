import enum
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel


class ClientError(Exception):
    """Transport or API failure from one of the external platforms."""


class SevdeskError(ClientError):
    pass


class ShopifyError(ClientError):
    pass


class InvoiceStatus(str, enum.Enum):
    """Sevdesk invoice status codes."""
    DRAFT = "100"
    SENT = "200"
    PARTIAL = "300"
    CANCELLED = "400"
    OVERDUE = "500"
    PAID = "1000"


# Canonical models
class Invoice(BaseModel):
    id: str
    invoice_number: Optional[str] = None
    status: InvoiceStatus
    total: Optional[float] = None
    currency: Optional[str] = None
    header: Optional[str] = None
    updated_at: Optional[datetime] = None
    contact_id: Optional[str] = None

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID


class Order(BaseModel):
    id: str  # opaque platform id, e.g. gid://shopify/Order/123
    name: str
    email: Optional[str] = None
    financial_status: str = "PENDING"  # PENDING|PAID|... as displayed by the platform
    total_amount: Optional[str] = None
    currency: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_paid(self) -> bool:
        return self.financial_status.upper() == "PAID"


class InvoiceSource(ABC):
    """
    Read side of the accounting platform. Implementations raise ClientError
    on non-success responses.
    """

    @abstractmethod
    async def list_paid_invoices(self, since: Optional[datetime] = None) -> List[Invoice]:
        """
        Paid invoices whose last update is at or after `since` (all when None).
        """
        raise NotImplementedError

    @abstractmethod
    async def get_invoice(self, invoice_id: str) -> Invoice:
        raise NotImplementedError


class OrderDirectory(ABC):
    """
    Lookup and payment mutation on the commerce platform.
    """

    @abstractmethod
    async def find_order_by_reference(self, reference: str) -> Optional[Order]:
        """
        Return the order whose number matches `reference`, or None.
        """
        raise NotImplementedError

    @abstractmethod
    async def mark_order_paid(self, order_id: str) -> Order:
        """
        Transition the order to paid. Raises ClientError when the platform
        rejects the mutation or returns no order.
        """
        raise NotImplementedError
