"""Sevdesk invoice source."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from ..config import load_settings
from .base import Invoice, InvoiceSource, InvoiceStatus, SevdeskError

logger = logging.getLogger(__name__)

# Sevdesk caps list responses at this page size
PAID_INVOICE_LIMIT = 100


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a Sevdesk timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Unparseable Sevdesk timestamp: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SevdeskClient(InvoiceSource):
    """
    Thin async wrapper over the Sevdesk REST API. Pass `transport` to swap the
    network layer (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        settings = load_settings()
        self.api_key = api_key if api_key is not None else settings.sevdesk_api_key
        self.base_url = (base_url or settings.sevdesk_base_url).rstrip("/")
        self._transport = transport
        self.timeout = timeout

    async def _request(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        headers = {
            "Content-Type": "application/json",
            "Authorization": self.api_key,
        }
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.get(url, headers=headers, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Failed to connect to Sevdesk API: {e}")
            raise SevdeskError(f"Sevdesk API connection error: {e}") from e

        if response.is_error:
            raise SevdeskError(f"Sevdesk API error: {response.status_code} {response.text}")
        return response.json()

    @staticmethod
    def _to_invoice(raw: Dict[str, Any]) -> Invoice:
        total = raw.get("sumGross", raw.get("total"))
        contact = raw.get("contact") or {}
        try:
            status = InvoiceStatus(str(raw.get("status", "")))
        except ValueError:
            raise SevdeskError(
                f"Unknown Sevdesk invoice status for invoice {raw.get('id')}: {raw.get('status')!r}"
            ) from None
        return Invoice(
            id=str(raw["id"]),
            invoice_number=raw.get("invoiceNumber"),
            status=status,
            total=float(total) if total is not None else None,
            currency=raw.get("currency"),
            header=raw.get("header"),
            updated_at=_parse_timestamp(raw.get("update")),
            contact_id=str(contact["id"]) if contact.get("id") is not None else None,
        )

    async def get_invoice(self, invoice_id: str) -> Invoice:
        data = await self._request(f"/Invoice/{invoice_id}")
        objects = data.get("objects") or []
        if not objects:
            raise SevdeskError(f"Invoice not found: {invoice_id}")
        return self._to_invoice(objects[0])

    async def list_paid_invoices(self, since: Optional[datetime] = None) -> List[Invoice]:
        """Fetch paid invoices, keeping those updated at or after `since`.

        The status filter runs server-side; the time filter runs here on the
        `update` field, since Sevdesk's date filters apply to the invoice date
        rather than the moment it was paid. Invoices without an update
        timestamp are kept.
        """
        data = await self._request(
            "/Invoice",
            params={"status": InvoiceStatus.PAID.value, "limit": PAID_INVOICE_LIMIT},
        )
        invoices = [self._to_invoice(raw) for raw in data.get("objects") or []]

        if since is not None:
            threshold = _as_utc(since)
            invoices = [
                invoice for invoice in invoices
                if invoice.updated_at is None or invoice.updated_at >= threshold
            ]

        logger.info(
            f"Found {len(invoices)} paid invoices updated since "
            f"{since.isoformat() if since else 'ever'}"
        )
        return invoices
