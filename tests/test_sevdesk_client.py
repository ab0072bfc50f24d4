"""Tests for the Sevdesk client against a mocked transport."""

import json
import httpx
import pytest
from datetime import datetime, timezone

from pydantic import ValidationError

from payment_sync.clients import Invoice, InvoiceStatus, SevdeskClient, SevdeskError

from conftest import sevdesk_invoice_object


def make_client(handler) -> SevdeskClient:
    return SevdeskClient(
        api_key="sevdesk-token",
        base_url="https://my.sevdesk.de/api/v1/",
        transport=httpx.MockTransport(handler),
    )


def objects_response(*objects) -> httpx.Response:
    return httpx.Response(200, json={"objects": list(objects)})


class TestRequest:

    async def test_sends_api_key_as_authorization(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["url"] = str(request.url)
            return objects_response(sevdesk_invoice_object())

        await make_client(handler).get_invoice("INV-2026-001")

        assert seen["auth"] == "sevdesk-token"
        assert seen["url"] == "https://my.sevdesk.de/api/v1/Invoice/INV-2026-001"

    async def test_http_error_status(self):
        def handler(request):
            return httpx.Response(500, text="Internal Server Error")

        with pytest.raises(SevdeskError, match="Sevdesk API error: 500 Internal Server Error"):
            await make_client(handler).list_paid_invoices()

    async def test_connection_error_is_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        with pytest.raises(SevdeskError, match="connection"):
            await make_client(handler).list_paid_invoices()


class TestGetInvoice:

    async def test_maps_fields(self):
        def handler(request):
            return objects_response(sevdesk_invoice_object())

        invoice = await make_client(handler).get_invoice("INV-2026-001")

        assert invoice.id == "INV-2026-001"
        assert invoice.invoice_number == "2026-00001"
        assert invoice.is_paid
        assert invoice.total == 99.99
        assert invoice.header == "Rechnung zum Auftrag #1001"
        assert invoice.contact_id == "CONTACT-001"
        assert invoice.updated_at == datetime(2026, 2, 20, 9, 0, tzinfo=timezone.utc)

    async def test_numeric_id_becomes_string(self):
        def handler(request):
            return objects_response(sevdesk_invoice_object(id=12345, contact=None))

        invoice = await make_client(handler).get_invoice("12345")

        assert invoice.id == "12345"
        assert invoice.contact_id is None

    async def test_not_found(self):
        def handler(request):
            return objects_response()

        with pytest.raises(SevdeskError, match="Invoice not found: 999"):
            await make_client(handler).get_invoice("999")

    async def test_unknown_status_is_rejected(self):
        def handler(request):
            return objects_response(sevdesk_invoice_object(status="750"))

        with pytest.raises(SevdeskError, match="Unknown Sevdesk invoice status"):
            await make_client(handler).get_invoice("INV-2026-001")

    async def test_status_is_enum(self):
        def handler(request):
            return objects_response(sevdesk_invoice_object(status=200))

        invoice = await make_client(handler).get_invoice("INV-2026-001")

        assert invoice.status is InvoiceStatus.SENT
        assert not invoice.is_paid


class TestInvoiceModel:

    def test_status_outside_enum_fails_validation(self):
        with pytest.raises(ValidationError):
            Invoice(id="1", status="999")

    def test_status_string_is_coerced(self):
        assert Invoice(id="1", status="1000").status is InvoiceStatus.PAID


class TestListPaidInvoices:

    async def test_requests_paid_status(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return objects_response()

        await make_client(handler).list_paid_invoices()

        assert seen["path"] == "/api/v1/Invoice"
        assert seen["params"] == {"status": "1000", "limit": "100"}

    async def test_filters_by_update_time(self):
        def handler(request):
            return objects_response(
                sevdesk_invoice_object(id="old", update="2026-02-19T23:00:00+00:00"),
                sevdesk_invoice_object(id="edge", update="2026-02-20T00:00:00+00:00"),
                sevdesk_invoice_object(id="new", update="2026-02-20T08:30:00+01:00"),
                sevdesk_invoice_object(id="unknown", update=None),
            )

        since = datetime(2026, 2, 20, 0, 0, tzinfo=timezone.utc)
        invoices = await make_client(handler).list_paid_invoices(since)

        assert [i.id for i in invoices] == ["edge", "new", "unknown"]

    async def test_naive_since_is_utc(self):
        def handler(request):
            return objects_response(
                sevdesk_invoice_object(id="before", update="2026-02-20T11:59:59+00:00"),
                sevdesk_invoice_object(id="after", update="2026-02-20T12:00:01+00:00"),
            )

        invoices = await make_client(handler).list_paid_invoices(datetime(2026, 2, 20, 12, 0))

        assert [i.id for i in invoices] == ["after"]

    async def test_without_since_returns_everything(self):
        def handler(request):
            return objects_response(
                sevdesk_invoice_object(id="1", update="2020-01-01T00:00:00+00:00"),
                sevdesk_invoice_object(id="2"),
            )

        invoices = await make_client(handler).list_paid_invoices()

        assert len(invoices) == 2

    async def test_empty_objects(self):
        def handler(request):
            return httpx.Response(200, content=json.dumps({"objects": None}))

        assert await make_client(handler).list_paid_invoices() == []
