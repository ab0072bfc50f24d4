"""Tests for notification history export."""

import csv
import io
import json
import pytest
from datetime import datetime, timezone

from payment_sync.database import NotificationHistory
from payment_sync.sync.report import CSV_COLUMNS, HistoryReport


def history(id, invoice_id, status, **kwargs):
    return NotificationHistory(
        id=id,
        sevdesk_invoice_id=invoice_id,
        notification_type="payment_received",
        customer_email=kwargs.get("customer_email", ""),
        shopify_order_id=kwargs.get("shopify_order_id"),
        status=status,
        error_message=kwargs.get("error_message"),
        created_at=datetime(2026, 2, 20, 12, id, tzinfo=timezone.utc),
    )


@pytest.fixture
def records():
    return [
        history(1, "INV-1", "sent", customer_email="a@example.com", shopify_order_id="gid://shopify/Order/1"),
        history(2, "INV-2", "failed", error_message="No matching Shopify order found for order number 1002"),
        history(3, "INV-3", "skipped", error_message="No Shopify order number in invoice header"),
    ]


class TestHistoryReport:

    def test_status_counts_include_every_status(self, records):
        assert HistoryReport(records).status_counts() == {
            "sent": 1,
            "failed": 1,
            "skipped": 1,
            "dry-run": 0,
        }

    def test_json(self, records):
        data = json.loads(HistoryReport(records).render("json"))

        assert data["total"] == 3
        assert data["records"][0]["created_at"] == "2026-02-20T12:01:00+00:00"

    def test_csv(self, records):
        rows = list(csv.reader(io.StringIO(HistoryReport(records).render("csv"))))

        assert rows[0] == CSV_COLUMNS
        assert len(rows) == 4
        assert rows[2][CSV_COLUMNS.index("shopify_order_id")] == ""
        assert rows[1][CSV_COLUMNS.index("shopify_order_id")] == "gid://shopify/Order/1"

    def test_text(self, records):
        text = HistoryReport(records).render("text")

        assert "Total Records: 3" in text
        assert "[sent] invoice INV-1 -> order gid://shopify/Order/1 <a@example.com>" in text
        assert "    No matching Shopify order found for order number 1002" in text

    def test_empty(self):
        assert json.loads(HistoryReport([]).to_json())["total"] == 0

    def test_unsupported_format(self, records):
        with pytest.raises(ValueError, match="Unsupported report format: xml"):
            HistoryReport(records).render("xml")
