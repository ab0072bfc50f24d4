"""Tests for order-reference extraction."""

import pytest

from payment_sync.sync.reference import extract_order_reference, is_cancellation


class TestExtractOrderReference:

    @pytest.mark.parametrize("header,expected", [
        ("Rechnung zum Auftrag #1001", "1001"),
        ("Rechnung zum Auftrag #PE4994", "PE4994"),
        ("Rechnung zum Auftrag #pe4994", "PE4994"),
        ("#A1b2C3", "A1B2C3"),
        ("Order #1001, shipped", "1001"),
        ("Order #1001-2", "1001"),
    ])
    def test_extracts_token_after_hash(self, header, expected):
        assert extract_order_reference(header) == expected

    def test_first_reference_wins(self):
        assert extract_order_reference("Auftrag #1001 ersetzt #1000") == "1001"

    @pytest.mark.parametrize("header", [
        None,
        "",
        "Rechnung ohne Auftragsnummer",
        "Rechnung # 1001",
        "Auftrag #",
    ])
    def test_no_reference(self, header):
        assert extract_order_reference(header) is None

    @pytest.mark.parametrize("header", [
        "Stornorechnung zu Auftrag #1001",
        "STORNO #1001",
        "Cancellation of order #1001",
        "Invoice cancellation #PE4994",
    ])
    def test_cancellation_headers_have_no_reference(self, header):
        assert extract_order_reference(header) is None


class TestIsCancellation:

    @pytest.mark.parametrize("header,expected", [
        ("Stornorechnung", True),
        ("storno", True),
        ("Cancellation", True),
        ("Rechnung zum Auftrag #1001", False),
        ("", False),
        (None, False),
    ])
    def test_markers_are_case_insensitive(self, header, expected):
        assert is_cancellation(header) is expected
