"""Shared test fixtures and configuration."""

import os
import pytest
from unittest.mock import AsyncMock, MagicMock
from typing import Any, Dict

# Set up test environment variables before importing modules
os.environ.setdefault("API_KEY", "test_api_key_12345")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SEVDESK_API_KEY", "test-sevdesk-key")
os.environ.setdefault("SEVDESK_BASE_URL", "https://my.sevdesk.de/api/v1")
os.environ.setdefault("SHOPIFY_SHOP", "https://test-shop.myshopify.com")
os.environ.setdefault("SHOPIFY_CLIENT_ID", "test-client-id")
os.environ.setdefault("SHOPIFY_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("ENABLE_POLLING", "false")
os.environ.pop("DRY_RUN", None)

from payment_sync.clients import Invoice, Order, OrderDirectory
from payment_sync.database import (
    Base,
    NotificationLog,
    create_async_engine,
    get_async_session_factory,
)
from payment_sync.sync import EmailNotifier, NotificationResult


def make_invoice(**overrides) -> Invoice:
    data: Dict[str, Any] = {
        "id": "INV-2026-001",
        "invoice_number": "2026-00001",
        "status": "1000",
        "total": 99.99,
        "currency": "EUR",
        "header": "Rechnung zum Auftrag #1001",
        "updated_at": "2026-02-20T10:00:00+00:00",
        "contact_id": "CONTACT-001",
    }
    data.update(overrides)
    return Invoice(**data)


def make_order(**overrides) -> Order:
    data: Dict[str, Any] = {
        "id": "gid://shopify/Order/1001",
        "name": "#1001",
        "email": "customer1@example.com",
        "financial_status": "PENDING",
        "total_amount": "99.99",
        "currency": "EUR",
    }
    data.update(overrides)
    return Order(**data)


def shopify_order_node(**overrides) -> Dict[str, Any]:
    """Order as returned by the Shopify Admin GraphQL API."""
    node = {
        "id": "gid://shopify/Order/1001",
        "name": "#1001",
        "email": "customer1@example.com",
        "displayFinancialStatus": "PENDING",
        "totalPriceSet": {"shopMoney": {"amount": "99.99", "currencyCode": "EUR"}},
        "createdAt": "2026-02-15T10:00:00Z",
        "updatedAt": "2026-02-15T10:00:00Z",
    }
    node.update(overrides)
    return node


def sevdesk_invoice_object(**overrides) -> Dict[str, Any]:
    """Invoice as returned by the Sevdesk REST API."""
    obj = {
        "id": "INV-2026-001",
        "objectName": "Invoice",
        "invoiceNumber": "2026-00001",
        "status": "1000",
        "sumGross": "99.99",
        "currency": "EUR",
        "header": "Rechnung zum Auftrag #1001",
        "update": "2026-02-20T10:00:00+01:00",
        "contact": {"id": "CONTACT-001", "objectName": "Contact"},
    }
    obj.update(overrides)
    return obj


@pytest.fixture
def paid_invoice() -> Invoice:
    return make_invoice()


@pytest.fixture
def pending_order() -> Order:
    return make_order()


@pytest.fixture
def mock_orders() -> AsyncMock:
    """Order directory mock; every method is an AsyncMock."""
    orders = AsyncMock(spec=OrderDirectory)
    orders.find_order_by_reference.return_value = None
    return orders


@pytest.fixture
def mock_notifier() -> MagicMock:
    notifier = MagicMock(spec=EmailNotifier)
    notifier.send_payment_confirmation = AsyncMock(
        return_value=NotificationResult(success=True, message="ok")
    )
    return notifier


# Database fixtures
@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing."""
    engine = create_async_engine(
        database_url="sqlite+aiosqlite:///:memory:",
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return get_async_session_factory(db_engine)


@pytest.fixture
async def db_session(session_factory):
    """Create a database session for testing."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def notification_log(session_factory) -> NotificationLog:
    return NotificationLog(session_factory)
