"""Shopify order directory backed by the Admin GraphQL API."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx

from ..config import load_settings
from .base import Order, OrderDirectory, ShopifyError

logger = logging.getLogger(__name__)

# Refresh the client-credentials token this long before Shopify expires it
TOKEN_EXPIRY_BUFFER_SECONDS = 300

ORDER_FIELDS = """
    id
    name
    email
    displayFinancialStatus
    totalPriceSet {
      shopMoney {
        amount
        currencyCode
      }
    }
    createdAt
    updatedAt
"""

SEARCH_ORDERS_QUERY = """
query SearchOrders($first: Int!, $query: String) {
  orders(first: $first, query: $query, sortKey: CREATED_AT, reverse: true) {
    edges {
      node {%s}
    }
  }
}
""" % ORDER_FIELDS

MARK_AS_PAID_MUTATION = """
mutation MarkOrderAsPaid($input: OrderMarkAsPaidInput!) {
  orderMarkAsPaid(input: $input) {
    order {%s}
    userErrors {
      field
      message
    }
  }
}
""" % ORDER_FIELDS


def normalize_order_name(name: str) -> str:
    """'#pe4994' -> 'PE4994'."""
    return name.strip().lstrip("#").upper()


class ShopifyClient(OrderDirectory):
    """
    Async Shopify Admin client. Uses a configured access token when present,
    otherwise obtains one with the client-credentials grant and caches it.
    """

    def __init__(
        self,
        shop: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        access_token: Optional[str] = None,
        api_version: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        settings = load_settings()
        self.shop = (shop if shop is not None else settings.shopify_shop).rstrip("/")
        self.client_id = client_id if client_id is not None else settings.shopify_client_id
        self.client_secret = client_secret if client_secret is not None else settings.shopify_client_secret
        self.api_version = api_version or settings.shopify_api_version
        self._static_token = access_token if access_token is not None else settings.shopify_access_token
        self._transport = transport
        self.timeout = timeout

        self._access_token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)

    async def get_access_token(self) -> str:
        if self._static_token:
            return self._static_token

        now = datetime.now(timezone.utc)
        if self._access_token and self._token_expires_at and now < self._token_expires_at:
            return self._access_token

        url = f"{self.shop}/admin/oauth/access_token"
        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "client_credentials",
        }
        try:
            async with self._client() as client:
                response = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise ShopifyError(f"Failed to get Shopify access token: {e}") from e

        if response.is_error:
            raise ShopifyError(
                f"Failed to get Shopify access token: {response.status_code} {response.text}"
            )

        data = response.json()
        expires_in = int(data.get("expires_in", 0))
        self._access_token = data["access_token"]
        self._token_expires_at = now + timedelta(seconds=expires_in - TOKEN_EXPIRY_BUFFER_SECONDS)
        logger.info(f"Shopify token acquired, expires in {expires_in} seconds")
        return self._access_token

    async def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        token = await self.get_access_token()
        url = f"{self.shop}/admin/api/{self.api_version}/graphql.json"
        headers = {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": token,
        }
        try:
            async with self._client() as client:
                response = await client.post(
                    url, headers=headers, json={"query": query, "variables": variables or {}}
                )
        except httpx.HTTPError as e:
            logger.error(f"Failed to connect to Shopify API: {e}")
            raise ShopifyError(f"Shopify GraphQL request failed: {e}") from e

        if response.is_error:
            raise ShopifyError(
                f"Shopify GraphQL request failed: {response.status_code} {response.text}"
            )

        result = response.json()
        errors = result.get("errors") or []
        if errors:
            messages = ", ".join(str(e.get("message", e)) for e in errors)
            raise ShopifyError(f"Shopify GraphQL errors: {messages}")
        return result.get("data") or {}

    @staticmethod
    def _to_order(node: Dict[str, Any]) -> Order:
        money = (node.get("totalPriceSet") or {}).get("shopMoney") or {}
        return Order(
            id=node["id"],
            name=node.get("name") or "",
            email=node.get("email"),
            financial_status=node.get("displayFinancialStatus") or "PENDING",
            total_amount=money.get("amount"),
            currency=money.get("currencyCode"),
            created_at=node.get("createdAt"),
            updated_at=node.get("updatedAt"),
        )

    async def _search_orders(self, search: Optional[str], first: int) -> List[Order]:
        data = await self.graphql(SEARCH_ORDERS_QUERY, {"first": first, "query": search})
        edges = ((data.get("orders") or {}).get("edges")) or []
        return [self._to_order(edge["node"]) for edge in edges]

    async def list_orders(self, limit: int = 50) -> List[Order]:
        return await self._search_orders(None, limit)

    async def find_order_by_reference(self, reference: str) -> Optional[Order]:
        """Find the order whose name equals the reference, ignoring '#' and case.

        Shopify's name search is a prefix match, so #100 also returns #1001;
        only an exact name is accepted.
        """
        wanted = normalize_order_name(reference or "")
        if not wanted:
            return None

        orders = await self._search_orders(f"name:#{wanted}", 10)
        for order in orders:
            if normalize_order_name(order.name) == wanted:
                return order

        logger.info(f"No Shopify order named #{wanted}")
        return None

    async def find_order_by_email(self, email: str) -> Optional[Order]:
        """Most recent order placed with `email`. Not used by the paid-invoice workflow."""
        if not email:
            return None
        orders = await self._search_orders(f"email:{email}", 1)
        return orders[0] if orders else None

    async def mark_order_paid(self, order_id: str) -> Order:
        data = await self.graphql(MARK_AS_PAID_MUTATION, {"input": {"id": order_id}})
        payload = data.get("orderMarkAsPaid") or {}
        user_errors = payload.get("userErrors") or []
        if user_errors:
            messages = ", ".join(e.get("message", "") for e in user_errors)
            raise ShopifyError(f"Failed to mark order as paid: {messages}")
        if not payload.get("order"):
            raise ShopifyError(f"Failed to mark order as paid: no order returned for {order_id}")

        order = self._to_order(payload["order"])
        logger.info(f"Marked Shopify order {order.name} ({order.id}) as {order.financial_status}")
        return order
