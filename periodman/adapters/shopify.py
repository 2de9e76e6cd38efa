"""
Shopify Metafield Backend.

Implements MetafieldBackend using the Shopify Admin GraphQL API.

Vocabulary mapping:
    Periodman               →  Shopify Admin API
    ─────────────────────────────────────────────────
    write_metafield()       →  metafieldsSet (type "json")
    delete_metafield()      →  metafieldsDelete
    read_metafield()        →  product { metafield(namespace, key) }
    get_shop_timezone()     →  shop { ianaTimezone }

Settings:
    PERIODMAN = {
        "SHOPIFY_SHOP_DOMAIN": "padaria.myshopify.com",
        "SHOPIFY_ACCESS_TOKEN": "shpat_...",
        "SHOPIFY_API_VERSION": "2024-10",
    }
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from periodman.conf import periodman_settings
from periodman.protocols.catalog import (
    MetafieldDeleteResult,
    MetafieldReadResult,
    MetafieldWriteResult,
)

logger = logging.getLogger(__name__)


METAFIELDS_SET = """
mutation MetafieldsSet($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    metafields { namespace key value }
    userErrors { field message }
  }
}
"""

METAFIELDS_DELETE = """
mutation MetafieldsDelete($metafields: [MetafieldIdentifierInput!]!) {
  metafieldsDelete(metafields: $metafields) {
    deletedMetafields { key namespace ownerId }
    userErrors { field message }
  }
}
"""

METAFIELD_QUERY = """
query ProductMetafield($id: ID!, $namespace: String!, $key: String!) {
  product(id: $id) {
    metafield(namespace: $namespace, key: $key) { value }
  }
}
"""

SHOP_TIMEZONE_QUERY = """
query { shop { ianaTimezone } }
"""


class ShopifyGraphQLError(Exception):
    """Transport or top-level GraphQL error."""


class ShopifyMetafieldBackend:
    """
    MetafieldBackend over the Shopify Admin GraphQL API.

    Example:
        backend = ShopifyMetafieldBackend(
            shop_domain="padaria.myshopify.com",
            access_token="shpat_...",
        )
        backend.write_metafield(product_gid, "sales_period", "sales_period", value)
    """

    def __init__(
        self,
        shop_domain: str | None = None,
        access_token: str | None = None,
        api_version: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        """
        Args:
            shop_domain: "<shop>.myshopify.com" (default: settings)
            access_token: Admin API token (default: settings)
            api_version: Admin API version (default: settings)
            timeout: HTTP timeout in seconds (default: settings)
            client: Preconfigured httpx.Client (tests inject a MockTransport)
        """
        self.shop_domain = shop_domain or periodman_settings.SHOPIFY_SHOP_DOMAIN
        self.access_token = access_token or periodman_settings.SHOPIFY_ACCESS_TOKEN
        self.api_version = api_version or periodman_settings.SHOPIFY_API_VERSION
        self.timeout = timeout if timeout is not None else periodman_settings.SHOPIFY_TIMEOUT
        self._client = client
        self._shop_timezone: str | None = None

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/graphql.json"

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self.access_token,
        }

    def _execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        POST a GraphQL document and return its "data".

        Raises:
            ShopifyGraphQLError: Unreachable, non-2xx, invalid JSON or top-level errors
        """
        payload = {"query": query, "variables": variables or {}}
        try:
            if self._client is not None:
                response = self._client.post(self.endpoint, json=payload, headers=self._headers())
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.endpoint, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise ShopifyGraphQLError(f"Shopify unreachable: {e}") from e

        if not response.is_success:
            raise ShopifyGraphQLError(f"Shopify API error: {response.status_code}")
        try:
            body = response.json()
        except ValueError as e:
            raise ShopifyGraphQLError("Shopify returned invalid JSON") from e

        if body.get("errors"):
            messages = ", ".join(str(err.get("message", err)) for err in body["errors"])
            raise ShopifyGraphQLError(messages)
        return body.get("data") or {}

    @staticmethod
    def _user_errors(payload: dict[str, Any] | None) -> str | None:
        errors = (payload or {}).get("userErrors") or []
        if not errors:
            return None
        return ", ".join(err.get("message", "") for err in errors)

    def write_metafield(self, owner_id, namespace, key, value) -> MetafieldWriteResult:
        variables = {
            "metafields": [{
                "ownerId": owner_id,
                "namespace": namespace,
                "key": key,
                "type": "json",
                "value": value,
            }]
        }
        try:
            data = self._execute(METAFIELDS_SET, variables)
        except ShopifyGraphQLError as e:
            logger.warning("Failed to save metafield for %s: %s", owner_id, e)
            return MetafieldWriteResult(success=False, message=str(e), error_code="unreachable")

        payload = data.get("metafieldsSet")
        user_errors = self._user_errors(payload)
        if user_errors:
            return MetafieldWriteResult(success=False, message=user_errors, error_code="rejected")

        metafields = (payload or {}).get("metafields") or []
        stored = metafields[0].get("value") if metafields else None
        return MetafieldWriteResult(success=True, value=stored)

    def delete_metafield(self, owner_id, namespace, key) -> MetafieldDeleteResult:
        variables = {
            "metafields": [{"ownerId": owner_id, "namespace": namespace, "key": key}]
        }
        try:
            data = self._execute(METAFIELDS_DELETE, variables)
        except ShopifyGraphQLError as e:
            logger.warning("Failed to delete metafield for %s: %s", owner_id, e)
            return MetafieldDeleteResult(success=False, message=str(e), error_code="unreachable")

        payload = data.get("metafieldsDelete")
        if payload is None:
            return MetafieldDeleteResult(
                success=False, message="Shopify response missing metafieldsDelete",
                error_code="unconfirmed",
            )
        user_errors = self._user_errors(payload)
        if user_errors:
            return MetafieldDeleteResult(success=False, message=user_errors, error_code="rejected")

        deleted = [entry for entry in payload.get("deletedMetafields") or [] if entry]
        return MetafieldDeleteResult(success=True, deleted=bool(deleted))

    def read_metafield(self, owner_id, namespace, key) -> MetafieldReadResult:
        try:
            data = self._execute(
                METAFIELD_QUERY, {"id": owner_id, "namespace": namespace, "key": key},
            )
        except ShopifyGraphQLError as e:
            return MetafieldReadResult(success=False, message=str(e))

        product = data.get("product")
        if product is None:
            return MetafieldReadResult(success=False, message=f"Product not found: {owner_id}")
        metafield = product.get("metafield") or {}
        return MetafieldReadResult(success=True, value=metafield.get("value"))

    def get_shop_timezone(self) -> str | None:
        """Shop zone, looked up once per backend instance."""
        if self._shop_timezone is None:
            try:
                data = self._execute(SHOP_TIMEZONE_QUERY)
            except ShopifyGraphQLError as e:
                logger.warning("Failed to get shop timezone: %s", e)
                return None
            self._shop_timezone = (data.get("shop") or {}).get("ianaTimezone")
        return self._shop_timezone
