"""
Storefront API Client

HTTP client for the Shopify Storefront GraphQL API.
"""

import json
import logging
from typing import Optional, Any

import httpx

from ..core.config import settings as default_settings, Settings

logger = logging.getLogger(__name__)


class StorefrontClientError(Exception):
    """Base exception for Storefront client errors"""
    pass


class StorefrontAPIError(StorefrontClientError):
    """GraphQL errors returned in the response body"""

    def __init__(self, errors: list[dict]):
        self.errors = errors
        messages = "; ".join(str(e.get("message", e)) for e in errors)
        super().__init__(f"Storefront API errors: {messages}")


class StorefrontClient:
    """
    Client for the Shopify Storefront API.

    Usage:
        client = StorefrontClient.from_settings()
        data = await client.request(GET_CART, {"cartId": cart_id})
        await client.close()
    """

    def __init__(
        self,
        store_domain: str,
        access_token: str,
        api_version: str = "2025-01",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Storefront client.

        Args:
            store_domain: Shop domain, e.g. "my-shop.myshopify.com"
            access_token: Public storefront access token
            api_version: Storefront API version
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        domain = store_domain.replace("https://", "").replace("http://", "").rstrip("/")
        self.endpoint = f"https://{domain}/api/{api_version}/graphql.json"
        self._access_token = access_token
        self._http_client = httpx.AsyncClient(timeout=timeout, transport=transport)
        logger.info(f"Storefront client initialized for {domain} ({api_version})")

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        tenant: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "StorefrontClient":
        """Create client from application settings"""
        settings = settings or default_settings
        config = settings.get_shopify_config(tenant)
        if config is None:
            raise ValueError(f"Shopify is not configured for tenant {tenant or settings.default_tenant!r}")

        return cls(
            store_domain=config.store_domain,
            access_token=config.storefront_access_token,
            api_version=config.api_version,
            timeout=settings.http_timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    def _generate_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-Shopify-Storefront-Access-Token": self._access_token,
        }

    async def request(
        self,
        query: str,
        variables: Optional[dict] = None,
    ) -> dict[str, Any]:
        """
        Execute a GraphQL document and return its ``data`` object.

        Raises:
            httpx.HTTPError: transport failure or non-2xx status
            StorefrontAPIError: top-level GraphQL errors
            StorefrontClientError: body is not a GraphQL response object
        """
        body_str = json.dumps({"query": query, "variables": variables or {}})

        response = await self._http_client.post(
            self.endpoint,
            headers=self._generate_headers(),
            content=body_str,
        )

        if response.status_code >= 400:
            logger.error(f"Request failed: {response.status_code} - {response.text}")
            response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, dict):
            raise StorefrontClientError(f"Unexpected response body: {type(payload).__name__}")
        if payload.get("errors"):
            raise StorefrontAPIError(payload["errors"])

        data = payload.get("data") or {}
        if not isinstance(data, dict):
            raise StorefrontClientError(f"Unexpected data object: {type(data).__name__}")
        return data
