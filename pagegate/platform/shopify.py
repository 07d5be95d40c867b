"""Shopify Admin GraphQL adapter implementing ContentPlatform.

One instance per tenant (shop domain + access token). The ``httpx.AsyncClient``
is owned by the application lifespan and shared; this class never closes it.

Error mapping:
  transport failure / non-2xx      → PlatformError
  top-level GraphQL ``errors``     → PlatformError (first message)
  mutation ``userErrors``          → returned in ScriptTagCreateResult.user_errors
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import httpx

from pagegate.constants import (
    HTTP_POOL_KEEPALIVE_EXPIRY,
    HTTP_POOL_MAX_CONNECTIONS,
    PLATFORM_TIMEOUT_S,
)
from pagegate.platform.protocol import (
    PlatformError,
    PlatformPage,
    ScriptTag,
    ScriptTagCreateResult,
)
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)

# ─── GraphQL documents ────────────────────────────────────────────────────────

_PAGES_QUERY = """
query getPages($first: Int!) {
  pages(first: $first) {
    edges { node { id title handle createdAt updatedAt } }
  }
}
"""

_PAGE_QUERY = """
query getPage($id: ID!) {
  page(id: $id) { id title handle }
}
"""

_SCRIPT_TAGS_QUERY = """
query getScriptTags($first: Int!) {
  scriptTags(first: $first) {
    edges { node { id src } }
  }
}
"""

_SCRIPT_TAG_CREATE = """
mutation scriptTagCreate($scriptTag: ScriptTagInput!) {
  scriptTagCreate(scriptTag: $scriptTag) {
    scriptTag { id src }
    userErrors { field message }
  }
}
"""


def _page_from_node(node: dict[str, Any]) -> PlatformPage:
    return PlatformPage(
        resource_ref=node["id"],
        title=node.get("title") or "",
        handle=node["handle"],
        created_at=node.get("createdAt"),
        updated_at=node.get("updatedAt"),
    )


class ShopifyAdminClient:
    """ContentPlatform over the Shopify Admin GraphQL API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        shop: str,
        access_token: str,
        api_version: str,
    ) -> None:
        self._http = http
        self.shop = shop
        self._access_token = access_token
        self._endpoint = f"https://{shop}/admin/api/{api_version}/graphql.json"

    async def _graphql(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        try:
            response = await self._http.post(
                self._endpoint,
                json={"query": query, "variables": variables or {}},
                headers={"X-Shopify-Access-Token": self._access_token},
                timeout=PLATFORM_TIMEOUT_S,
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "platform request failed",
                shop=self.shop,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise PlatformError(f"Content platform request failed: {type(exc).__name__}") from exc

        errors = payload.get("errors")
        if errors:
            first = errors[0].get("message") if isinstance(errors[0], dict) else str(errors[0])
            logger.warning("platform GraphQL error", shop=self.shop, message=first)
            raise PlatformError(f"Content platform error: {first}")
        return payload.get("data") or {}

    async def list_pages(self, limit: int) -> list[PlatformPage]:
        data = await self._graphql(_PAGES_QUERY, {"first": limit})
        edges = (data.get("pages") or {}).get("edges") or []
        return [_page_from_node(edge["node"]) for edge in edges]

    async def get_page(self, resource_ref: str) -> Optional[PlatformPage]:
        data = await self._graphql(_PAGE_QUERY, {"id": resource_ref})
        node = data.get("page")
        return _page_from_node(node) if node else None

    async def list_script_tags(self, limit: int) -> list[ScriptTag]:
        data = await self._graphql(_SCRIPT_TAGS_QUERY, {"first": limit})
        edges = (data.get("scriptTags") or {}).get("edges") or []
        return [ScriptTag(id=e["node"]["id"], src=e["node"].get("src") or "") for e in edges]

    async def create_script_tag(self, src: str) -> ScriptTagCreateResult:
        data = await self._graphql(_SCRIPT_TAG_CREATE, {"scriptTag": {"src": src}})
        result = data.get("scriptTagCreate") or {}
        user_errors = [e.get("message", "") for e in result.get("userErrors") or []]
        node = result.get("scriptTag")
        tag = ScriptTag(id=node["id"], src=node.get("src") or src) if node else None
        return ScriptTagCreateResult(script_tag=tag, user_errors=user_errors)


def shopify_platform_factory(
    http: httpx.AsyncClient,
    access_tokens: dict[str, str],
    api_version: str,
) -> Callable[[str], ShopifyAdminClient]:
    """Return tenant → ShopifyAdminClient, using the configured access tokens.

    The returned callable raises PlatformError for a tenant with no token.
    """

    def factory(tenant: str) -> ShopifyAdminClient:
        token = access_tokens.get(tenant)
        if not token:
            raise PlatformError(f"No content platform access token configured for '{tenant}'")
        return ShopifyAdminClient(http, shop=tenant, access_token=token, api_version=api_version)

    return factory


def create_http_client() -> httpx.AsyncClient:
    """Create the shared outbound client, once, at lifespan startup."""
    return httpx.AsyncClient(
        limits=httpx.Limits(
            max_connections=HTTP_POOL_MAX_CONNECTIONS,
            max_keepalive_connections=HTTP_POOL_MAX_CONNECTIONS,
            keepalive_expiry=HTTP_POOL_KEEPALIVE_EXPIRY,
        ),
        timeout=httpx.Timeout(PLATFORM_TIMEOUT_S),
        follow_redirects=False,
    )
