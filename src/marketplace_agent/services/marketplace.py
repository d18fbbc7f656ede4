"""Listing and matching service client."""
from typing import Any, Dict, List, Mapping, Optional, Protocol

import httpx

from marketplace_agent.core.errors import MarketplaceServiceError
from marketplace_agent.core.logging import logger
from marketplace_agent.services.http import join_endpoint


class MarketplaceClient(Protocol):
    def create_listing(self, params: Mapping[str, Any]) -> Dict[str, Any]: ...

    def find_matches(self, listing_id: str, max_results: int, min_score: float) -> Dict[str, Any]: ...

    def search_listings(self, params: Mapping[str, Any]) -> Dict[str, Any]: ...

    def get_marketplace_stats(self) -> Dict[str, Any]: ...

    def find_active_listings(self, merchant_id: str, limit: int) -> List[Dict[str, Any]]: ...


class HttpMarketplaceClient:
    """MarketplaceClient over the marketplace service's REST API."""

    def __init__(self, base_url: str, client: Optional[httpx.Client] = None, timeout: float = 30):
        self.base_url = base_url
        self.timeout = timeout
        self.client = client or httpx.Client(timeout=timeout)

    def _request(self, operation: str, method: str, path: str, **kwargs) -> Any:
        url = join_endpoint(self.base_url, path)
        try:
            response = self.client.request(method, url, timeout=self.timeout, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise MarketplaceServiceError(operation, f"request failed: {e}") from e

        if not response.is_success:
            raise MarketplaceServiceError(
                operation, f"HTTP {response.status_code}", status_code=response.status_code
            )
        try:
            return response.json()
        except ValueError as e:
            raise MarketplaceServiceError(operation, f"invalid JSON: {e}") from e

    def create_listing(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        result = self._request("create_listing", "POST", "/listings", json=dict(params))
        logger.info(f"Created {params.get('listing_type')} listing: {result.get('listing_id')}")
        return result

    def find_matches(self, listing_id: str, max_results: int, min_score: float) -> Dict[str, Any]:
        return self._request(
            "find_matches",
            "GET",
            f"/listings/{listing_id}/matches",
            params={"max_results": max_results, "min_score": min_score},
        )

    def search_listings(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return self._request("search_listings", "GET", "/listings", params=dict(params))

    def get_marketplace_stats(self) -> Dict[str, Any]:
        return self._request("get_marketplace_stats", "GET", "/stats")

    def find_active_listings(self, merchant_id: str, limit: int) -> List[Dict[str, Any]]:
        """Merchant's active listings, most recently updated first."""
        data = self._request(
            "find_active_listings",
            "GET",
            "/listings",
            params={
                "publisher_id": merchant_id,
                "status": "ACTIVE",
                "order_by": "-last_updated",
                "page_size": limit,
            },
        )
        return list(data.get("listings", []))[:limit]
