"""
HTTP client for the upstream places/compare search service.

Failures are raised as UpstreamError and never retried; the search action is
user-retriable.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from .config import Settings

logger = logging.getLogger(__name__)


class SearchMode(str, Enum):
    PLACES = "places"
    COMPARE = "compare"


class UpstreamError(Exception):
    """The upstream search request failed or returned an unusable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SearchClient:
    """Async client for ``GET <upstream_url>?type=<mode>&q=<query>``"""

    def __init__(self, base_url: str, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url
        self.client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "SearchClient":
        return cls(settings.upstream_url, timeout=settings.upstream_timeout)

    async def close(self):
        await self.client.aclose()

    async def search(
        self,
        mode: SearchMode,
        query: str,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
    ) -> Any:
        """Run one search and return the decoded JSON body."""
        mode = SearchMode(mode)
        params: Dict[str, Any] = {"type": mode.value, "q": query}
        if lat is not None and lng is not None:
            params["lat"] = str(lat)
            params["lng"] = str(lng)

        try:
            response = await self.client.get(self.base_url, params=params)
        except httpx.HTTPError as e:
            logger.warning("Upstream %s search failed: %s", mode.value, e)
            raise UpstreamError(str(e) or e.__class__.__name__) from e

        if not response.is_success:
            logger.warning("Upstream %s search returned %s", mode.value, response.status_code)
            raise UpstreamError(
                f"Request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.warning("Upstream %s search returned invalid JSON: %s", mode.value, e)
            raise UpstreamError("Upstream returned invalid JSON", status_code=response.status_code) from e

    async def compare(self, query: str) -> Any:
        return await self.search(SearchMode.COMPARE, query)

    async def places(self, query: str, lat: Optional[float] = None, lng: Optional[float] = None) -> list:
        """Place records from ``items``, else ``results``, else empty."""
        payload = await self.search(SearchMode.PLACES, query, lat=lat, lng=lng)
        if not isinstance(payload, dict):
            return []
        found = payload.get("items")
        if found is None:
            found = payload.get("results")
        return [place for place in found if isinstance(place, dict)] if isinstance(found, list) else []
