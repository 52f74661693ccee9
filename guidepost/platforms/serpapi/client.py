"""SerpAPI Google Jobs client: paginated fetch for one query."""

import logging
import os
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError

from guidepost.core.config import SearchFilter
from guidepost.core.errors import ConfigurationError, UpstreamApiError, UpstreamHttpError
from guidepost.core.schemas import RawListing, SearchResults
from guidepost.pipeline.query_builder import build_search_params
from guidepost.platforms.base import SearchClient

logger = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search.json"
API_KEY_ENV = "SERPAPI_API_KEY"
MAX_PAGES = 3

# Error bodies can be full HTML pages; keep log lines readable.
_ERROR_BODY_LIMIT = 300


class SerpApiClient(SearchClient):
    """Google Jobs search via SerpAPI.

    The HTTP client is injectable so tests can pass an ``httpx.MockTransport``.
    A client created here is closed by ``aclose()`` / ``async with``; an
    injected one is left to its owner.

    Usage::

        async with SerpApiClient() as client:
            results = await client.search("Data Engineer", SearchFilter())
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        base_url: str = SERPAPI_URL,
        engine: str = "google_jobs",
        max_pages: int = MAX_PAGES,
        timeout_seconds: float = 30.0,
        api_key_env: str = API_KEY_ENV,
    ) -> None:
        self._api_key = api_key
        self._api_key_env = api_key_env
        self._base_url = base_url
        self._engine = engine
        self._max_pages = max_pages
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout_seconds,
            follow_redirects=True,
            headers={"Accept": "application/json"},
        )

    @property
    def source_id(self) -> str:
        return self._engine

    async def __aenter__(self) -> "SerpApiClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _resolve_api_key(self) -> str:
        api_key = self._api_key or os.environ.get(self._api_key_env)
        if not api_key:
            msg = f"{self._api_key_env} is not configured"
            raise ConfigurationError(msg)
        return api_key

    async def search(self, query: str, filters: SearchFilter) -> SearchResults:
        """Fetch up to ``max_pages`` pages for ``query``.

        Stops early on an empty page or when no next-page token is returned.
        """
        api_key = self._resolve_api_key()
        results = SearchResults()
        next_page_token: str | None = None

        for page_num in range(self._max_pages):
            params = build_search_params(query, filters, engine=self._engine)
            params["api_key"] = api_key
            if next_page_token:
                params["next_page_token"] = next_page_token

            data = await self._get_page(params)
            items = data.get("jobs_results") or []
            listings, skipped = _parse_listings(items)
            results.listings.extend(listings)
            results.skipped_malformed += skipped

            logger.debug("Query '%s' page %d: %d listings", query, page_num, len(listings))

            pagination = data.get("serpapi_pagination") or {}
            next_page_token = pagination.get("next_page_token")
            if not next_page_token or not items:
                break

        return results

    async def _get_page(self, params: dict[str, str]) -> dict[str, Any]:
        try:
            response = await self._http.get(self._base_url, params=params)
        except httpx.HTTPError as e:
            msg = f"SerpAPI request failed: {e}"
            raise UpstreamHttpError(msg) from e

        if not response.is_success:
            body = response.text[:_ERROR_BODY_LIMIT]
            msg = f"SerpAPI request failed: {response.status_code} - {body}"
            raise UpstreamHttpError(msg, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            msg = f"SerpAPI returned a non-JSON body: {e}"
            raise UpstreamApiError(msg) from e

        if not isinstance(data, dict):
            msg = "SerpAPI returned an unexpected response shape"
            raise UpstreamApiError(msg)
        if data.get("error"):
            msg = f"SerpAPI error: {data['error']}"
            raise UpstreamApiError(msg)
        return data


def _parse_listings(items: list[Any]) -> tuple[list[RawListing], int]:
    """Validate raw result dicts. Returns the listings and the number skipped."""
    listings: list[RawListing] = []
    skipped = 0
    for item in items:
        try:
            listings.append(RawListing.model_validate(item))
        except ValidationError as e:
            skipped += 1
            logger.warning("Skipping malformed job result: %s", e.errors()[0]["msg"])
    return listings, skipped
