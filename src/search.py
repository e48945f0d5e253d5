"""Web search providers. SerpAPI adapter over httpx."""

import logging
import os
from abc import ABC, abstractmethod

import httpx

from config.config_loader import ResearchConfig
from src.models import SearchResult

logger = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search.json"


class SearchError(Exception):
    """Raised when a search query fails."""


class WebSearchProvider(ABC):
    @abstractmethod
    async def search(self, query: str) -> list[SearchResult]:
        """Return a small ranked list of results for ``query``.

        Raises:
            SearchError: On transport or API failure.
        """
        ...


def _parse_results(data: dict, max_results: int) -> list[SearchResult]:
    """News results first, then organic, truncated to max_results."""
    news = [
        SearchResult(
            title=r.get("title", ""),
            link=r.get("link", ""),
            snippet=r.get("snippet", ""),
            date=r.get("date"),
            source=r.get("source"),
        )
        for r in data.get("news_results") or []
    ]
    organic = [
        SearchResult(
            title=r.get("title", ""),
            link=r.get("link", ""),
            snippet=r.get("snippet", ""),
            date=r.get("date"),
        )
        for r in data.get("organic_results") or []
    ]
    return [*news, *organic][:max_results]


class SerpApiSearchProvider(WebSearchProvider):
    """Google results via SerpAPI."""

    def __init__(self, config: ResearchConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._api_key = os.environ.get(config.api_key_env, "").strip()
        if not self._api_key:
            raise SearchError(f"Missing API key: {config.api_key_env}")
        self._client = client

    async def search(self, query: str) -> list[SearchResult]:
        params = {"q": query, "api_key": self._api_key, "num": self._config.max_results}
        try:
            if self._client is not None:
                response = await self._client.get(SERPAPI_URL, params=params, timeout=self._config.timeout_sec)
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_sec) as client:
                    response = await client.get(SERPAPI_URL, params=params)
        except httpx.HTTPError as exc:
            raise SearchError(f"SerpAPI request failed: {exc}") from exc

        if response.status_code != 200:
            raise SearchError(f"HTTP {response.status_code} from SerpAPI")

        try:
            data = response.json()
        except ValueError as exc:
            raise SearchError(f"Invalid JSON from SerpAPI: {exc}") from exc

        results = _parse_results(data, self._config.max_results)
        logger.debug("SerpAPI %r: %d results", query, len(results))
        return results
