"""Research brief: a few exploratory web searches, run concurrently, concatenated once per debate."""

import asyncio
import logging
from datetime import date

from src.models import SearchResult
from src.search import WebSearchProvider

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TEMPLATES = (
    'Latest news "{topic}" {year}',
    'Benchmarks and statistics for "{topic}"',
    'Critiques and failures of "{topic}"',
)


def _format_block(query: str, results: list[SearchResult]) -> str:
    entries = [
        f"- TITLE: {r.title}\n"
        f"  SOURCE: {r.source or 'Web'} ({r.date or 'Unknown Date'})\n"
        f"  URL: {r.link}\n"
        f"  SUMMARY: {r.snippet}"
        for r in results
    ]
    return f'[RESEARCH BRIEF FOR: "{query}"]\n\n' + "\n".join(entries)


class ResearchAggregator:
    """Builds the research brief injected into every agent's context.

    Best effort: a failed query contributes nothing, and no provider (or every
    query failing) yields an empty brief. Never raises.
    """

    def __init__(
        self,
        search_provider: WebSearchProvider | None,
        query_templates: list[str] | tuple[str, ...] = DEFAULT_QUERY_TEMPLATES,
    ) -> None:
        self._search = search_provider
        self._templates = tuple(query_templates) or DEFAULT_QUERY_TEMPLATES

    def queries_for(self, topic: str) -> list[str]:
        year = date.today().year
        return [t.format(topic=topic, year=year) for t in self._templates]

    async def _run_query(self, query: str) -> str:
        try:
            results = await self._search.search(query)
        except Exception as exc:
            logger.warning("Research query failed (%r): %s", query, exc)
            return ""
        if not results:
            return ""
        return _format_block(query, results)

    async def gather(self, topic: str) -> str:
        if self._search is None:
            logger.info("No search provider configured, skipping research")
            return ""

        queries = self.queries_for(topic)
        logger.info("Conducting research: %d queries", len(queries))
        blocks = await asyncio.gather(*(self._run_query(q) for q in queries))
        brief = "\n\n".join(b for b in blocks if b)
        if not brief:
            logger.warning("Research returned nothing for %r; debating without live data", topic)
        return brief
