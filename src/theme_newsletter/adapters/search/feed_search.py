"""Search over RSS feeds."""

import logging
import re
from xml.etree import ElementTree as ET

import httpx

from theme_newsletter.adapters.search.filters import matches_keywords, query_terms, relevance
from theme_newsletter.core import SearchError, SearchResponse, SearchResult, SearchService

logger = logging.getLogger(__name__)

TAG_RE = re.compile(r"<[^>]+>")


class FeedSearchService(SearchService):
    """Collect recent entries from configured RSS feeds.

    Entries are kept when they mention one of the configured keywords (all
    entries when no keywords are configured), then ordered by how many words
    they share with the query, so each theme's prompt picks its own material
    from the same feeds. Feeds that fail are skipped; if every feed fails the
    search raises `SearchError` so the caller can retry.
    """

    def __init__(
        self,
        feeds: list[str],
        keywords: list[str] | None = None,
        max_results: int = 20,
        timeout: float = 30.0,
    ) -> None:
        self.feeds = feeds
        self.keywords = keywords or []
        self.max_results = max_results
        self.timeout = timeout

    async def search(self, query: str) -> SearchResponse:
        """Search feeds for material relevant to the query."""
        if not self.feeds:
            raise SearchError("No feeds configured")

        logger.info("Searching %d feed(s) for: %s", len(self.feeds), query[:80])

        candidates: list[SearchResult] = []
        seen_urls: set[str] = set()
        failures: list[str] = []

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            for feed_url in self.feeds:
                try:
                    response = await client.get(feed_url)
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    logger.warning("Feed %s failed: %s", feed_url, e)
                    failures.append(f"{feed_url}: {e}")
                    continue

                for entry in self._parse_feed(response.text):
                    if entry.url in seen_urls:
                        continue
                    if not matches_keywords(entry.title, entry.snippet, self.keywords):
                        continue
                    seen_urls.add(entry.url)
                    candidates.append(entry)

        if failures and len(failures) == len(self.feeds):
            raise SearchError("All feeds failed: " + "; ".join(failures))

        # Stable sort: equally relevant entries keep feed order
        terms = query_terms(query)
        candidates.sort(key=lambda r: relevance(r.title, r.snippet, terms), reverse=True)

        logger.info("Found %d matching entries, keeping %d",
                    len(candidates), min(len(candidates), self.max_results))
        return SearchResponse(results=candidates[:self.max_results])

    def _parse_feed(self, xml_content: str) -> list[SearchResult]:
        """Parse RSS 2.0 items into search results."""
        entries: list[SearchResult] = []

        try:
            root = ET.fromstring(xml_content)
        except ET.ParseError as e:
            logger.warning("Could not parse feed XML: %s", e)
            return entries

        for item in root.findall(".//item"):
            title = self._text(item, "title")
            link = self._text(item, "link")
            if not title or not link:
                continue

            description = TAG_RE.sub("", self._text(item, "description"))
            entries.append(SearchResult(
                title=title,
                snippet=" ".join(description.split())[:500],
                url=link,
            ))

        return entries

    def _text(self, item: ET.Element, tag: str) -> str:
        elem = item.find(tag)
        return elem.text.strip() if elem is not None and elem.text else ""
