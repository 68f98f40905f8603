"""
arXiv category adapter.

Queries the arXiv export API for the newest submissions in one category
and parses the Atom response with feedparser.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import feedparser

from newsforge.ingestion.base_adapter import BaseAdapter, clean_text, parse_datetime
from newsforge.ingestion.errors import ParseError
from newsforge.ingestion.http_client import HTTPClient
from newsforge.ingestion.schemas import ArxivConfig, RawItemDraft, SourceKind

logger = logging.getLogger(__name__)

ARXIV_API_URL = "http://export.arxiv.org/api/query"


def paper_link(entry: dict[str, Any]) -> str:
    """The abstract page link (alternate, text/html), falling back to the entry id."""
    for link in entry.get("links") or []:
        if link.get("rel") == "alternate" and link.get("type") == "text/html":
            return link.get("href", "")
    return entry.get("id") or entry.get("link") or ""


class ArxivAdapter(BaseAdapter):
    """Newest papers in an arXiv category, sorted by submission date."""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "NewsForge/1.0",
        api_url: str = ARXIV_API_URL,
    ):
        super().__init__(timeout=timeout, user_agent=user_agent)
        self._api_url = api_url

    @property
    def kind(self) -> SourceKind:
        return SourceKind.PAPER_INDEX_A

    async def _fetch_raw(
        self, config: ArxivConfig, user_id: int | None
    ) -> AsyncIterator[dict[str, Any]]:
        params = {
            "search_query": f"cat:{config.category}",
            "start": 0,
            "max_results": config.max_results,
            "sortBy": "submittedDate",
            "sortOrder": "descending",
        }
        async with HTTPClient(timeout=self._timeout, headers=self._default_headers()) as client:
            response = await client.get(self._api_url, params=params)

        feed = feedparser.parse(response.text)
        if feed.get("bozo") and not feed.get("entries"):
            raise ParseError(f"arXiv response is not a valid Atom feed: {feed.get('bozo_exception')}")

        entries = feed.get("entries", [])
        logger.debug(f"arXiv returned {len(entries)} papers for {config.category}")
        for entry in entries:
            yield {"entry": entry}

    def _transform(self, raw: dict[str, Any]) -> RawItemDraft | None:
        entry = raw["entry"]

        title = clean_text(entry.get("title") or "")
        if not title:
            return None

        return RawItemDraft(
            title=title,
            description=clean_text(entry.get("summary") or "") or None,
            url=paper_link(entry),
            published_at=parse_datetime(entry.get("published")),
            kind=SourceKind.PAPER_INDEX_A,
        )
