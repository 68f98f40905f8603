"""
Hugging Face daily papers adapter.

Fetches the curated daily paper listing (optionally for a specific date)
and links each entry to its Hugging Face paper page.
"""

import logging
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Any

from newsforge.ingestion.base_adapter import BaseAdapter, clean_text, parse_datetime
from newsforge.ingestion.errors import ParseError
from newsforge.ingestion.http_client import HTTPClient
from newsforge.ingestion.schemas import DailyPapersConfig, RawItemDraft, SourceKind

logger = logging.getLogger(__name__)

DAILY_PAPERS_URL = "https://huggingface.co/api/daily_papers"
PAPER_PAGE_URL = "https://huggingface.co/papers/{paper_id}"


class DailyPapersAdapter(BaseAdapter):
    """Hugging Face daily papers listing."""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "NewsForge/1.0",
        api_url: str = DAILY_PAPERS_URL,
    ):
        super().__init__(timeout=timeout, user_agent=user_agent)
        self._api_url = api_url

    @property
    def kind(self) -> SourceKind:
        return SourceKind.PAPER_INDEX_B

    async def _fetch_raw(
        self, config: DailyPapersConfig, user_id: int | None
    ) -> AsyncIterator[dict[str, Any]]:
        params = {"date": config.date} if config.date else None
        async with HTTPClient(timeout=self._timeout, headers=self._default_headers()) as client:
            response = await client.get(self._api_url, params=params)

        data = response.json()
        if not isinstance(data, list):
            raise ParseError(f"Expected a list of papers, got {type(data).__name__}")

        logger.debug(f"Daily papers returned {len(data)} entries")
        for item in data:
            yield {"item": item}

    def _transform(self, raw: dict[str, Any]) -> RawItemDraft | None:
        item = raw["item"]
        paper = item.get("paper") or {}
        paper_id = paper.get("id")
        if not paper_id:
            raise ParseError("Daily papers entry is missing paper.id")

        title = clean_text(paper.get("title") or item.get("title") or "")
        if not title:
            return None

        published = parse_datetime(item.get("publishedAt") or paper.get("publishedAt"))
        if published is None:
            published = datetime.now(timezone.utc)

        return RawItemDraft(
            title=title,
            description=clean_text(paper.get("summary") or "") or None,
            url=PAPER_PAGE_URL.format(paper_id=paper_id),
            published_at=published,
            kind=SourceKind.PAPER_INDEX_B,
        )
