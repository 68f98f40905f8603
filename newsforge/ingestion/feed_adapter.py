"""
RSS/Atom feed adapter.

Handles:
- Feed download with linear-backoff retry (the only adapter that retries)
- RSS/Atom parsing via feedparser
- HTML summary cleaning
- Feed discovery from a website URL and feed validation
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin, urlparse

import feedparser
import httpx
from bs4 import BeautifulSoup

from newsforge.ingestion.base_adapter import BaseAdapter, clean_text, html_to_text, parse_datetime
from newsforge.ingestion.errors import FetchError, NetworkError, ParseError
from newsforge.ingestion.http_client import HTTPClient, HTTPClientError, LinearBackoff
from newsforge.ingestion.schemas import FeedConfig, RawItemDraft, SourceKind

logger = logging.getLogger(__name__)

COMMON_FEED_PATHS = ["/feed", "/rss", "/atom.xml", "/feed.xml", "/rss.xml"]

FEED_TYPE_MARKERS = ("rss", "atom", "xml")


@dataclass
class DiscoveredFeed:
    """A feed advertised by (or probed on) a website."""

    url: str
    type: str
    title: str | None = None


@dataclass
class FeedValidation:
    """Outcome of validating a feed URL."""

    valid: bool
    title: str | None = None
    error: str | None = None


def find_feed_links(html: str, base_url: str) -> list[DiscoveredFeed]:
    """Collect ``<link rel="alternate">`` feeds from a page, resolving relative hrefs."""
    soup = BeautifulSoup(html, "html.parser")
    found: list[DiscoveredFeed] = []
    for link in soup.find_all("link", rel="alternate"):
        feed_type = (link.get("type") or "").lower()
        href = link.get("href")
        if not href or not any(marker in feed_type for marker in FEED_TYPE_MARKERS):
            continue
        found.append(
            DiscoveredFeed(
                url=urljoin(base_url, href.strip()),
                type="atom" if "atom" in feed_type else "rss",
                title=link.get("title") or None,
            )
        )
    return found


class FeedAdapter(BaseAdapter):
    """
    RSS/Atom adapter.

    A download is attempted up to ``max_attempts`` times. After failed
    attempt n (1-indexed) the adapter sleeps ``base_delay * n`` before the
    next one, so the default policy waits 1s then 2s.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "NewsForge/1.0",
        max_attempts: int = 3,
        base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ):
        """
        Initialize feed adapter.

        Args:
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header sent with requests
            max_attempts: Total download attempts per feed
            base_delay: Linear backoff unit in seconds
            sleep: Awaitable sleep used between attempts (injectable for tests)
        """
        super().__init__(timeout=timeout, user_agent=user_agent)
        self._backoff = LinearBackoff(max_attempts=max_attempts, base_delay=base_delay)
        self._sleep = sleep or asyncio.sleep

    @property
    def kind(self) -> SourceKind:
        return SourceKind.FEED

    async def _fetch_raw(
        self, config: FeedConfig, user_id: int | None
    ) -> AsyncIterator[dict[str, Any]]:
        feed = await self.fetch_feed(config.url)
        for entry in feed.get("entries", []):
            yield {"entry": entry}

    def _transform(self, raw: dict[str, Any]) -> RawItemDraft | None:
        entry = raw["entry"]

        title = clean_text(entry.get("title") or "") or "Untitled"

        description = None
        summary = entry.get("summary")
        if not summary and entry.get("content"):
            summary = entry["content"][0].get("value", "")
        if summary:
            description = html_to_text(summary) or None

        published = None
        for field in ("published_parsed", "updated_parsed", "published", "updated"):
            published = parse_datetime(entry.get(field))
            if published is not None:
                break

        return RawItemDraft(
            title=title,
            description=description,
            url=entry.get("link") or "",
            published_at=published,
            kind=SourceKind.FEED,
        )

    async def fetch_feed(self, url: str) -> feedparser.FeedParserDict:
        """
        Download and parse a feed, retrying with linear backoff.

        Raises:
            NetworkError: After every attempt failed
        """
        attempts = self._backoff.max_attempts
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                return await self._download_feed(url)
            except Exception as e:
                last_error = e
                logger.warning(f"Feed attempt {attempt + 1}/{attempts} failed for {url}: {e}")
                if attempt + 1 < attempts:
                    await self._sleep(self._backoff.delay_after(attempt + 1))

        raise NetworkError(f"Failed to fetch feed after {attempts} attempts: {last_error}")

    async def _download_feed(self, url: str) -> feedparser.FeedParserDict:
        """Single download-and-parse attempt."""
        async with HTTPClient(timeout=self._timeout, headers=self._default_headers()) as client:
            response = await client.get(url)

        feed = feedparser.parse(response.text)
        if feed.get("bozo") and not feed.get("entries") and not feed.get("feed", {}).get("title"):
            raise ParseError(f"Invalid feed document: {feed.get('bozo_exception')}")
        return feed

    async def discover_feeds(self, website_url: str) -> list[DiscoveredFeed]:
        """
        Find feeds advertised by a website.

        Reads ``<link rel="alternate">`` tags whose type mentions rss, atom
        or xml. If none are found, probes common feed paths on the site's
        origin once each and keeps those that parse.

        Raises:
            NetworkError: If the website itself cannot be fetched
        """
        try:
            async with HTTPClient(timeout=self._timeout, headers=self._default_headers()) as client:
                response = await client.get(website_url)
        except (HTTPClientError, httpx.HTTPError) as e:
            raise NetworkError(f"Feed discovery failed: {e}") from e

        discovered = find_feed_links(response.text, str(response.url))
        if discovered:
            return discovered

        parsed = urlparse(website_url)
        origin = f"{parsed.scheme}://{parsed.netloc}"
        for path in COMMON_FEED_PATHS:
            candidate = f"{origin}{path}"
            try:
                await self._download_feed(candidate)
            except (FetchError, HTTPClientError, httpx.HTTPError) as e:
                logger.debug(f"No feed at {candidate}: {e}")
                continue
            discovered.append(
                DiscoveredFeed(url=candidate, type="atom" if "atom" in path else "rss")
            )

        return discovered

    async def validate_feed(self, url: str) -> FeedValidation:
        """Check whether a URL serves a parseable feed. Never raises."""
        try:
            feed = await self.fetch_feed(url)
        except NetworkError as e:
            return FeedValidation(valid=False, error=e.message)
        return FeedValidation(valid=True, title=feed.get("feed", {}).get("title"))
