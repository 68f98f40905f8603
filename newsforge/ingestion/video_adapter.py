"""
YouTube video adapter.

A video source is a single video. The adapter scrapes the public watch
page for its Open Graph title and description and the embedded upload
date, producing exactly one headline per fetch. The headline description
carries the channel and duration, and optionally an AI summary.
"""

import logging
import re
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Any

from bs4 import BeautifulSoup

from newsforge.ai.errors import ProviderError, ProviderNotFoundError
from newsforge.ingestion.base_adapter import BaseAdapter, clean_text, parse_datetime
from newsforge.ingestion.errors import ConfigError
from newsforge.ingestion.http_client import HTTPClient
from newsforge.ingestion.schemas import RawItemDraft, SourceKind, VideoConfig
from newsforge.ingestion.video_analysis import VideoAnalysis, VideoAnalyzer

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

_VALID_URL_PATTERNS = [
    re.compile(r"^https?://(www\.)?youtube\.com/watch\?v=[\w-]+"),
    re.compile(r"^https?://youtu\.be/[\w-]+"),
    re.compile(r"^https?://(www\.)?youtube\.com/embed/[\w-]+"),
    re.compile(r"^https?://(www\.)?youtube\.com/v/[\w-]+"),
]

_VIDEO_ID_PATTERNS = [
    re.compile(r"[?&]v=([^&#]+)"),
    re.compile(r"youtu\.be/([^?#/]+)"),
    re.compile(r"/embed/([^?#/]+)"),
    re.compile(r"/v/([^?#/]+)"),
]

_UPLOAD_DATE_RE = re.compile(r'"uploadDate":"([^"]+)"')
_LENGTH_RE = re.compile(r'"lengthSeconds":"(\d+)"')
_AUTHOR_RE = re.compile(r'"author":"([^"]+)"')


def is_valid_youtube_url(url: str) -> bool:
    """Check for watch, short, embed or legacy /v/ video URLs."""
    return any(pattern.match(url) for pattern in _VALID_URL_PATTERNS)


def extract_video_id(url: str) -> str | None:
    """Extract the video id from any supported URL form."""
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def format_duration(seconds: int) -> str:
    """Format seconds as H:MM:SS or M:SS."""
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def parse_watch_page(html: str) -> dict[str, Any]:
    """
    Pull metadata out of a watch page.

    Returns:
        Dict with title, description, upload_date, duration, channel
        (missing values are None)
    """
    soup = BeautifulSoup(html, "html.parser")

    def og(prop: str) -> str | None:
        tag = soup.find("meta", attrs={"property": prop})
        return tag.get("content") if tag else None

    upload = _UPLOAD_DATE_RE.search(html)
    if upload:
        upload_date = upload.group(1)
    else:
        tag = soup.find("meta", attrs={"itemprop": "uploadDate"})
        upload_date = tag.get("content") if tag else None

    length = _LENGTH_RE.search(html)
    author = _AUTHOR_RE.search(html)

    return {
        "title": og("og:title"),
        "description": og("og:description"),
        "upload_date": upload_date,
        "duration": format_duration(int(length.group(1))) if length else None,
        "channel": author.group(1) if author else None,
    }


def compose_description(
    summary: str,
    topics: list[str],
    channel: str | None,
    duration: str | None,
) -> str | None:
    """Join summary, topics and a ``channel | duration`` line, one per line."""
    lines = [summary] if summary else []
    if topics:
        lines.append("Topics: " + ", ".join(topics))
    details = " | ".join(part for part in (channel, duration) if part)
    if details:
        lines.append(details)
    return "\n".join(lines) or None


class VideoAdapter(BaseAdapter):
    """
    Single-video metadata adapter.

    With an ``analyzer`` the scraped title and description are summarized
    by an AI model; the summary and topics replace the raw description. If
    the analysis fails the scraped description is kept.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "NewsForge/1.0",
        watch_url: str = WATCH_URL,
        analyzer: VideoAnalyzer | None = None,
    ):
        super().__init__(timeout=timeout, user_agent=user_agent)
        self._watch_url = watch_url
        self._analyzer = analyzer

    @property
    def kind(self) -> SourceKind:
        return SourceKind.VIDEO

    async def _fetch_raw(
        self, config: VideoConfig, user_id: int | None
    ) -> AsyncIterator[dict[str, Any]]:
        url_video_id = extract_video_id(config.url)
        if url_video_id is not None and url_video_id != config.video_id:
            raise ConfigError(
                f"Video id {config.video_id!r} does not match URL {config.url!r}"
            )

        async with HTTPClient(timeout=self._timeout, headers=self._default_headers()) as client:
            response = await client.get(self._watch_url.format(video_id=config.video_id))

        metadata = parse_watch_page(response.text)
        logger.debug(f"Scraped video {config.video_id}: {metadata.get('title')!r}")

        analysis = None
        if self._analyzer is not None and metadata.get("title"):
            analysis = await self._analyze(metadata)

        yield {"video_id": config.video_id, "analysis": analysis, **metadata}

    async def _analyze(self, metadata: dict[str, Any]) -> VideoAnalysis | None:
        try:
            return await self._analyzer.analyze(
                clean_text(metadata["title"]), clean_text(metadata.get("description") or "")
            )
        except (ProviderError, ProviderNotFoundError, ValueError) as e:
            logger.warning(f"Video analysis failed, keeping scraped description: {e}")
            return None

    def _transform(self, raw: dict[str, Any]) -> RawItemDraft | None:
        title = clean_text(raw.get("title") or "") or "Unknown Title"
        published = parse_datetime(raw.get("upload_date")) or datetime.now(timezone.utc)

        analysis: VideoAnalysis | None = raw.get("analysis")
        summary = clean_text(raw.get("description") or "")
        topics: list[str] = []
        if analysis is not None:
            summary = clean_text(analysis.summary) or summary
            topics = analysis.topics

        return RawItemDraft(
            title=title,
            description=compose_description(summary, topics, raw.get("channel"), raw.get("duration")),
            url=WATCH_URL.format(video_id=raw["video_id"]),
            published_at=published,
            kind=SourceKind.VIDEO,
        )
