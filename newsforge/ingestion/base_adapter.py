"""
Base adapter interface and shared functionality for source adapters.

Each source adapter implements ``_fetch_raw()`` (yielding raw payload
records) and ``_transform()`` (turning one record into a headline draft).
The base class provides:
- Config validation against the adapter's own config variant
- Conversion of every failure into the ``FetchError`` taxonomy
- Logging and per-call statistics
- Common text and date utilities
"""

import logging
import re
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from html import unescape
from typing import Any

import httpx
from bs4 import BeautifulSoup
from pydantic import BaseModel, ValidationError

from newsforge.ingestion.errors import ConfigError, FetchError, ParseError
from newsforge.ingestion.http_client import HTTPClientError, to_fetch_error
from newsforge.ingestion.schemas import RawItemDraft, SourceKind, parse_source_config

logger = logging.getLogger(__name__)


@dataclass
class AdapterStats:
    """Statistics for one adapter call."""

    items_fetched: int = 0
    items_filtered: int = 0
    start_time: float = field(default_factory=time.monotonic)

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.start_time


class BaseAdapter(ABC):
    """
    Abstract base class for source adapters.

    Subclasses must implement:
        - kind: SourceKind enum value
        - _fetch_raw(): Async generator yielding raw records
        - _transform(): Convert raw record to RawItemDraft

    The base class handles:
        - Validating the stored config blob (ConfigError on failure)
        - Mapping transport errors to NetworkError/AuthError
        - Mapping anything unexpected to ParseError
        - Logging and statistics
    """

    def __init__(self, timeout: float = 30.0, user_agent: str = "NewsForge/1.0"):
        """
        Initialize adapter.

        Args:
            timeout: Per-request timeout in seconds
            user_agent: User-Agent header sent with requests
        """
        self._timeout = timeout
        self._user_agent = user_agent

    @property
    @abstractmethod
    def kind(self) -> SourceKind:
        """Return the source kind this adapter handles."""
        ...

    @property
    def name(self) -> str:
        """Human-readable adapter name."""
        return f"{self.kind.value}_adapter"

    @abstractmethod
    def _fetch_raw(self, config: Any, user_id: int | None) -> AsyncIterator[dict[str, Any]]:
        """
        Fetch raw records for one source.

        Args:
            config: The validated config variant for this adapter's kind
            user_id: Owner of the source (needed for per-user credentials)

        Yields:
            Raw records as dictionaries, in source order
        """
        ...

    @abstractmethod
    def _transform(self, raw: dict[str, Any]) -> RawItemDraft | None:
        """
        Transform one raw record into a RawItemDraft.

        Returns:
            RawItemDraft or None if the record should be skipped
        """
        ...

    def validate_config(self, config: BaseModel | dict[str, Any]) -> BaseModel:
        """
        Validate a config blob against this adapter's variant.

        Raises:
            ConfigError: If the blob is missing, malformed, or for another kind
        """
        if isinstance(config, BaseModel):
            if getattr(config, "kind", None) != self.kind.value:
                raise ConfigError(
                    f"{self.name} received config for kind {getattr(config, 'kind', None)!r}"
                )
            return config

        if not isinstance(config, dict):
            raise ConfigError(f"{self.name} config must be an object, got {type(config).__name__}")

        try:
            return parse_source_config(self.kind, config)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'][1:]) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigError(f"Invalid {self.kind.value} source config: {problems}") from e

    async def fetch(
        self,
        config: BaseModel | dict[str, Any],
        user_id: int | None = None,
    ) -> list[RawItemDraft]:
        """
        Fetch and normalize headlines for one source.

        This is the entry point called by the fetch coordinator.

        Returns:
            Headline drafts in source order

        Raises:
            FetchError: Any unrecoverable condition, typed by kind
        """
        validated = self.validate_config(config)
        stats = AdapterStats()

        logger.debug(f"Starting fetch for {self.name}")
        items: list[RawItemDraft] = []

        try:
            async for raw in self._fetch_raw(validated, user_id):
                draft = self._transform(raw)
                if draft is None:
                    stats.items_filtered += 1
                    continue
                stats.items_fetched += 1
                items.append(draft)

        except FetchError:
            raise
        except (HTTPClientError, httpx.HTTPError) as e:
            raise to_fetch_error(e, self.name) from e
        except Exception as e:
            logger.error(f"Unexpected error in {self.name} fetch: {e}", exc_info=True)
            raise ParseError(f"{self.name}: {type(e).__name__}: {e}") from e

        finally:
            logger.info(
                f"{self.name} completed: "
                f"fetched={stats.items_fetched}, "
                f"filtered={stats.items_filtered}, "
                f"elapsed={stats.elapsed_seconds:.2f}s"
            )

        return items

    def _default_headers(self) -> dict[str, str]:
        return {"User-Agent": self._user_agent}


# Common preprocessing utilities used across adapters

def clean_text(text: str) -> str:
    """
    Clean text content by removing excessive whitespace and normalizing.

    Args:
        text: Raw text content

    Returns:
        Cleaned text
    """
    text = " ".join(text.split())

    # Remove null bytes and other control characters
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

    return text.strip()


def html_to_text(html: str) -> str:
    """Strip markup (including script/style blocks) and collapse whitespace."""
    if not html:
        return ""
    if "<" not in html:
        return clean_text(unescape(html))

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    return clean_text(soup.get_text(" "))


def parse_datetime(value: Any) -> datetime | None:
    """
    Parse an RFC 2822, ISO 8601 or struct_time value into an aware datetime.

    Returns None for missing or unparseable values.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, time.struct_time):
        return datetime(*value[:6], tzinfo=timezone.utc)

    if not isinstance(value, str):
        return None

    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except ValueError:
        pass

    try:
        parsed = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
