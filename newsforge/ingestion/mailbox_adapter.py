"""
Mailbox newsletter adapter (Gmail REST API).

Builds a Gmail search query from the source's filters, lists matching
messages, fetches each one in full and turns it into a headline:
- title: the Subject header
- description: Gmail's snippet
- url: first non-tracking link in the body, else ``mailto:<sender>``

Access tokens come from a ``CredentialProvider``; acquiring and refreshing
them is the provider's job. A missing token is an ``AuthError``.
"""

import base64
import logging
import re
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Any, Protocol

from newsforge.ingestion.base_adapter import BaseAdapter, clean_text, html_to_text, parse_datetime
from newsforge.ingestion.errors import AuthError
from newsforge.ingestion.http_client import HTTPClient
from newsforge.ingestion.schemas import MailboxConfig, MailboxFilters, RawItemDraft, SourceKind

logger = logging.getLogger(__name__)

GMAIL_API_BASE = "https://gmail.googleapis.com/gmail/v1/users/me"

_URL_RE = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)
_LINK_BLOCKLIST = ("unsubscribe", "mailto:", "tracking", "click.")


class CredentialProvider(Protocol):
    """Supplies mailbox access tokens per user."""

    async def get_access_token(self, user_id: int | None) -> str | None:
        ...


class StaticTokenProvider:
    """Returns one configured token for every user."""

    def __init__(self, token: str | None):
        self._token = token

    async def get_access_token(self, user_id: int | None) -> str | None:
        return self._token


def build_query(filters: MailboxFilters) -> str:
    """
    Build a Gmail search query from mailbox filters.

    Each list becomes an OR-group; dates become epoch-second bounds.
    """
    parts: list[str] = []
    if filters.labels:
        parts.append(" OR ".join(f"label:{label}" for label in filters.labels))
    if filters.senders:
        parts.append(" OR ".join(f"from:{sender}" for sender in filters.senders))
    if filters.subjects:
        parts.append(" OR ".join(f"subject:{subject}" for subject in filters.subjects))
    if filters.after:
        parts.append(f"after:{int(_as_utc(filters.after).timestamp())}")
    if filters.before:
        parts.append(f"before:{int(_as_utc(filters.before).timestamp())}")
    return " ".join(parts)


def extract_links(body: str) -> list[str]:
    """Unique http(s) links in order of appearance, minus tracking/unsubscribe links."""
    links: list[str] = []
    for url in _URL_RE.findall(body):
        lower = url.lower()
        if any(marker in lower for marker in _LINK_BLOCKLIST):
            continue
        if url not in links:
            links.append(url)
    return links


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _decode_body(data: str) -> str:
    padded = data + "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")


def _extract_body_from_parts(parts: list[dict[str, Any]]) -> str:
    for part in parts:
        data = (part.get("body") or {}).get("data")
        if part.get("mimeType") in ("text/plain", "text/html") and data:
            return _decode_body(data)
        if part.get("parts"):
            nested = _extract_body_from_parts(part["parts"])
            if nested:
                return nested
    return ""


class MailboxAdapter(BaseAdapter):
    """Gmail newsletter adapter."""

    def __init__(
        self,
        credentials: CredentialProvider,
        timeout: float = 30.0,
        user_agent: str = "NewsForge/1.0",
        default_max_results: int = 20,
        api_base: str = GMAIL_API_BASE,
    ):
        super().__init__(timeout=timeout, user_agent=user_agent)
        self._credentials = credentials
        self._default_max_results = default_max_results
        self._api_base = api_base.rstrip("/")

    @property
    def kind(self) -> SourceKind:
        return SourceKind.MAILBOX

    async def _fetch_raw(
        self, config: MailboxConfig, user_id: int | None
    ) -> AsyncIterator[dict[str, Any]]:
        token = await self._credentials.get_access_token(user_id)
        if not token:
            raise AuthError("Mailbox not authenticated: no access token available")

        headers = {**self._default_headers(), "Authorization": f"Bearer {token}"}
        params = {
            "q": build_query(config.filters),
            "maxResults": config.filters.max_results or self._default_max_results,
        }

        async with HTTPClient(timeout=self._timeout, headers=headers) as client:
            listing = (await client.get(f"{self._api_base}/messages", params=params)).json()
            messages = listing.get("messages") or []
            logger.debug(f"Mailbox query {params['q']!r} matched {len(messages)} messages")

            for message in messages:
                message_id = message.get("id")
                if not message_id:
                    continue
                response = await client.get(
                    f"{self._api_base}/messages/{message_id}",
                    params={"format": "full"},
                )
                yield {"message": response.json()}

    def _transform(self, raw: dict[str, Any]) -> RawItemDraft | None:
        message = raw["message"]
        payload = message.get("payload")
        if not message.get("id") or not payload:
            return None

        headers = {
            (h.get("name") or "").lower(): h.get("value") or ""
            for h in payload.get("headers") or []
        }
        subject = clean_text(headers.get("subject", ""))
        sender = headers.get("from", "")

        body_data = (payload.get("body") or {}).get("data")
        if body_data:
            body = _decode_body(body_data)
        else:
            body = _extract_body_from_parts(payload.get("parts") or [])

        links = extract_links(body)
        published = parse_datetime(headers.get("date")) or datetime.now(timezone.utc)

        return RawItemDraft(
            title=subject or "(no subject)",
            description=html_to_text(message.get("snippet") or "") or None,
            url=links[0] if links else f"mailto:{sender}",
            published_at=published,
            kind=SourceKind.MAILBOX,
        )
