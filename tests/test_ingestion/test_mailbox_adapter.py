"""Tests for the Gmail mailbox adapter."""

import base64
from datetime import datetime, timezone

import httpx
import pytest
import respx

from newsforge.ingestion.errors import AuthError, ConfigError, NetworkError
from newsforge.ingestion.mailbox_adapter import (
    GMAIL_API_BASE,
    MailboxAdapter,
    StaticTokenProvider,
    build_query,
    extract_links,
)
from newsforge.ingestion.schemas import MailboxFilters, SourceKind


def _b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode()).decode().rstrip("=")


def _message(message_id: str, subject: str | None, body: str, date: str | None = None) -> dict:
    headers = [{"name": "From", "value": "Newsletter <news@example.com>"}]
    if subject is not None:
        headers.append({"name": "Subject", "value": subject})
    if date is not None:
        headers.append({"name": "Date", "value": date})
    return {
        "id": message_id,
        "snippet": "This week in AI &amp; more",
        "payload": {
            "headers": headers,
            "body": {"size": 0},
            "parts": [
                {"mimeType": "text/plain", "body": {"data": _b64(body)}},
            ],
        },
    }


@pytest.fixture
def adapter() -> MailboxAdapter:
    return MailboxAdapter(StaticTokenProvider("token-123"))


class TestBuildQuery:
    """Gmail search query construction."""

    def test_empty_filters(self):
        assert build_query(MailboxFilters()) == ""

    def test_groups_and_dates(self):
        filters = MailboxFilters(
            labels=["newsletters"],
            senders=["a@x.com", "b@y.com"],
            subjects=["weekly"],
            after=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )

        query = build_query(filters)

        assert query == (
            "label:newsletters from:a@x.com OR from:b@y.com subject:weekly "
            f"after:{int(datetime(2026, 1, 1, tzinfo=timezone.utc).timestamp())}"
        )

    def test_camel_case_max_results(self):
        assert MailboxFilters.model_validate({"maxResults": 5}).max_results == 5


class TestExtractLinks:
    def test_skips_tracking_and_unsubscribe(self):
        body = (
            "Read https://click.mail.example.com/abc then "
            "https://example.com/story and https://example.com/unsubscribe?u=1 "
            "and again https://example.com/story"
        )
        assert extract_links(body) == ["https://example.com/story"]


class TestMailboxFetch:
    """End-to-end fetch against a mocked Gmail API."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetches_messages(self, adapter: MailboxAdapter):
        listing = respx.get(f"{GMAIL_API_BASE}/messages").mock(
            return_value=httpx.Response(200, json={"messages": [{"id": "m1"}, {"id": "m2"}]})
        )
        respx.get(f"{GMAIL_API_BASE}/messages/m1").mock(
            return_value=httpx.Response(
                200,
                json=_message(
                    "m1",
                    "AI Weekly #12",
                    "Top story: https://example.com/story-1",
                    date="Tue, 03 Mar 2026 08:00:00 +0000",
                ),
            )
        )
        respx.get(f"{GMAIL_API_BASE}/messages/m2").mock(
            return_value=httpx.Response(200, json=_message("m2", None, "No links here"))
        )

        items = await adapter.fetch(
            {"filters": {"senders": ["news@example.com"], "maxResults": 5}}, user_id=7
        )

        request = listing.calls.last.request
        assert request.headers["Authorization"] == "Bearer token-123"
        assert request.url.params["q"] == "from:news@example.com"
        assert request.url.params["maxResults"] == "5"

        assert len(items) == 2
        first, second = items
        assert first.title == "AI Weekly #12"
        assert first.url == "https://example.com/story-1"
        assert first.description == "This week in AI & more"
        assert first.published_at == datetime(2026, 3, 3, 8, 0, tzinfo=timezone.utc)
        assert first.kind == SourceKind.MAILBOX

        assert second.title == "(no subject)"
        assert second.url == "mailto:Newsletter <news@example.com>"
        assert second.published_at is not None

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_listing(self, adapter: MailboxAdapter):
        respx.get(f"{GMAIL_API_BASE}/messages").mock(
            return_value=httpx.Response(200, json={"resultSizeEstimate": 0})
        )

        assert await adapter.fetch({"filters": {}}) == []

    @pytest.mark.asyncio
    async def test_missing_token_is_auth_error(self):
        adapter = MailboxAdapter(StaticTokenProvider(None))

        with pytest.raises(AuthError, match="not authenticated"):
            await adapter.fetch({"filters": {}})

    @pytest.mark.asyncio
    @respx.mock
    async def test_expired_token_is_auth_error(self, adapter: MailboxAdapter):
        respx.get(f"{GMAIL_API_BASE}/messages").mock(return_value=httpx.Response(401))

        with pytest.raises(AuthError):
            await adapter.fetch({"filters": {}})

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_fails_fast(self, adapter: MailboxAdapter):
        route = respx.get(f"{GMAIL_API_BASE}/messages").mock(return_value=httpx.Response(500))

        with pytest.raises(NetworkError):
            await adapter.fetch({"filters": {}})

        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_filters_is_config_error(self, adapter: MailboxAdapter):
        with pytest.raises(ConfigError, match="filters"):
            await adapter.fetch({})
