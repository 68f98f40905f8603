"""Tests for the RSS/Atom feed adapter."""

import httpx
import pytest
import respx

from newsforge.ingestion.errors import ConfigError, NetworkError
from newsforge.ingestion.feed_adapter import FeedAdapter
from newsforge.ingestion.schemas import SourceKind

FEED_URL = "https://blog.example.com/feed.xml"

RSS_BODY = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example Blog</title>
    <link>https://blog.example.com</link>
    <item>
      <title>First post</title>
      <link>https://blog.example.com/first</link>
      <description>&lt;p&gt;Hello &lt;b&gt;world&lt;/b&gt;&lt;/p&gt;</description>
      <pubDate>Mon, 02 Mar 2026 10:00:00 GMT</pubDate>
    </item>
    <item>
      <link>https://blog.example.com/second</link>
      <description>No title here</description>
    </item>
  </channel>
</rss>
"""


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleeper() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def adapter(sleeper: SleepRecorder) -> FeedAdapter:
    return FeedAdapter(sleep=sleeper)


class TestFeedFetch:
    """Parsing and normalization of feed entries."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_parses_entries(self, adapter: FeedAdapter):
        respx.get(FEED_URL).mock(return_value=httpx.Response(200, text=RSS_BODY))

        items = await adapter.fetch({"url": FEED_URL})

        assert len(items) == 2
        first = items[0]
        assert first.title == "First post"
        assert first.url == "https://blog.example.com/first"
        assert first.description == "Hello world"
        assert first.kind == SourceKind.FEED
        assert first.published_at is not None
        assert (first.published_at.year, first.published_at.month, first.published_at.day) == (2026, 3, 2)

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_title_defaults_to_untitled(self, adapter: FeedAdapter):
        respx.get(FEED_URL).mock(return_value=httpx.Response(200, text=RSS_BODY))

        items = await adapter.fetch({"url": FEED_URL})

        assert items[1].title == "Untitled"
        assert items[1].published_at is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_sends_user_agent(self):
        route = respx.get(FEED_URL).mock(return_value=httpx.Response(200, text=RSS_BODY))

        await FeedAdapter(user_agent="TestAgent/2.0").fetch({"url": FEED_URL})

        assert route.calls.last.request.headers["User-Agent"] == "TestAgent/2.0"

    @pytest.mark.asyncio
    async def test_blank_url_is_config_error(self, adapter: FeedAdapter):
        with pytest.raises(ConfigError):
            await adapter.fetch({"url": "   "})

    @pytest.mark.asyncio
    async def test_missing_url_is_config_error(self, adapter: FeedAdapter):
        with pytest.raises(ConfigError, match="url"):
            await adapter.fetch({})


class TestFeedRetry:
    """The feed adapter is the only one that retries."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_three_attempts_with_growing_delays(
        self, adapter: FeedAdapter, sleeper: SleepRecorder
    ):
        route = respx.get(FEED_URL).mock(return_value=httpx.Response(500))

        with pytest.raises(NetworkError) as exc_info:
            await adapter.fetch({"url": FEED_URL})

        assert route.call_count == 3
        assert sleeper.delays == [1.0, 2.0]
        assert sleeper.delays == sorted(sleeper.delays)
        assert "3 attempts" in exc_info.value.message

    @pytest.mark.asyncio
    @respx.mock
    async def test_recovers_on_second_attempt(
        self, adapter: FeedAdapter, sleeper: SleepRecorder
    ):
        route = respx.get(FEED_URL).mock(
            side_effect=[
                httpx.ConnectError("refused"),
                httpx.Response(200, text=RSS_BODY),
            ]
        )

        items = await adapter.fetch({"url": FEED_URL})

        assert len(items) == 2
        assert route.call_count == 2
        assert sleeper.delays == [1.0]

    @pytest.mark.asyncio
    @respx.mock
    async def test_recovers_on_third_attempt(
        self, adapter: FeedAdapter, sleeper: SleepRecorder
    ):
        route = respx.get(FEED_URL).mock(
            side_effect=[
                httpx.ConnectError("refused"),
                httpx.Response(500),
                httpx.Response(200, text=RSS_BODY),
            ]
        )

        items = await adapter.fetch({"url": FEED_URL})

        assert [i.title for i in items] == ["First post", "Untitled"]
        assert route.call_count == 3
        assert sleeper.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    @respx.mock
    async def test_custom_attempt_count(self, sleeper: SleepRecorder):
        route = respx.get(FEED_URL).mock(return_value=httpx.Response(502))
        adapter = FeedAdapter(max_attempts=2, base_delay=0.5, sleep=sleeper)

        with pytest.raises(NetworkError, match="2 attempts"):
            await adapter.fetch({"url": FEED_URL})

        assert route.call_count == 2
        assert sleeper.delays == [0.5]


class TestFeedDiscovery:
    """Feed discovery and validation helpers."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_discovers_link_tags(self, adapter: FeedAdapter):
        html = """
        <html><head>
          <link rel="alternate" type="application/rss+xml" title="Main" href="/feed.xml">
          <link rel="alternate" type="application/atom+xml" href="https://blog.example.com/atom">
          <link rel="alternate" type="text/html" href="/fr">
        </head></html>
        """
        respx.get("https://blog.example.com/").mock(return_value=httpx.Response(200, text=html))

        feeds = await adapter.discover_feeds("https://blog.example.com/")

        assert [(f.url, f.type, f.title) for f in feeds] == [
            ("https://blog.example.com/feed.xml", "rss", "Main"),
            ("https://blog.example.com/atom", "atom", None),
        ]

    @pytest.mark.asyncio
    @respx.mock
    async def test_falls_back_to_common_paths(self, adapter: FeedAdapter):
        respx.get("https://blog.example.com/").mock(
            return_value=httpx.Response(200, text="<html></html>")
        )
        respx.get("https://blog.example.com/rss").mock(
            return_value=httpx.Response(200, text=RSS_BODY)
        )
        respx.get(url__regex=r"https://blog\.example\.com/(feed|atom\.xml|feed\.xml|rss\.xml)$").mock(
            return_value=httpx.Response(404)
        )

        feeds = await adapter.discover_feeds("https://blog.example.com/")

        assert [f.url for f in feeds] == ["https://blog.example.com/rss"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_discovers_unquoted_link_attributes(
        self, adapter: FeedAdapter, sleeper: SleepRecorder
    ):
        html = (
            "<!doctype html><html><head>"
            "<link rel=alternate type=application/rss+xml href=/feeds/main.xml>"
            "</head><body></body></html>"
        )
        respx.get("https://site.example/").mock(return_value=httpx.Response(200, text=html))
        common_paths = respx.get(url__regex=r"https://site\.example/(feed|rss|atom\.xml|feed\.xml|rss\.xml)$").mock(
            return_value=httpx.Response(404)
        )

        feeds = await adapter.discover_feeds("https://site.example/")

        assert [f.url for f in feeds] == ["https://site.example/feeds/main.xml"]
        assert feeds[0].type == "rss"
        assert common_paths.call_count == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_common_paths_tried_once_each(
        self, adapter: FeedAdapter, sleeper: SleepRecorder
    ):
        respx.get("https://site.example/").mock(return_value=httpx.Response(200, text="<html></html>"))
        common_paths = respx.get(url__regex=r"https://site\.example/(feed|rss|atom\.xml|feed\.xml|rss\.xml)$").mock(
            return_value=httpx.Response(404)
        )

        assert await adapter.discover_feeds("https://site.example/") == []
        assert common_paths.call_count == 5
        assert sleeper.delays == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_validate_feed(self, adapter: FeedAdapter):
        respx.get(FEED_URL).mock(return_value=httpx.Response(200, text=RSS_BODY))

        result = await adapter.validate_feed(FEED_URL)

        assert result.valid is True
        assert result.title == "Example Blog"

    @pytest.mark.asyncio
    @respx.mock
    async def test_validate_feed_failure(self, adapter: FeedAdapter):
        respx.get(FEED_URL).mock(return_value=httpx.Response(404))

        result = await adapter.validate_feed(FEED_URL)

        assert result.valid is False
        assert "3 attempts" in result.error
