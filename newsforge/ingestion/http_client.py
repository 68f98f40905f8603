"""
HTTP plumbing shared by the source adapters.

Provides:
- LinearBackoff: the wait schedule used between feed download attempts
- HTTPClient: a fail-fast async GET client that raises on 4xx/5xx
- to_fetch_error: maps transport failures onto the adapter error taxonomy

Adapters decide whether to retry; the client itself never does.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from newsforge.ingestion.errors import AuthError, FetchError, NetworkError

logger = logging.getLogger(__name__)

AUTH_STATUSES = frozenset({401, 403})


@dataclass(frozen=True)
class LinearBackoff:
    """
    Attempt budget with linearly growing waits.

    After failed attempt ``n`` (1-indexed) the caller waits
    ``min(base_delay * n, max_delay)``. With the defaults that is 1s, then 2s.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_after(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt (1-indexed)."""
        return min(self.base_delay * attempt, self.max_delay)

    def schedule(self) -> list[float]:
        """Every wait between the configured attempts, in order."""
        return [self.delay_after(n) for n in range(1, self.max_attempts)]


class HTTPClientError(Exception):
    """An HTTP request came back with an error status."""

    def __init__(self, message: str, status_code: int, response_body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


def to_fetch_error(exc: Exception, context: str) -> FetchError:
    """
    Convert a transport exception into the adapter error taxonomy.

    401/403 responses become ``AuthError``; every other transport failure
    becomes ``NetworkError``. ``FetchError`` instances pass through.
    """
    if isinstance(exc, FetchError):
        return exc
    if isinstance(exc, HTTPClientError):
        if exc.status_code in AUTH_STATUSES:
            return AuthError(f"{context}: authentication failed ({exc.status_code})")
        return NetworkError(f"{context}: {exc}")
    if isinstance(exc, httpx.HTTPError):
        return NetworkError(f"{context}: {type(exc).__name__}: {exc}")
    return NetworkError(f"{context}: {exc}")


class HTTPClient:
    """
    Thin async context manager over ``httpx.AsyncClient``.

    Example:
        async with HTTPClient(timeout=30.0, headers={"User-Agent": "NewsForge/1.0"}) as client:
            response = await client.get("https://export.arxiv.org/api/query", params=...)
    """

    def __init__(self, timeout: float = 30.0, headers: dict[str, str] | None = None):
        self.timeout = timeout
        self._headers = dict(headers) if headers else {}
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HTTPClient":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers=self._headers,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Perform one GET request.

        Raises:
            HTTPClientError: On a 4xx/5xx response
            httpx.HTTPError: On timeouts and connection failures
        """
        if not self._client:
            raise RuntimeError("HTTPClient must be used as async context manager")

        response = await self._client.get(url, params=params, headers=headers)
        if response.status_code >= 400:
            logger.debug(f"GET {url} returned {response.status_code}")
            raise HTTPClientError(
                f"Request failed with status {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
            )
        return response
