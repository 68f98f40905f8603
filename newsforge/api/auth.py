"""
API authentication using X-API-KEY header.

When ``API_KEYS`` is unset every request is allowed (dev mode).
"""

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from newsforge.config.settings import get_settings

api_key_header = APIKeyHeader(name="X-API-KEY", auto_error=False)


def _configured_keys() -> list[str] | None:
    """Comma-separated API_KEYS as a list, or None in dev mode."""
    settings = get_settings()
    if not settings.api_keys:
        return None
    return [k.strip() for k in settings.api_keys.split(",") if k.strip()]


def is_valid_api_key(api_key: str | None) -> bool:
    """Check a key against the configured ones.

    Shared by header auth and the WebSocket query-param auth.
    """
    keys = _configured_keys()
    if keys is None:
        return True
    return api_key is not None and api_key in keys


async def verify_api_key(api_key: str | None = Security(api_key_header)) -> str:
    """
    Verify API key from X-API-KEY header.

    Returns:
        The validated API key ("dev-mode" when auth is disabled)

    Raises:
        HTTPException: If API key is missing or invalid
    """
    if _configured_keys() is None:
        return "dev-mode"

    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-KEY header.",
        )

    if not is_valid_api_key(api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )

    return api_key
