"""
Typed adapter failures.

Every unrecoverable adapter condition surfaces as a ``FetchError`` carrying
a ``kind`` so the fetch coordinator can label the source error uniformly.
"""

from enum import Enum


class FetchErrorKind(str, Enum):
    """Categories of adapter failure."""

    NETWORK = "network"
    PARSE = "parse"
    AUTH = "auth"
    CONFIG = "config"


class FetchError(Exception):
    """Base exception for adapter failures."""

    kind: FetchErrorKind = FetchErrorKind.PARSE

    def __init__(self, message: str, kind: FetchErrorKind | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    def __str__(self) -> str:
        return self.message


class ConfigError(FetchError):
    """Bad or missing source configuration. Never retried."""

    kind = FetchErrorKind.CONFIG


class NetworkError(FetchError):
    """Transient transport failure. Retried only by the feed adapter."""

    kind = FetchErrorKind.NETWORK


class ParseError(FetchError):
    """Payload could not be turned into headlines."""

    kind = FetchErrorKind.PARSE


class AuthError(FetchError):
    """Expired or missing credential; callers should prompt re-authentication."""

    kind = FetchErrorKind.AUTH
