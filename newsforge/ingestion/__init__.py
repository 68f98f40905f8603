"""Source ingestion - adapters, schemas, and the adapter registry."""

from newsforge.ingestion.base_adapter import BaseAdapter
from newsforge.ingestion.errors import (
    AuthError,
    ConfigError,
    FetchError,
    FetchErrorKind,
    NetworkError,
    ParseError,
)
from newsforge.ingestion.registry import AdapterRegistry, build_adapter_registry
from newsforge.ingestion.schemas import (
    RawItem,
    RawItemDraft,
    SourceKind,
    parse_source_config,
)

__all__ = [
    "AdapterRegistry",
    "AuthError",
    "BaseAdapter",
    "ConfigError",
    "FetchError",
    "FetchErrorKind",
    "NetworkError",
    "ParseError",
    "RawItem",
    "RawItemDraft",
    "SourceKind",
    "build_adapter_registry",
    "parse_source_config",
]
