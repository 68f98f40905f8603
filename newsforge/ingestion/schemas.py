"""
Canonical schemas for source configuration and normalized headlines.

Source configuration is a tagged union keyed by ``kind``: every adapter
receives only its own config variant. Adapters emit ``RawItemDraft``
records; the fetch coordinator tags them with run and source identifiers
to produce ``RawItem`` rows.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class SourceKind(str, Enum):
    """Supported source kinds."""

    FEED = "feed"
    MAILBOX = "mailbox"
    PAPER_INDEX_A = "paper-index-a"
    PAPER_INDEX_B = "paper-index-b"
    VIDEO = "video"


class _SourceConfigBase(BaseModel):
    """Shared model options for config variants."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class FeedConfig(_SourceConfigBase):
    """RSS/Atom feed: ``{url}``."""

    kind: Literal["feed"] = "feed"
    url: str = Field(..., description="Feed URL")

    @field_validator("url")
    @classmethod
    def url_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("feed source requires a non-empty url")
        return v


class MailboxFilters(_SourceConfigBase):
    """Gmail search filters. All fields are optional."""

    labels: list[str] = Field(default_factory=list)
    senders: list[str] = Field(default_factory=list)
    subjects: list[str] = Field(default_factory=list)
    after: datetime | None = None
    before: datetime | None = None
    max_results: int | None = Field(default=None, ge=1, le=500, alias="maxResults")


class MailboxConfig(_SourceConfigBase):
    """Mailbox newsletters: ``{filters: {...}}``."""

    kind: Literal["mailbox"] = "mailbox"
    filters: MailboxFilters


class ArxivConfig(_SourceConfigBase):
    """General-purpose paper category query: ``{category, max_results?}``."""

    kind: Literal["paper-index-a"] = "paper-index-a"
    category: str = "cs.AI"
    max_results: int = Field(default=20, ge=1, le=2000, alias="maxResults")


class DailyPapersConfig(_SourceConfigBase):
    """Fixed daily paper listing: ``{}`` with an optional ``date`` (YYYY-MM-DD)."""

    kind: Literal["paper-index-b"] = "paper-index-b"
    date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")


class VideoConfig(_SourceConfigBase):
    """Single video page: ``{url, video_id}``."""

    kind: Literal["video"] = "video"
    url: str
    video_id: str = Field(..., min_length=1, alias="videoId")

    @field_validator("url", "video_id")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("video source requires a non-empty url and video_id")
        return v


SourceConfig = Annotated[
    Union[FeedConfig, MailboxConfig, ArxivConfig, DailyPapersConfig, VideoConfig],
    Field(discriminator="kind"),
]

_source_config_adapter: TypeAdapter[SourceConfig] = TypeAdapter(SourceConfig)


def parse_source_config(kind: SourceKind | str, raw: dict) -> SourceConfig:
    """
    Validate a stored JSON config blob against the variant for ``kind``.

    Raises:
        pydantic.ValidationError: If the blob does not match the variant.
    """
    kind_value = kind.value if isinstance(kind, SourceKind) else kind
    return _source_config_adapter.validate_python({**raw, "kind": kind_value})


class RawItemDraft(BaseModel):
    """A normalized headline as produced by an adapter, before run tagging."""

    title: str = Field(..., min_length=1)
    description: str | None = None
    url: str = ""
    published_at: datetime | None = None
    kind: SourceKind


class RawItem(RawItemDraft):
    """
    CANONICAL HEADLINE SCHEMA

    Written in bulk by the fetch coordinator after a source finishes.
    Never mutated after persistence.
    """

    id: int | None = None
    run_id: int
    source_id: int
    is_selected: bool = False
    created_at: datetime = Field(default_factory=_utc_now)

    @classmethod
    def from_draft(cls, draft: RawItemDraft, run_id: int, source_id: int) -> "RawItem":
        """Tag an adapter draft with its run and source."""
        return cls(run_id=run_id, source_id=source_id, **draft.model_dump())
