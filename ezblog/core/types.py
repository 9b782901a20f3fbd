"""
Core data types for the content layer.

This module defines the structures that flow between the ingestion stages:
- RawRecord: One workspace record after decoding, before normalization
- Post / Page: Normalized content items (immutable)
- NormalizedContent: Output of the normalizer for one batch
- CacheEntry: The unit stored by the content cache
- ContentResult: Envelope returned to every consumer
- BlockTree: Raw block tree of a single page, used by the renderer path
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar


STATUS_DRAFT = "draft"
STATUS_PUBLISHED = "published"

SOURCE_CACHE = "cache"
SOURCE_FRESH = "fresh"
SOURCE_NONE = "none"
SOURCE_ERROR = "error"

RECORD_DATABASE_ROW = "database_row"
RECORD_SINGLE_PAGE = "single_page"
RECORD_KINDS = (RECORD_DATABASE_ROW, RECORD_SINGLE_PAGE)


@dataclass(frozen=True)
class RawRecord:
    """A workspace record decoded into a tagged variant.

    Attributes:
        id: Workspace-assigned block identifier
        kind: "database_row" or "single_page"
        properties: Property values keyed by lower-cased column name
        created_time: Creation time reported by the workspace, if any
        last_edited_time: Last edit time reported by the workspace, if any
        cover: Page cover URL from the block format, if any
    """
    id: str
    kind: str
    properties: dict[str, Any] = field(default_factory=dict)
    created_time: datetime | None = None
    last_edited_time: datetime | None = None
    cover: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in RECORD_KINDS:
            raise ValueError(f"Unknown record kind: {self.kind}")


@dataclass(frozen=True)
class ContentItem:
    """Fields shared by posts and pages.

    The body is not part of the item; it is fetched per request as a
    block tree keyed by ``id``.
    """
    kind: ClassVar[str] = "item"

    id: str
    slug: str
    title: str
    status: str
    updated_at: datetime
    summary: str = ""
    published_at: datetime | None = None
    cover_image_url: str | None = None
    cover_image_alt: str | None = None
    cover_image_size: str | None = None
    tags: tuple[str, ...] = ()

    @property
    def is_published(self) -> bool:
        return self.status == STATUS_PUBLISHED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "slug": self.slug,
            "title": self.title,
            "summary": self.summary,
            "status": self.status,
            "published_at": _iso(self.published_at),
            "updated_at": _iso(self.updated_at),
            "cover_image_url": self.cover_image_url,
            "cover_image_alt": self.cover_image_alt,
            "cover_image_size": self.cover_image_size,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class Post(ContentItem):
    """A chronological article."""
    kind: ClassVar[str] = "post"


@dataclass(frozen=True)
class Page(ContentItem):
    """Static, non-chronological content such as "About"."""
    kind: ClassVar[str] = "page"


@dataclass
class NormalizedContent:
    """Result of normalizing one batch of raw records.

    Attributes:
        posts: Posts sorted by ``published_at`` descending, undated last
        pages: Pages in input order
        warnings: Human-readable notes about dropped or demoted records
    """
    posts: list[Post] = field(default_factory=list)
    pages: list[Page] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CacheEntry:
    """Immutable snapshot of one successful ingestion.

    Replacing an entry always means publishing a new object.
    """
    posts: tuple[Post, ...]
    pages: tuple[Page, ...]
    fetched_at: float
    source_key: str


@dataclass(frozen=True)
class ContentResult:
    """Envelope handed to consumers.

    Attributes:
        posts: Posts in canonical order
        pages: Pages in input order
        source: "cache", "fresh", "none" or "error"
        error: Error message when the data is degraded or missing
        fetched_at: Epoch seconds of the ingestion that produced the data
        cache_age: Age of the data in seconds when served from cache
    """
    posts: tuple[Post, ...] = ()
    pages: tuple[Page, ...] = ()
    source: str = SOURCE_NONE
    error: str | None = None
    fetched_at: float | None = None
    cache_age: float | None = None

    @classmethod
    def none(cls) -> ContentResult:
        return cls(source=SOURCE_NONE)

    @classmethod
    def failed(cls, error: str) -> ContentResult:
        return cls(source=SOURCE_ERROR, error=error)

    @classmethod
    def from_entry(
        cls,
        entry: CacheEntry,
        source: str,
        now: float | None = None,
        error: str | None = None,
    ) -> ContentResult:
        cache_age = None
        if source == SOURCE_CACHE and now is not None:
            cache_age = max(0.0, now - entry.fetched_at)
        return cls(
            posts=entry.posts,
            pages=entry.pages,
            source=source,
            error=error,
            fetched_at=entry.fetched_at,
            cache_age=cache_age,
        )

    def published_posts(self) -> list[Post]:
        """Published posts in canonical order."""
        return [post for post in self.posts if post.is_published]

    def published_pages(self) -> list[Page]:
        return [page for page in self.pages if page.is_published]

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "posts": [post.to_dict() for post in self.posts],
            "pages": [page.to_dict() for page in self.pages],
            "source": self.source,
        }
        if self.error is not None:
            payload["error"] = self.error
        if self.fetched_at is not None:
            payload["fetched_at"] = _iso(datetime.fromtimestamp(self.fetched_at, timezone.utc))
        if self.cache_age is not None:
            payload["cache_age"] = round(self.cache_age, 3)
        return payload


@dataclass(frozen=True)
class BlockTree:
    """Raw block tree of a single page.

    Attributes:
        page_id: Dashed identifier of the root page block
        record_map: Record map as returned by the workspace
    """
    page_id: str
    record_map: dict[str, Any]

    @property
    def blocks(self) -> dict[str, Any]:
        return self.record_map.get("block") or {}

    def to_dict(self) -> dict[str, Any]:
        return {"page_id": self.page_id, "record_map": self.record_map}


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()
