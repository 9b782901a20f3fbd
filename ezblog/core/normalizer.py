"""
Normalization of raw workspace records into posts and pages.

``normalize`` is a pure function: the ingestion time is passed in and every
problem is returned as a warning instead of being logged. A malformed record
is dropped on its own and never breaks the rest of the batch.
"""

from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Any, Iterable

from .errors import MalformedRecord
from .types import (
    RECORD_SINGLE_PAGE,
    STATUS_DRAFT,
    STATUS_PUBLISHED,
    NormalizedContent,
    Page,
    Post,
    RawRecord,
)


SLUG_MAX_LENGTH = 80

# Every label a workspace is known to use. Anything else is treated as draft.
STATUS_LABELS: dict[str, str] = {
    "published": STATUS_PUBLISHED,
    "public": STATUS_PUBLISHED,
    "live": STATUS_PUBLISHED,
    "done": STATUS_PUBLISHED,
    "": STATUS_DRAFT,
    "draft": STATUS_DRAFT,
    "idea": STATUS_DRAFT,
    "in progress": STATUS_DRAFT,
    "review": STATUS_DRAFT,
    "scheduled": STATUS_DRAFT,
    "archived": STATUS_DRAFT,
    "private": STATUS_DRAFT,
    "hidden": STATUS_DRAFT,
}

SLUG_COLUMNS = ("slug", "url", "permalink")
TYPE_COLUMNS = ("type", "contenttype", "content type")
SUMMARY_COLUMNS = ("summary", "excerpt", "description", "subtitle", "intro")
TAG_COLUMNS = ("tags", "categories", "labels")
DATE_COLUMNS = ("date", "published_date", "publishedat", "publish date", "created")
COVER_COLUMNS = ("hero image", "heroimage", "hero_image", "cover", "image", "thumbnail", "banner")
COVER_ALT_COLUMNS = ("hero alt text", "hero alt", "heroalttext", "hero_alt_text", "alt text", "alttext")
COVER_SIZE_COLUMNS = ("hero size", "herosize", "hero_size")


def slugify(text: str) -> str:
    """Convert text to a URL-safe slug.

    Args:
        text: The text to slugify

    Returns:
        A lowercase, hyphenated slug limited to SLUG_MAX_LENGTH characters,
        or "untitled" when nothing usable remains
    """
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    return slug or "untitled"


def map_status(label: Any) -> tuple[str, bool]:
    """Map a workspace status label to the internal status.

    Returns:
        A tuple of (status, recognized). Unrecognized labels map to draft.
    """
    key = str(label or "").strip().lower()
    status = STATUS_LABELS.get(key)
    if status is None:
        return STATUS_DRAFT, False
    return status, True


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO date or datetime string into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize(records: Iterable[RawRecord], now: datetime) -> NormalizedContent:
    """Normalize a batch of raw records.

    Args:
        records: Raw records in workspace order
        now: Ingestion time, used for the publication check and as the
             last-resort ``updated_at``

    Returns:
        NormalizedContent with posts sorted newest first (undated last),
        pages in input order, and slugs unique across both lists
    """
    result = NormalizedContent()
    taken: set[str] = set()

    for record in records:
        try:
            item = _normalize_record(record, now, taken, result.warnings)
        except MalformedRecord as exc:
            result.warnings.append(str(exc))
            continue
        if isinstance(item, Page):
            result.pages.append(item)
        else:
            result.posts.append(item)

    result.posts = sort_posts(result.posts)
    return result


def sort_posts(posts: Iterable[Post]) -> list[Post]:
    """Canonical post order: ``published_at`` descending, undated posts last.

    The sort is stable so posts with equal dates keep their input order.
    """
    posts = list(posts)
    dated = [post for post in posts if post.published_at is not None]
    undated = [post for post in posts if post.published_at is None]
    dated.sort(key=lambda post: post.published_at, reverse=True)
    return dated + undated


def unique_slug(base: str, taken: set[str]) -> str:
    """Return ``base`` or the first free ``base-N`` (N >= 2) and reserve it."""
    candidate = base
    counter = 2
    while candidate in taken:
        candidate = f"{base}-{counter}"
        counter += 1
    taken.add(candidate)
    return candidate


def _normalize_record(
    record: RawRecord,
    now: datetime,
    taken: set[str],
    warnings: list[str],
) -> Post | Page:
    props = record.properties
    title = str(props.get("title") or "").strip()
    if not title:
        raise MalformedRecord(f"Dropping record {record.id}: missing title", record_id=record.id)

    explicit_slug = _first(props, SLUG_COLUMNS)
    base_slug = slugify(str(explicit_slug)) if explicit_slug else slugify(title)
    slug = unique_slug(base_slug, taken)
    if slug != base_slug:
        warnings.append(f"Record {record.id}: slug {base_slug!r} already used, renamed to {slug!r}")

    status, recognized = map_status(props.get("status"))
    if not recognized:
        warnings.append(
            f"Record {record.id}: unknown status {props.get('status')!r}, treated as draft"
        )
    if props.get("published") is True:
        status = STATUS_PUBLISHED

    published_at = parse_timestamp(_first(props, DATE_COLUMNS)) or record.created_time
    if published_at is None and record.kind == RECORD_SINGLE_PAGE:
        published_at = now
    if status == STATUS_PUBLISHED and (published_at is None or published_at > now):
        reason = "no publication date" if published_at is None else "publication date in the future"
        warnings.append(f"Record {record.id}: {reason}, kept as draft")
        status = STATUS_DRAFT

    kind = str(_first(props, TYPE_COLUMNS) or "post").strip().lower()
    item_cls = Page if kind == "page" else Post

    size = str(_first(props, COVER_SIZE_COLUMNS) or "").strip().lower()

    return item_cls(
        id=record.id,
        slug=slug,
        title=title,
        status=status,
        updated_at=record.last_edited_time or published_at or now,
        summary=str(_first(props, SUMMARY_COLUMNS) or ""),
        published_at=published_at,
        cover_image_url=_first(props, COVER_COLUMNS) or record.cover,
        cover_image_alt=_first(props, COVER_ALT_COLUMNS),
        cover_image_size=size if size in ("big", "small") else None,
        tags=_tags(_first(props, TAG_COLUMNS)),
    )


def _first(props: dict[str, Any], columns: tuple[str, ...]) -> Any:
    for column in columns:
        value = props.get(column)
        if value not in (None, "", []):
            return value
    return None


def _tags(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    seen: list[str] = []
    for tag in value:
        tag = str(tag).strip()
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)
