"""Tests for record normalization into posts and pages."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from ezblog.core.normalizer import map_status, normalize, parse_timestamp, slugify, sort_posts
from ezblog.core.types import RECORD_DATABASE_ROW, RECORD_SINGLE_PAGE, Page, Post, RawRecord


NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def _record(record_id: str, created: datetime | None = None, kind: str = RECORD_DATABASE_ROW, **props) -> RawRecord:
    return RawRecord(id=record_id, kind=kind, properties=props, created_time=created)


def test_slugify():
    assert slugify("Hello, World!") == "hello-world"
    assert slugify("  Café au lait  ") == "caf-au-lait"
    assert slugify("!!!") == "untitled"
    assert len(slugify("word " * 40)) <= 80
    assert not slugify("word " * 40).endswith("-")


@pytest.mark.parametrize(
    "label,expected",
    [
        ("Published", ("published", True)),
        ("live", ("published", True)),
        ("Draft", ("draft", True)),
        (None, ("draft", True)),
        ("Someday maybe", ("draft", False)),
    ],
)
def test_map_status(label, expected):
    assert map_status(label) == expected


def test_parse_timestamp_treats_naive_values_as_utc():
    assert parse_timestamp("2024-03-01") == datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert parse_timestamp("2024-03-01T09:30") == datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None


def test_duplicate_titles_get_suffixed_slugs():
    records = [
        _record("a", title="Hello World", status="Published", date="2024-01-02"),
        _record("b", title="Hello World", status="Published", date="2024-01-01"),
    ]

    result = normalize(records, NOW)

    assert [post.slug for post in result.posts] == ["hello-world", "hello-world-2"]
    assert any("hello-world-2" in warning for warning in result.warnings)


def test_slugs_are_unique_across_posts_and_pages():
    records = [
        _record("a", title="About", status="Published", date="2024-01-01", type="Page"),
        _record("b", title="About", status="Published", date="2024-01-02"),
    ]

    result = normalize(records, NOW)

    assert isinstance(result.pages[0], Page)
    assert isinstance(result.posts[0], Post)
    assert {result.pages[0].slug, result.posts[0].slug} == {"about", "about-2"}


def test_explicit_slug_column_wins_over_title():
    result = normalize([_record("a", title="Some Title", slug="My Custom Slug", date="2024-01-01")], NOW)
    assert result.posts[0].slug == "my-custom-slug"


def test_record_without_title_is_dropped_with_warning():
    records = [
        _record("a", title="Kept", status="Published", date="2024-01-01"),
        _record("b", title="   ", status="Published", date="2024-01-01"),
    ]

    result = normalize(records, NOW)

    assert [post.id for post in result.posts] == ["a"]
    assert len(result.warnings) == 1
    assert "b" in result.warnings[0]


def test_unknown_status_is_draft_with_warning():
    result = normalize([_record("a", title="T", status="Someday", date="2024-01-01")], NOW)

    assert result.posts[0].status == "draft"
    assert "Someday" in result.warnings[0]


def test_published_without_date_is_demoted():
    result = normalize([_record("a", title="T", status="Published")], NOW)

    post = result.posts[0]
    assert post.status == "draft"
    assert post.published_at is None
    assert "no publication date" in result.warnings[0]


def test_published_with_future_date_is_demoted():
    result = normalize([_record("a", title="T", status="Published", date="2030-01-01")], NOW)

    assert result.posts[0].status == "draft"
    assert "future" in result.warnings[0]


def test_created_time_is_publication_fallback():
    created = datetime(2024, 2, 2, tzinfo=timezone.utc)
    result = normalize([_record("a", created=created, title="T", status="Published")], NOW)

    assert result.posts[0].status == "published"
    assert result.posts[0].published_at == created


def test_published_checkbox_forces_published():
    result = normalize([_record("a", title="T", status="Idea", published=True, date="2024-01-01")], NOW)
    assert result.posts[0].is_published


def test_single_page_is_published_post_dated_now():
    record = _record("p", kind=RECORD_SINGLE_PAGE, title="Essay", status="published")

    result = normalize([record], NOW)

    assert result.pages == []
    post = result.posts[0]
    assert post.is_published
    assert post.published_at == NOW
    assert post.updated_at == NOW


def test_optional_fields_and_tags():
    record = _record(
        "a",
        title="T",
        status="Published",
        date="2024-01-01",
        summary="Short intro",
        tags=["python", "web", "python", " "],
        cover="https://img.example.com/x.png",
        **{"hero alt text": "A cat", "hero size": "Big"},
    )

    post = normalize([record], NOW).posts[0]

    assert post.summary == "Short intro"
    assert post.tags == ("python", "web")
    assert post.cover_image_url == "https://img.example.com/x.png"
    assert post.cover_image_alt == "A cat"
    assert post.cover_image_size == "big"


def test_posts_sorted_newest_first_with_undated_last():
    records = [
        _record("old", title="Old", status="Published", date="2024-01-01"),
        _record("undated", title="Undated", status="Draft"),
        _record("new", title="New", status="Published", date="2024-05-01"),
        _record("mid", title="Mid", status="Draft", date="2024-03-01"),
    ]

    result = normalize(records, NOW)

    assert [post.id for post in result.posts] == ["new", "mid", "old", "undated"]


def test_sort_posts_is_stable_for_equal_dates():
    day = datetime(2024, 1, 1, tzinfo=timezone.utc)
    posts = [
        Post(id=str(i), slug=str(i), title=str(i), status="published", updated_at=day, published_at=day)
        for i in range(5)
    ]
    assert [post.id for post in sort_posts(posts)] == ["0", "1", "2", "3", "4"]


def test_pages_keep_input_order():
    records = [
        _record("z", title="Zeta", status="Published", date="2024-01-01", type="page"),
        _record("a", title="Alpha", status="Published", date="2024-02-01", type="page"),
    ]
    assert [page.id for page in normalize(records, NOW).pages] == ["z", "a"]
