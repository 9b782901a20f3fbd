"""Tests for workspace record map decoding."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from ezblog.core.errors import NotFound
from ezblog.core.records import extract_text, parse_page_id, parse_record_map, record_value
from ezblog.core.types import RECORD_DATABASE_ROW, RECORD_SINGLE_PAGE

from conftest import COLLECTION_ID, ROOT_ID, SCHEMA, WORKSPACE_URL, database_map, row, row_id


def test_parse_page_id_from_url_and_raw_ids():
    assert parse_page_id(WORKSPACE_URL) == ROOT_ID
    assert parse_page_id("0123456789ABCDEF0123456789ABCDEF") == ROOT_ID
    assert parse_page_id(ROOT_ID) == ROOT_ID
    assert parse_page_id("https://www.notion.so/0123456789abcdef0123456789abcdef/") == ROOT_ID


@pytest.mark.parametrize("value", ["", "not-an-id", "https://www.notion.so/acme/Blog"])
def test_parse_page_id_rejects_values_without_identifier(value):
    with pytest.raises(NotFound):
        parse_page_id(value)


def test_extract_text_flattens_rich_text():
    assert extract_text([["Hello ", [["b"]]], ["world"]]) == "Hello world"
    assert extract_text(None) == ""
    assert extract_text("plain") == "plain"


def test_record_value_unwraps_nested_value():
    table = {"x": {"value": {"value": {"id": "x", "type": "page"}, "role": "reader"}}}
    assert record_value(table, "x") == {"id": "x", "type": "page"}
    assert record_value(table, "missing") is None
    assert record_value(None, "x") is None


def test_parse_record_map_decodes_database_rows():
    record_map = database_map(
        row(1, "Hello", date="2024-03-01", tags="a, b", slug="custom", summary="Intro"),
        row(2, "Draft", status="Draft"),
    )

    records, warnings = parse_record_map(record_map, ROOT_ID)

    assert warnings == []
    assert [record.id for record in records] == [row_id(1), row_id(2)]
    first = records[0]
    assert first.kind == RECORD_DATABASE_ROW
    assert first.properties["title"] == "Hello"
    assert first.properties["status"] == "Published"
    assert first.properties["date"] == "2024-03-01"
    assert first.properties["tags"] == ["a", "b"]
    assert first.properties["slug"] == "custom"
    assert first.properties["summary"] == "Intro"
    assert first.created_time == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert records[1].properties["status"] == "Draft"


def test_parse_record_map_warns_on_unsupported_columns_and_skips_foreign_rows():
    schema = dict(SCHEMA)
    schema["pp"] = {"name": "Owner", "type": "person"}
    foreign_id, foreign = row(9, "Elsewhere")
    foreign["value"]["parent_id"] = "other-collection"

    records, warnings = parse_record_map(database_map(row(1, "Kept"), (foreign_id, foreign), schema=schema), ROOT_ID)

    assert [record.id for record in records] == [row_id(1)]
    assert len(warnings) == 1
    assert "Owner" in warnings[0]


def test_parse_record_map_drops_undecodable_row_with_warning():
    bad_id, bad = row(2, "Broken")
    bad["value"]["properties"]["dt"] = [["‣", "not-a-list"]]

    records, warnings = parse_record_map(database_map(row(1, "Good"), (bad_id, bad)), ROOT_ID)

    assert [record.id for record in records] == [row_id(1)]
    assert len(warnings) == 1
    assert bad_id in warnings[0]


def test_parse_record_map_single_page():
    record_map = {
        "block": {
            ROOT_ID: {
                "value": {
                    "id": ROOT_ID,
                    "type": "page",
                    "properties": {"title": [["My Essay"]]},
                    "format": {"page_cover": "https://img.example.com/c.png"},
                }
            }
        }
    }

    records, warnings = parse_record_map(record_map, ROOT_ID)

    assert warnings == []
    assert len(records) == 1
    assert records[0].kind == RECORD_SINGLE_PAGE
    assert records[0].properties == {"title": "My Essay", "status": "published"}
    assert records[0].cover == "https://img.example.com/c.png"


def test_parse_record_map_without_root_raises_not_found():
    with pytest.raises(NotFound):
        parse_record_map({"block": {}}, ROOT_ID)


def test_parse_record_map_skips_non_object_schema_entries():
    schema = dict(SCHEMA)
    schema["bad"] = "not-an-object"

    records, warnings = parse_record_map(database_map(row(1, "Kept", date="2024-03-01"), schema=schema), ROOT_ID)

    assert [record.id for record in records] == [row_id(1)]
    assert records[0].properties["title"] == "Kept"
    assert len(warnings) == 1
    assert "bad" in warnings[0]


def test_parse_record_map_ignores_non_object_schema():
    record_map = database_map(row(1, "Untitled row"))
    record_map["collection"][COLLECTION_ID]["value"]["schema"] = ["title"]

    records, warnings = parse_record_map(record_map, ROOT_ID)

    assert len(records) == 1
    assert records[0].properties == {}
    assert "non-object schema" in warnings[0]
