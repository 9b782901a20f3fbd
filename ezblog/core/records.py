"""
Decoding of workspace record maps into tagged raw records.

A record map is the JSON document returned by the workspace: a set of
tables (``block``, ``collection``, ``collection_view``...) mapping
identifiers to ``{"value": {...}}``. This module turns it into a flat list
of RawRecord variants so the normalizer never has to guess at shapes.
"""

from __future__ import annotations

from datetime import datetime, timezone
import re
from typing import Any
from urllib.parse import urlsplit

from .errors import MalformedRecord, NotFound
from .types import RECORD_DATABASE_ROW, RECORD_SINGLE_PAGE, RawRecord


_HEX_ID_RE = re.compile(r"([0-9a-f]{32})$")

# Schema property types that carry content worth decoding
_SUPPORTED_TYPES = {
    "title",
    "text",
    "rich_text",
    "select",
    "multi_select",
    "date",
    "checkbox",
    "url",
    "file",
}


def parse_page_id(value: str) -> str:
    """Extract a dashed page identifier from a workspace URL or raw id.

    Args:
        value: A URL such as ``https://www.notion.so/ws/Blog-<32 hex>?v=...``,
               a bare 32-character id, or an already dashed UUID

    Returns:
        The identifier in ``8-4-4-4-12`` form, lower-cased

    Raises:
        NotFound: If no identifier can be found in the value

    Examples:
        >>> parse_page_id("https://www.notion.so/Blog-0123456789abcdef0123456789abcdef")
        '01234567-89ab-cdef-0123-456789abcdef'
    """
    text = (value or "").strip()
    path = urlsplit(text).path if "://" in text else text.split("?", 1)[0]
    segment = path.rstrip("/").rsplit("/", 1)[-1]
    compact = segment.replace("-", "").lower()
    match = _HEX_ID_RE.search(compact)
    if not match:
        raise NotFound(f"No page identifier in {value!r}")
    raw = match.group(1)
    return f"{raw[:8]}-{raw[8:12]}-{raw[12:16]}-{raw[16:20]}-{raw[20:]}"


def extract_text(value: Any) -> str:
    """Flatten a rich-text property (``[["Hello ", [["b"]]], ["world"]]``) to plain text."""
    if not value:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        parts = []
        for item in value:
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, list) and item and isinstance(item[0], str):
                parts.append(item[0])
        return "".join(parts)
    return ""


def record_value(table: dict[str, Any] | None, record_id: str) -> dict[str, Any] | None:
    """Return the ``value`` payload of a record, unwrapping the nested form.

    Newer workspace responses wrap records twice (``{"value": {"value": ...,
    "role": ...}}``); both layouts are accepted.
    """
    if not table:
        return None
    wrapper = table.get(record_id)
    if not isinstance(wrapper, dict):
        return None
    value = wrapper.get("value")
    if isinstance(value, dict) and "id" not in value and isinstance(value.get("value"), dict):
        value = value["value"]
    return value if isinstance(value, dict) else None


def parse_record_map(record_map: dict[str, Any], root_id: str) -> tuple[list[RawRecord], list[str]]:
    """Decode a workspace record map into raw records.

    When the map contains a collection (a database), every row page of that
    collection becomes a ``database_row`` record. Otherwise the root page
    itself becomes a single ``single_page`` record.

    Args:
        record_map: Record map returned by the workspace client
        root_id: Dashed identifier of the configured root page

    Returns:
        A tuple of (records, warnings). Rows that cannot be decoded are
        dropped and described in warnings.

    Raises:
        NotFound: If the map holds neither a collection nor the root page
    """
    warnings: list[str] = []
    blocks = record_map.get("block") or {}
    collections = record_map.get("collection") or {}

    if not collections:
        root = record_value(blocks, root_id)
        if root is None:
            raise NotFound(f"Page {root_id} is not present in the workspace response")
        return [_single_page(root_id, root)], warnings

    collection_id = next(iter(collections))
    collection = record_value(collections, collection_id) or {}
    raw_schema = collection.get("schema") or {}
    if not isinstance(raw_schema, dict):
        warnings.append(f"Collection {collection_id} has a non-object schema, ignoring it")
        raw_schema = {}

    schema: dict[str, dict[str, Any]] = {}
    for prop_id, definition in raw_schema.items():
        if not isinstance(definition, dict):
            warnings.append(f"Skipping column {prop_id!r} with a non-object definition")
            continue
        prop_type = definition.get("type")
        if prop_type not in _SUPPORTED_TYPES:
            name = definition.get("name") or prop_id
            warnings.append(f"Skipping column {name!r} of unsupported type {prop_type!r}")
            continue
        schema[prop_id] = definition

    records: list[RawRecord] = []
    for block_id in blocks:
        block = record_value(blocks, block_id)
        if not block or block.get("type") != "page" or block.get("parent_table") != "collection":
            continue
        parent_id = block.get("parent_id")
        if parent_id and parent_id != collection_id:
            continue
        try:
            records.append(_database_row(block_id, block, schema))
        except MalformedRecord as exc:
            warnings.append(str(exc))
    return records, warnings


def _single_page(page_id: str, block: dict[str, Any]) -> RawRecord:
    properties = block.get("properties") or {}
    fmt = block.get("format") or {}
    return RawRecord(
        id=page_id,
        kind=RECORD_SINGLE_PAGE,
        properties={"title": extract_text(properties.get("title")), "status": "published"},
        created_time=_from_millis(block.get("created_time")),
        last_edited_time=_from_millis(block.get("last_edited_time")),
        cover=fmt.get("page_cover") or None,
    )


def _database_row(block_id: str, block: dict[str, Any], schema: dict[str, Any]) -> RawRecord:
    raw_props = block.get("properties")
    if raw_props is not None and not isinstance(raw_props, dict):
        raise MalformedRecord(f"Row {block_id} has non-object properties", record_id=block_id)
    raw_props = raw_props or {}

    decoded: dict[str, Any] = {}
    for prop_id, definition in schema.items():
        if not isinstance(definition, dict):
            continue
        name = str(definition.get("name") or "").strip().lower()
        prop_type = definition.get("type")
        if not name or prop_type not in _SUPPORTED_TYPES:
            continue
        value = raw_props.get(prop_id)
        try:
            decoded_value = _decode_property(prop_type, value)
        except (IndexError, KeyError, TypeError, AttributeError) as exc:
            raise MalformedRecord(
                f"Row {block_id}: cannot decode column {name!r} ({prop_type}): {exc}",
                record_id=block_id,
            ) from exc
        if decoded_value is None:
            continue
        # The title column is always exposed as "title" whatever its display name
        decoded["title" if prop_type == "title" else name] = decoded_value

    fmt = block.get("format") or {}
    return RawRecord(
        id=block_id,
        kind=RECORD_DATABASE_ROW,
        properties=decoded,
        created_time=_from_millis(block.get("created_time")),
        last_edited_time=_from_millis(block.get("last_edited_time")),
        cover=fmt.get("page_cover") or None,
    )


def _decode_property(prop_type: str, value: Any) -> Any:
    if prop_type in ("title", "text", "rich_text"):
        return extract_text(value)
    if not value:
        return False if prop_type == "checkbox" else None
    if prop_type == "select":
        return value[0][0] or None
    if prop_type == "multi_select":
        return [tag.strip() for tag in (value[0][0] or "").split(",") if tag.strip()]
    if prop_type == "date":
        # [["‣", [["d", {"type": "date", "start_date": "2024-01-05", "start_time": "09:00"}]]]]
        if len(value[0]) < 2:
            return None
        date_data = value[0][1][0][1]
        start_date = date_data.get("start_date")
        if not start_date:
            return None
        start_time = date_data.get("start_time")
        return f"{start_date}T{start_time}" if start_time else start_date
    if prop_type == "checkbox":
        return value[0][0] == "Yes"
    if prop_type == "url":
        return value[0][0] or None
    if prop_type == "file":
        if len(value[0]) < 2:
            return None
        return value[0][1][0][1] or None
    return None


def _from_millis(value: Any) -> datetime | None:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return None
    return datetime.fromtimestamp(value / 1000, timezone.utc)
