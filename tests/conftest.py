"""Shared builders for workspace record maps and a scripted workspace client."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from ezblog.core.cache import ContentCache
from ezblog.core.orchestrator import ContentOrchestrator
from ezblog.fetch.client import WorkspaceClient


ROOT_ID = "01234567-89ab-cdef-0123-456789abcdef"
COLLECTION_ID = "c0ffee00-0000-4000-8000-000000000001"
VIEW_ID = "f1e2d3c4-0000-4000-8000-000000000002"
WORKSPACE_URL = "https://www.notion.so/acme/Blog-0123456789abcdef0123456789abcdef?v=abc"

# Fixed "now" for tests: 2025-06-15T12:00:00Z
NOW_TS = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc).timestamp()

SCHEMA = {
    "title": {"name": "Name", "type": "title"},
    "st": {"name": "Status", "type": "select"},
    "dt": {"name": "Date", "type": "date"},
    "tg": {"name": "Tags", "type": "multi_select"},
    "sl": {"name": "Slug", "type": "text"},
    "sm": {"name": "Summary", "type": "text"},
    "ty": {"name": "Type", "type": "select"},
}


def millis(year: int, month: int, day: int) -> int:
    return int(datetime(year, month, day, tzinfo=timezone.utc).timestamp() * 1000)


def row_id(n: int) -> str:
    return f"aaaaaaaa-0000-4000-8000-{n:012d}"


def row(
    n: int,
    title: str | None,
    status: str | None = "Published",
    date: str | None = None,
    tags: str | None = None,
    slug: str | None = None,
    summary: str | None = None,
    kind: str | None = None,
) -> tuple[str, dict]:
    """Build one database row block as the workspace returns it."""
    properties: dict = {}
    if title is not None:
        properties["title"] = [[title]]
    if status is not None:
        properties["st"] = [[status]]
    if date is not None:
        properties["dt"] = [["‣", [["d", {"type": "date", "start_date": date}]]]]
    if tags is not None:
        properties["tg"] = [[tags]]
    if slug is not None:
        properties["sl"] = [[slug]]
    if summary is not None:
        properties["sm"] = [[summary]]
    if kind is not None:
        properties["ty"] = [[kind]]
    block_id = row_id(n)
    return block_id, {
        "value": {
            "id": block_id,
            "type": "page",
            "parent_table": "collection",
            "parent_id": COLLECTION_ID,
            "properties": properties,
            "created_time": millis(2024, 1, 1),
            "last_edited_time": millis(2024, 2, 1),
        }
    }


def database_map(*rows: tuple[str, dict], schema: dict | None = None) -> dict:
    """Record map of a database root page plus its rows."""
    blocks = {
        ROOT_ID: {
            "value": {
                "id": ROOT_ID,
                "type": "collection_view_page",
                "collection_id": COLLECTION_ID,
                "view_ids": [VIEW_ID],
            }
        }
    }
    for block_id, block in rows:
        blocks[block_id] = block
    return {
        "block": blocks,
        "collection": {
            COLLECTION_ID: {"value": {"id": COLLECTION_ID, "schema": dict(schema or SCHEMA)}},
        },
        "collection_view": {VIEW_ID: {"value": {"id": VIEW_ID, "type": "table"}}},
    }


def sample_map() -> dict:
    return database_map(
        row(1, "First Post", date="2024-03-01", tags="python,web"),
        row(2, "Second Post", date="2024-05-01", tags="python"),
        row(3, "Third Post", date="2024-04-01", tags="rust"),
        row(4, "Unfinished", status="Draft", date="2024-04-15"),
        row(5, "About", kind="Page"),
    )


class FakeClock:
    def __init__(self, start: float = NOW_TS):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FakeClient(WorkspaceClient):
    """Workspace client that serves a scripted record map and counts calls.

    When ``gate`` is set, ``fetch_workspace`` blocks until the event is set.
    """

    def __init__(self, record_map: dict | None = None, error: Exception | None = None):
        self.record_map = record_map if record_map is not None else sample_map()
        self.error = error
        self.calls = 0
        self.block_calls = 0
        self.closed = False
        self.gate: threading.Event | None = None
        self._lock = threading.Lock()

    def fetch_workspace(self, url: str) -> dict:
        with self._lock:
            self.calls += 1
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.record_map

    def fetch_block_tree(self, page_id: str) -> dict:
        self.block_calls += 1
        if self.error is not None:
            raise self.error
        return {"block": {page_id: {"value": {"id": page_id, "type": "page"}}}}

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def orchestrator(client: FakeClient, clock: FakeClock) -> ContentOrchestrator:
    return ContentOrchestrator(
        client=client,
        cache=ContentCache(ttl_seconds=300, clock=clock),
        workspace_url=WORKSPACE_URL,
    )
