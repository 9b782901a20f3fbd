"""
Workspace client boundary.

WorkspaceClient is the capability the ingestion layer depends on: fetch the
record map of a workspace URL, or the block tree of one page. NotionClient
implements it over the workspace's public JSON API using httpx and maps
every transport or HTTP failure onto NotFound / RemoteUnavailable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import time
from typing import Any

import httpx

from ..config import FetchConfig, get_auth_token
from ..core.errors import NotFound, RemoteUnavailable
from ..core.records import parse_page_id, record_value


RecordMap = dict[str, Any]

NOT_FOUND_STATUSES = {400, 401, 403, 404, 410}
MAX_PAGE_CHUNKS = 50


class WorkspaceClient(ABC):
    """Provider interface for raw workspace content."""

    @abstractmethod
    def fetch_workspace(self, url: str) -> RecordMap:
        """Return the record map for a workspace URL.

        For a database the map contains the collection schema and all row
        pages; for a single page it contains that page.

        Raises:
            NotFound: The URL does not resolve to a page
            RemoteUnavailable: The workspace could not be reached in time
        """
        raise NotImplementedError

    @abstractmethod
    def fetch_block_tree(self, page_id: str) -> RecordMap:
        """Return the record map holding the block tree of one page.

        Raises:
            NotFound: The identifier does not resolve to a page
            RemoteUnavailable: The workspace could not be reached in time
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release network resources, if any."""


class NotionClient(WorkspaceClient):
    """httpx-backed client for the Notion public page API.

    Every request is bounded by ``FetchConfig.timeout_seconds``; the
    orchestrator relies on this to never wait forever on the workspace.
    """

    def __init__(self, cfg: FetchConfig, transport: httpx.BaseTransport | None = None):
        self._cfg = cfg
        headers = {
            "User-Agent": cfg.user_agent,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        cookies = {}
        token = get_auth_token(cfg)
        if token:
            cookies["token_v2"] = token
        # Connect is short, read gets the full budget
        timeout = httpx.Timeout(cfg.timeout_seconds, connect=min(10.0, cfg.timeout_seconds))
        self._client = httpx.Client(
            base_url=cfg.base_url.rstrip("/"),
            headers=headers,
            cookies=cookies,
            timeout=timeout,
            trust_env=cfg.trust_env,
            transport=transport,
        )

    def __enter__(self) -> NotionClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch_workspace(self, url: str) -> RecordMap:
        page_id = parse_page_id(url)
        record_map = self.load_page(page_id)

        collections = record_map.get("collection") or {}
        if not collections:
            return record_map

        collection_id = next(iter(collections))
        view_id = _first_view_id(record_map, page_id)
        if view_id is None:
            return record_map
        rows = self.query_collection(collection_id, view_id)
        merge_record_maps(record_map, rows)
        return record_map

    def fetch_block_tree(self, page_id: str) -> RecordMap:
        return self.load_page(parse_page_id(page_id))

    def load_page(self, page_id: str) -> RecordMap:
        """Load every chunk of a page's record map.

        Raises:
            NotFound: If the page block is absent from the response
        """
        merged: RecordMap = {}
        cursor: dict[str, Any] = {"stack": []}
        for chunk_number in range(MAX_PAGE_CHUNKS):
            data = self._post(
                "loadPageChunk",
                {
                    "pageId": page_id,
                    "limit": self._cfg.page_chunk_limit,
                    "cursor": cursor,
                    "chunkNumber": chunk_number,
                    "verticalColumns": False,
                },
            )
            merge_record_maps(merged, data.get("recordMap") or {})
            cursor = data.get("cursor") or {}
            if not cursor.get("stack"):
                break

        if record_value(merged.get("block"), page_id) is None:
            raise NotFound(f"Page {page_id} not found")
        return merged

    def query_collection(self, collection_id: str, view_id: str) -> RecordMap:
        """Return the record map holding all rows of a collection view."""
        data = self._post(
            "queryCollection",
            {
                "collection": {"id": collection_id},
                "collectionView": {"id": view_id},
                "loader": {
                    "type": "reducer",
                    "reducers": {
                        "collection_group_results": {
                            "type": "results",
                            "limit": self._cfg.collection_limit,
                        }
                    },
                    "searchQuery": "",
                    "userTimeZone": "UTC",
                },
            },
        )
        return data.get("recordMap") or {}

    def _post(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST to an API endpoint and decode the JSON object it returns.

        Retries transient failures ``cfg.retries`` times with linear backoff.
        """
        last_error = RemoteUnavailable(f"{endpoint}: no attempt made")

        for attempt in range(self._cfg.retries + 1):
            try:
                resp = self._client.post(f"/{endpoint}", json=payload)
            except httpx.TimeoutException as exc:
                last_error = RemoteUnavailable(f"TimeoutError: {endpoint}: {exc}")
            except httpx.HTTPError as exc:
                last_error = RemoteUnavailable(f"{type(exc).__name__}: {endpoint}: {exc}")
            else:
                if resp.status_code in NOT_FOUND_STATUSES:
                    raise NotFound(f"{endpoint} HTTP {resp.status_code}: {resp.text[:200]}")
                if resp.status_code >= 400:
                    last_error = RemoteUnavailable(
                        f"{endpoint} HTTP {resp.status_code}: {resp.text[:200]}"
                    )
                else:
                    try:
                        data = resp.json()
                    except ValueError as exc:
                        last_error = RemoteUnavailable(f"JSONDecodeError: {endpoint}: {exc}")
                    else:
                        if isinstance(data, dict):
                            return data
                        last_error = RemoteUnavailable(f"{endpoint}: expected a JSON object")
            if attempt < self._cfg.retries:
                time.sleep(0.5 * (attempt + 1))

        raise last_error


def merge_record_maps(target: RecordMap, source: RecordMap) -> RecordMap:
    """Merge the tables of ``source`` into ``target`` in place and return it."""
    for table, records in source.items():
        if isinstance(records, dict):
            target.setdefault(table, {}).update(records)
    return target


def _first_view_id(record_map: RecordMap, page_id: str) -> str | None:
    root = record_value(record_map.get("block"), page_id) or {}
    view_ids = root.get("view_ids") or []
    if view_ids:
        return view_ids[0]
    views = record_map.get("collection_view") or {}
    return next(iter(views), None)
