"""
Ingestion orchestration.

ContentOrchestrator is the single entry point consumers call for workspace
content. It decides between cache and refetch, coalesces concurrent refetches
of the same source into one remote call, serves stale data when the
workspace fails, and returns a uniform ContentResult envelope.

Every accessor is a projection over ``fetch_content``; none of them performs
its own fetch or cache cycle.
"""

from __future__ import annotations

from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from datetime import datetime, timezone
import logging
import threading
from typing import TYPE_CHECKING

from ..utils.logging import get_logger, log_event
from .cache import ContentCache, source_key
from .errors import MalformedRecord, RemoteError, RemoteUnavailable
from .normalizer import normalize
from .records import parse_page_id, parse_record_map
from .types import (
    SOURCE_CACHE,
    SOURCE_FRESH,
    BlockTree,
    CacheEntry,
    ContentResult,
    Page,
    Post,
)

if TYPE_CHECKING:
    from ..fetch.client import WorkspaceClient


# Shape errors raised while decoding an unexpected workspace response
DECODE_ERRORS = (MalformedRecord, AttributeError, IndexError, KeyError, TypeError, ValueError)


class ContentOrchestrator:
    """Coordinates cache lookups, remote fetches and normalization.

    Attributes:
        workspace_url: Configured workspace URL, or None when no source is set
        max_stale_seconds: Ceiling on stale data served after a failure
        wait_timeout_seconds: How long a caller waits on an in-flight fetch
    """

    def __init__(
        self,
        client: WorkspaceClient,
        cache: ContentCache,
        workspace_url: str | None,
        max_stale_seconds: float | None = None,
        wait_timeout_seconds: float | None = 60.0,
        logger: logging.Logger | None = None,
    ):
        self.client = client
        self.cache = cache
        self.workspace_url = workspace_url or None
        self.max_stale_seconds = max_stale_seconds
        self.wait_timeout_seconds = wait_timeout_seconds
        self._logger = logger or get_logger("orchestrator")
        self._inflight: dict[str, Future] = {}
        self._inflight_lock = threading.Lock()

    @property
    def source_key(self) -> str | None:
        if not self.workspace_url:
            return None
        return source_key(self.workspace_url)

    def fetch_content(self) -> ContentResult:
        """Return the current posts and pages with their provenance.

        Returns:
            ContentResult tagged "none" (no source configured), "cache",
            "fresh", or "error" (remote failed and nothing is cached)
        """
        url = self.workspace_url
        if not url:
            log_event(self._logger, "No workspace configured", level=logging.DEBUG, event="content_none")
            return ContentResult.none()

        key = source_key(url)

        entry = self.cache.get(key)
        if entry is not None:
            log_event(
                self._logger,
                "Content cache hit",
                level=logging.DEBUG,
                event="cache_hit",
                source_key=key,
            )
            return ContentResult.from_entry(entry, SOURCE_CACHE, now=self.cache.now())

        log_event(self._logger, "Content cache miss", level=logging.DEBUG, event="cache_miss", source_key=key)
        return self._coalesced_refetch(key, url)

    def refresh(self) -> ContentResult:
        """Drop the cached entry and fetch again (manual sync trigger)."""
        key = self.source_key
        if key is not None:
            self.cache.invalidate(key)
            log_event(self._logger, "Content cache invalidated", event="cache_invalidated", source_key=key)
        return self.fetch_content()

    def get_posts(self) -> list[Post]:
        return list(self.fetch_content().posts)

    def get_published_posts(self) -> list[Post]:
        return self.fetch_content().published_posts()

    def get_pages(self) -> list[Page]:
        return list(self.fetch_content().pages)

    def get_published_pages(self) -> list[Page]:
        return self.fetch_content().published_pages()

    def get_post(self, slug: str) -> Post | None:
        """Published post with the given slug, or None."""
        for post in self.get_published_posts():
            if post.slug == slug:
                return post
        return None

    def get_page(self, slug: str) -> Page | None:
        """Published page with the given slug, or None."""
        for page in self.get_published_pages():
            if page.slug == slug:
                return page
        return None

    def fetch_blocks(self, page_id: str) -> BlockTree:
        """Fetch the block tree of one page, bypassing the content cache.

        Raises:
            NotFound: The identifier does not resolve upstream
            RemoteUnavailable: The workspace could not be reached
        """
        dashed = parse_page_id(page_id)
        log_event(self._logger, "Fetching block tree", level=logging.DEBUG, event="blocks_fetch", page_id=dashed)
        record_map = self.client.fetch_block_tree(dashed)
        return BlockTree(page_id=dashed, record_map=record_map)

    def _coalesced_refetch(self, key: str, url: str) -> ContentResult:
        with self._inflight_lock:
            future = self._inflight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[key] = future

        if not leader:
            return self._await_leader(key, future)

        try:
            # Another leader may have published while this caller was missing
            entry = self.cache.get(key)
            if entry is not None:
                result = ContentResult.from_entry(entry, SOURCE_CACHE, now=self.cache.now())
            else:
                result = self._refetch(key, url)
        except Exception as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._inflight_lock:
                self._inflight.pop(key, None)

    def _await_leader(self, key: str, future: Future) -> ContentResult:
        log_event(
            self._logger,
            "Waiting on in-flight fetch",
            level=logging.DEBUG,
            event="coalesced_wait",
            source_key=key,
        )
        try:
            result = future.result(timeout=self.wait_timeout_seconds)
        except FutureTimeoutError:
            return self._fallback(key, RemoteUnavailable("Timed out waiting for in-flight fetch"))
        if result.source == SOURCE_FRESH:
            # Only the caller that performed the fetch reports it as fresh
            now = self.cache.now()
            return ContentResult(
                posts=result.posts,
                pages=result.pages,
                source=SOURCE_CACHE,
                fetched_at=result.fetched_at,
                cache_age=max(0.0, now - result.fetched_at) if result.fetched_at is not None else None,
            )
        return result

    def _refetch(self, key: str, url: str) -> ContentResult:
        log_event(self._logger, "Fetching workspace content", event="fetch_start", source_key=key)
        try:
            record_map = self.client.fetch_workspace(url)
            records, warnings = parse_record_map(record_map, parse_page_id(url))
        except DECODE_ERRORS as exc:
            return self._decode_failed(key, exc)
        except RemoteError as exc:
            log_event(
                self._logger,
                f"Workspace fetch failed: {exc}",
                level=logging.WARNING,
                event="fetch_failed",
                source_key=key,
                error_type=type(exc).__name__,
            )
            return self._fallback(key, exc)

        fetched_at = self.cache.now()
        try:
            normalized = normalize(records, datetime.fromtimestamp(fetched_at, timezone.utc))
        except DECODE_ERRORS as exc:
            return self._decode_failed(key, exc)
        for warning in warnings + normalized.warnings:
            log_event(self._logger, warning, level=logging.WARNING, event="normalize_warning", source_key=key)

        entry = CacheEntry(
            posts=tuple(normalized.posts),
            pages=tuple(normalized.pages),
            fetched_at=fetched_at,
            source_key=key,
        )
        self.cache.put(key, entry)
        log_event(
            self._logger,
            f"Fetched {len(entry.posts)} posts and {len(entry.pages)} pages",
            event="fetch_complete",
            source_key=key,
            posts=len(entry.posts),
            pages=len(entry.pages),
        )
        return ContentResult.from_entry(entry, SOURCE_FRESH)

    def _decode_failed(self, key: str, exc: Exception) -> ContentResult:
        log_event(
            self._logger,
            f"Workspace response could not be decoded: {exc}",
            level=logging.WARNING,
            event="decode_failed",
            source_key=key,
            error_type=type(exc).__name__,
        )
        return self._fallback(key, MalformedRecord(f"Undecodable workspace response: {exc}"))

    def _fallback(self, key: str, exc: Exception) -> ContentResult:
        """Serve the last successful entry, or an error envelope when there is none."""
        stale = self.cache.get_stale(key, max_age=self.max_stale_seconds)
        if stale is not None:
            log_event(
                self._logger,
                "Serving stale content after fetch failure",
                level=logging.WARNING,
                event="stale_fallback",
                source_key=key,
            )
            return ContentResult.from_entry(stale, SOURCE_CACHE, now=self.cache.now(), error=str(exc))
        return ContentResult.failed(str(exc))
