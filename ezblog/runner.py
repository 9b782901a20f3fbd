"""
Wiring and batch export.

``build_orchestrator`` assembles the client, cache and orchestrator from an
AppConfig; ``run_export`` performs one ingestion and writes the content
envelope, sitemap and feed to a directory, as a static-site build would.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console

from .config import AppConfig, effective_ttl, get_workspace_url
from .core.cache import ContentCache
from .core.orchestrator import ContentOrchestrator
from .core.types import SOURCE_ERROR
from .fetch.client import NotionClient, WorkspaceClient
from .output.feed import render_feed
from .output.sitemap import render_sitemap
from .utils.logging import get_logger, log_event


def build_orchestrator(
    cfg: AppConfig,
    client: WorkspaceClient | None = None,
    cache: ContentCache | None = None,
    logger: logging.Logger | None = None,
) -> ContentOrchestrator:
    """Create a ContentOrchestrator for the given configuration.

    Args:
        cfg: Application configuration
        client: Workspace client to use (defaults to NotionClient)
        cache: Content cache to use (defaults to a new process-local cache)
        logger: Logger for ingestion events

    Returns:
        A ready-to-use orchestrator; nothing is fetched until first use
    """
    return ContentOrchestrator(
        client=client or NotionClient(cfg.fetch),
        cache=cache or ContentCache(ttl_seconds=effective_ttl(cfg.cache)),
        workspace_url=get_workspace_url(cfg.source),
        max_stale_seconds=cfg.cache.max_stale_seconds,
        wait_timeout_seconds=cfg.cache.wait_timeout_seconds,
        logger=logger or get_logger("orchestrator"),
    )


def run_export(
    output_dir: Path,
    cfg: AppConfig,
    orchestrator: ContentOrchestrator | None = None,
    console: Console | None = None,
) -> Path:
    """Ingest content once and write ``content.json``, ``sitemap.xml`` and ``feed.xml``.

    The export never fails because of the workspace: on error the sitemap and
    feed are written with static routes and an empty item list.

    Args:
        output_dir: Directory for the generated files
        cfg: Application configuration
        orchestrator: Orchestrator to use (built from cfg if None)
        console: Rich console for the summary line

    Returns:
        The output directory
    """
    logger = get_logger("export")
    orchestrator = orchestrator or build_orchestrator(cfg)
    output_dir.mkdir(parents=True, exist_ok=True)
    log_event(logger, "Export start", event="export_start", output=str(output_dir))

    result = orchestrator.fetch_content()
    now = datetime.now(timezone.utc)

    content_path = output_dir / "content.json"
    content_path.write_text(
        json.dumps(result.to_dict(), ensure_ascii=False, indent=2) + "\n", encoding="utf-8"
    )
    (output_dir / "sitemap.xml").write_text(render_sitemap(result, cfg.site, now), encoding="utf-8")
    (output_dir / "feed.xml").write_text(render_feed(result, cfg.site, now), encoding="utf-8")

    published = len(result.published_posts())
    level = logging.WARNING if result.source == SOURCE_ERROR else logging.INFO
    log_event(
        logger,
        "Export complete",
        level=level,
        event="export_complete",
        output=str(output_dir),
        source=result.source,
        published=published,
    )
    if console is not None:
        console.print(
            f"source={result.source} posts={len(result.posts)} "
            f"published={published} pages={len(result.pages)}"
        )
        if result.error:
            console.print(f"[yellow]warning:[/yellow] {result.error}")
    return output_dir
