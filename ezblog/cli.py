"""
Command-line interface for the ezBlog content layer.

Uses Typer to provide commands for inspecting workspace content, exporting
the sitemap and feed, fetching a single page's block tree, and serving the
HTTP API. Supports loading .env files for the workspace URL and token.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer
from rich.console import Console

from .config import AppConfig, load_config
from .core.errors import NotFound, RemoteUnavailable
from .runner import build_orchestrator, run_export
from .utils.logging import setup_logging

try:
    from dotenv import load_dotenv
except Exception:  # noqa: BLE001
    load_dotenv = None

app = typer.Typer(add_completion=False)
console = Console()


def _load(
    config: Path | None,
    workspace_url: str | None = None,
    cache_ttl: float | None = None,
    log_level: str | None = None,
) -> AppConfig:
    # Load environment variables from .env if available
    if load_dotenv is not None:
        load_dotenv()

    cfg = load_config(str(config) if config else None)

    # Override with CLI options
    if workspace_url:
        cfg.source.workspace_url = workspace_url
    if cache_ttl is not None:
        cfg.cache.ttl_seconds = cache_ttl
    if log_level:
        cfg.logging.level = log_level
    setup_logging(cfg.logging, Path.cwd())
    return cfg


@app.command()
def content(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    workspace_url: str | None = typer.Option(
        None, "--workspace-url", "-w", envvar="NOTION_PAGE_URL", help="Workspace page or database URL."
    ),
    published_only: bool = typer.Option(False, "--published-only", help="Drop drafts from the output."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Fetch workspace content and print the content envelope as JSON."""
    cfg = _load(config, workspace_url=workspace_url, log_level=log_level)
    orchestrator = build_orchestrator(cfg)
    try:
        result = orchestrator.fetch_content()
    finally:
        orchestrator.client.close()

    payload = result.to_dict()
    if published_only:
        payload["posts"] = [post.to_dict() for post in result.published_posts()]
        payload["pages"] = [page.to_dict() for page in result.published_pages()]
    console.print_json(json.dumps(payload, ensure_ascii=False))


@app.command()
def export(
    output: Path = typer.Option(Path("out"), "--output", "-o"),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    workspace_url: str | None = typer.Option(
        None, "--workspace-url", "-w", envvar="NOTION_PAGE_URL", help="Workspace page or database URL."
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Write content.json, sitemap.xml and feed.xml to the output directory."""
    cfg = _load(config, workspace_url=workspace_url, log_level=log_level)
    orchestrator = build_orchestrator(cfg)
    try:
        output_dir = run_export(output, cfg, orchestrator=orchestrator, console=console)
    finally:
        orchestrator.client.close()
    console.print(f"Export written: {output_dir}")


@app.command()
def blocks(
    page_id: str = typer.Argument(..., help="Page identifier or URL."),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Print the raw block tree of one page as JSON."""
    cfg = _load(config, log_level=log_level)
    orchestrator = build_orchestrator(cfg)
    try:
        tree = orchestrator.fetch_blocks(page_id)
    except NotFound as exc:
        console.print(f"[red]Not found:[/red] {exc}")
        raise typer.Exit(code=2) from exc
    except RemoteUnavailable as exc:
        console.print(f"[red]Workspace unavailable:[/red] {exc}")
        raise typer.Exit(code=3) from exc
    finally:
        orchestrator.client.close()
    console.print_json(json.dumps(tree.to_dict(), ensure_ascii=False))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    config: Path | None = typer.Option(None, "--config", "-c", exists=True),
    workspace_url: str | None = typer.Option(
        None, "--workspace-url", "-w", envvar="NOTION_PAGE_URL", help="Workspace page or database URL."
    ),
    cache_ttl: float | None = typer.Option(None, "--cache-ttl", help="Cache TTL in seconds."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
):
    """Serve the content API, feed and sitemap over HTTP."""
    import uvicorn

    from .server import create_app

    cfg = _load(config, workspace_url=workspace_url, cache_ttl=cache_ttl, log_level=log_level)
    uvicorn.run(create_app(cfg), host=host, port=port, log_level=cfg.logging.level.lower())


if __name__ == "__main__":
    app()
