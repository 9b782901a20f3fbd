"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- SourceConfig: Which workspace to ingest
- FetchConfig: Workspace API client settings
- CacheConfig: Content cache lifetime and fallback settings
- SiteConfig: Public site metadata used by the sitemap and feed
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any

import yaml


@dataclass
class SourceConfig:
    """Configuration for the content source.

    Attributes:
        workspace_url: Workspace page or database URL. When unset the
                       NOTION_PAGE_URL environment variable is used; when both
                       are empty the site runs without dynamic content.
    """

    workspace_url: str | None = None


@dataclass
class FetchConfig:
    """Configuration for the workspace API client.

    Attributes:
        base_url: Base URL of the workspace JSON API
        timeout_seconds: Upper bound for a single API request
        retries: Extra attempts on transient failures within one call
        trust_env: Whether to respect system proxy settings
        user_agent: HTTP User-Agent header string
        page_chunk_limit: Blocks requested per page chunk
        collection_limit: Maximum rows loaded from a database view
        auth_token: Optional session token for private workspaces
                    (falls back to NOTION_TOKEN_V2)
    """

    base_url: str = "https://www.notion.so/api/v3"
    timeout_seconds: float = 20.0
    retries: int = 0
    trust_env: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    page_chunk_limit: int = 100
    collection_limit: int = 999
    auth_token: str | None = None


@dataclass
class CacheConfig:
    """Configuration for the content cache.

    Attributes:
        enabled: Whether fresh entries are served from cache. When disabled
                 every call refetches, but the stale fallback still applies.
        ttl_seconds: Lifetime of a cache entry
        max_stale_seconds: Oldest entry that may be served when the workspace
                           fails; None means no limit
        wait_timeout_seconds: How long a caller waits on another caller's
                              in-flight fetch before falling back
    """

    enabled: bool = True
    ttl_seconds: float = 300.0
    max_stale_seconds: float | None = None
    wait_timeout_seconds: float = 60.0


@dataclass
class SiteConfig:
    """Public site metadata.

    Attributes:
        url: Absolute site URL (falls back to SITE_URL)
        title: Site title used in the feed channel
        description: Site description used in the feed channel
        language: Feed language code
    """

    url: str | None = None
    title: str = "ezBlog"
    description: str = "Insights, stories, and ideas."
    language: str = "en-us"


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the main log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "ezblog.jsonl"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    source: SourceConfig = field(default_factory=SourceConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    site: SiteConfig = field(default_factory=SiteConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


DEFAULT_CONFIG = AppConfig()
DEFAULT_SITE_URL = "https://yourdomain.com"


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return _fromdict(_asdict(DEFAULT_CONFIG))

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(DEFAULT_CONFIG, raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = _asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update({k: v for k, v in value.items() if k in data[key]})
    return _fromdict(data)


def _asdict(cfg: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to nested dictionary."""
    return {
        "source": {
            "workspace_url": cfg.source.workspace_url,
        },
        "fetch": {
            "base_url": cfg.fetch.base_url,
            "timeout_seconds": cfg.fetch.timeout_seconds,
            "retries": cfg.fetch.retries,
            "trust_env": cfg.fetch.trust_env,
            "user_agent": cfg.fetch.user_agent,
            "page_chunk_limit": cfg.fetch.page_chunk_limit,
            "collection_limit": cfg.fetch.collection_limit,
            "auth_token": cfg.fetch.auth_token,
        },
        "cache": {
            "enabled": cfg.cache.enabled,
            "ttl_seconds": cfg.cache.ttl_seconds,
            "max_stale_seconds": cfg.cache.max_stale_seconds,
            "wait_timeout_seconds": cfg.cache.wait_timeout_seconds,
        },
        "site": {
            "url": cfg.site.url,
            "title": cfg.site.title,
            "description": cfg.site.description,
            "language": cfg.site.language,
        },
        "logging": {
            "level": cfg.logging.level,
            "console": cfg.logging.console,
            "file": cfg.logging.file,
            "format": cfg.logging.format,
            "filename": cfg.logging.filename,
        },
    }


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    return AppConfig(
        source=SourceConfig(**data["source"]),
        fetch=FetchConfig(**data["fetch"]),
        cache=CacheConfig(**data["cache"]),
        site=SiteConfig(**data["site"]),
        logging=LoggingConfig(**data["logging"]),
    )


def get_workspace_url(cfg: SourceConfig) -> str | None:
    """Get the workspace URL from inline config or environment variable."""
    if cfg.workspace_url and cfg.workspace_url.strip():
        return cfg.workspace_url.strip()
    env_url = os.getenv("NOTION_PAGE_URL", "").strip()
    return env_url or None


def get_auth_token(cfg: FetchConfig) -> str | None:
    """Get the workspace session token from inline config or environment variable."""
    if cfg.auth_token:
        return cfg.auth_token
    return os.getenv("NOTION_TOKEN_V2") or None


def get_site_url(cfg: SiteConfig) -> str:
    """Get the public site URL without trailing slash."""
    url = cfg.url or os.getenv("SITE_URL") or DEFAULT_SITE_URL
    return url.rstrip("/")


def effective_ttl(cfg: CacheConfig) -> float:
    """TTL actually applied to the content cache (0 when caching is disabled)."""
    return cfg.ttl_seconds if cfg.enabled else 0.0
