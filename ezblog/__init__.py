"""
ezBlog content layer - workspace ingestion and caching for a Notion-backed blog.

This package pulls posts and pages from a Notion workspace on demand,
normalizes them into a stable schema, caches the result in process, and
serves the page renderer, sitemap and RSS feed from that single view.

Main entry point is the CLI via `ezblog` commands.

Example:
    $ ezblog export -w https://www.notion.so/<workspace>/<database-id> -o out/
"""

__all__ = [
    "__version__",
    "ContentCache",
    "ContentOrchestrator",
    "ContentResult",
    "Page",
    "Post",
    "build_orchestrator",
    "normalize",
    "slugify",
]
__version__ = "0.1.0"

from .core.cache import ContentCache
from .core.normalizer import normalize, slugify
from .core.orchestrator import ContentOrchestrator
from .core.types import ContentResult, Page, Post
from .runner import build_orchestrator
