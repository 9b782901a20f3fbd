"""
Core domain models and ingestion logic.

This package contains the content types, the record decoder, the
normalizer, the content cache and the orchestrator. Nothing here depends
on a specific transport or output format.
"""

from .cache import ContentCache, source_key
from .errors import ContentError, MalformedRecord, NotFound, RemoteError, RemoteUnavailable
from .normalizer import normalize, slugify
from .orchestrator import ContentOrchestrator
from .records import parse_page_id, parse_record_map
from .types import BlockTree, CacheEntry, ContentResult, NormalizedContent, Page, Post, RawRecord

__all__ = [
    "BlockTree",
    "CacheEntry",
    "ContentCache",
    "ContentError",
    "ContentOrchestrator",
    "ContentResult",
    "MalformedRecord",
    "NormalizedContent",
    "NotFound",
    "Page",
    "Post",
    "RawRecord",
    "RemoteError",
    "RemoteUnavailable",
    "normalize",
    "parse_page_id",
    "parse_record_map",
    "slugify",
    "source_key",
]
