"""
Workspace fetching.

This package holds the client boundary used by the orchestrator and its
httpx implementation.
"""

from .client import NotionClient, WorkspaceClient, merge_record_maps

__all__ = [
    "NotionClient",
    "WorkspaceClient",
    "merge_record_maps",
]
