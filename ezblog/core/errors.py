"""
Error taxonomy for content ingestion.

Remote failures are raised by the workspace client and resolved by the
orchestrator; record-level problems are recovered inside the parser and
normalizer. Having no workspace configured is not an error at all and is
reported as ``source="none"`` instead.
"""

from __future__ import annotations


class ContentError(Exception):
    """Base class for all ingestion errors."""


class RemoteError(ContentError):
    """Base class for failures reported by the workspace client."""


class NotFound(RemoteError):
    """The identifier does not resolve upstream. Terminal, never retried."""


class RemoteUnavailable(RemoteError):
    """Transient transport or availability failure (timeouts, 5xx, bad JSON)."""


class MalformedRecord(ContentError):
    """A single raw record could not be decoded or normalized.

    Attributes:
        record_id: Identifier of the offending record, when known
    """

    def __init__(self, message: str, record_id: str | None = None):
        super().__init__(message)
        self.record_id = record_id
