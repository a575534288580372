"""
Error taxonomy for the synchronization and query pipeline.

Every error carries a caller-visible `kind` plus the context a caller needs to
decide between retrying and aborting (operation, record id or query, attempt
count). Adapters translate library exceptions into these types with
`raise ... from exc`.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    PERSISTENCE = "persistence"
    NOT_FOUND = "not_found"
    INDEX_WRITE = "index_write"
    INVALID_QUERY = "invalid_query"
    SEARCH_UNAVAILABLE = "search_unavailable"


class PipelineError(Exception):
    """Base exception for pipeline errors."""

    kind: ErrorKind = ErrorKind.PERSISTENCE

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        record_id: Optional[int] = None,
        query: Optional[Dict[str, Any]] = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.record_id = record_id
        self.query = query
        self.attempts = attempts

    def context(self) -> Dict[str, Any]:
        """Context fields suitable for `extra=` in log calls."""
        ctx: Dict[str, Any] = {"error_kind": self.kind.value}
        if self.operation:
            ctx["operation"] = self.operation
        if self.record_id is not None:
            ctx["record_id"] = self.record_id
        if self.query is not None:
            ctx["query"] = self.query
        if self.attempts:
            ctx["attempts"] = self.attempts
        return ctx

    def __str__(self) -> str:
        details = [f"{key}={value}" for key, value in self.context().items() if key != "error_kind"]
        if not details:
            return self.message
        return f"{self.message} ({', '.join(details)})"


class PersistenceError(PipelineError):
    """Raised when the system-of-record is unavailable or rejects a write."""

    kind = ErrorKind.PERSISTENCE


class RecordNotFoundError(PipelineError):
    """Raised when a requested record does not exist in the system-of-record."""

    kind = ErrorKind.NOT_FOUND


class IndexWriteError(PipelineError):
    """
    Raised when a document upsert into the search index fails.

    `transient` marks failures worth retrying (connection loss, timeouts,
    throttling, 5xx gateways).
    """

    kind = ErrorKind.INDEX_WRITE

    def __init__(self, message: str, *, transient: bool = False, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.transient = transient


class InvalidQueryError(PipelineError):
    """Raised when page or filter parameters are malformed."""

    kind = ErrorKind.INVALID_QUERY


class SearchUnavailableError(PipelineError):
    """Raised when the search index cannot answer a read."""

    kind = ErrorKind.SEARCH_UNAVAILABLE


__all__ = [
    "ErrorKind",
    "IndexWriteError",
    "InvalidQueryError",
    "PersistenceError",
    "PipelineError",
    "RecordNotFoundError",
    "SearchUnavailableError",
]
