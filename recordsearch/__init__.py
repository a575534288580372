"""
Record Search - keeps a PostgreSQL record set searchable through OpenSearch.

This package provides the synchronization-and-query pipeline between a
system-of-record and a derived search index:

- Store-first writes with bounded, retried index upserts (degraded success
  when the index is unavailable)
- Translation of free-text and range filters into versioned index queries
- Deterministic, bounded pagination over relevance-ordered results
- Order-preserving hydration of full records from the system-of-record
- Index rebuild by replaying the store

Composition is explicit: every component receives its configuration at
construction, so in-memory substitutes can stand in for either store.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from recordsearch.config import Settings, get_settings
from recordsearch.domain import (
    ErrorKind,
    IndexWriteError,
    InvalidQueryError,
    MatchMode,
    PageRequest,
    PersistenceError,
    PipelineError,
    RangeConstraint,
    Record,
    RecordFilter,
    RecordNotFoundError,
    RecordPage,
    RecordView,
    SearchUnavailableError,
    WriteOutcome,
    WriteState,
)
from recordsearch.pipeline import Pipeline, PipelineCoordinator, build_pipeline, compose
from recordsearch.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Pipeline
    "Pipeline",
    "PipelineCoordinator",
    "build_pipeline",
    "compose",
    # Domain
    "MatchMode",
    "PageRequest",
    "RangeConstraint",
    "Record",
    "RecordFilter",
    "RecordPage",
    "RecordView",
    "WriteOutcome",
    "WriteState",
    # Errors
    "ErrorKind",
    "IndexWriteError",
    "InvalidQueryError",
    "PersistenceError",
    "PipelineError",
    "RecordNotFoundError",
    "SearchUnavailableError",
    # Logging
    "configure_logging",
    "get_logger",
]
