"""
Domain package for Record Search.

Exports the core domain models and the error taxonomy used across the store,
index, synchronizer, and query components. Keep this package focused on data
definitions and validation concerns.
"""

from recordsearch.domain.errors import (
    ErrorKind,
    IndexWriteError,
    InvalidQueryError,
    PersistenceError,
    PipelineError,
    RecordNotFoundError,
    SearchUnavailableError,
)
from recordsearch.domain.models import (
    RANGE_FIELDS,
    MatchMode,
    PageRequest,
    RangeConstraint,
    Record,
    RecordFilter,
    RecordPage,
    RecordView,
    SearchPage,
    WriteOutcome,
    WriteState,
)

__all__ = [
    # Models
    "MatchMode",
    "PageRequest",
    "RANGE_FIELDS",
    "RangeConstraint",
    "Record",
    "RecordFilter",
    "RecordPage",
    "RecordView",
    "SearchPage",
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
]
