"""
Query package for Record Search.

Read path components: translate a filter and page request into an index query,
execute it for ordered identifiers, and hydrate full records from the store.
"""

from recordsearch.query.executor import SearchExecutor
from recordsearch.query.hydrator import HydrationResult, ResultHydrator
from recordsearch.query.translator import (
    QUERY_SCHEMA_VERSION,
    IndexQuery,
    QueryTranslator,
    make_range,
    parse_filter,
)

__all__ = [
    "HydrationResult",
    "IndexQuery",
    "QUERY_SCHEMA_VERSION",
    "QueryTranslator",
    "ResultHydrator",
    "SearchExecutor",
    "make_range",
    "parse_filter",
]
