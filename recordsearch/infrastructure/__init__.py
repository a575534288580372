"""
Infrastructure package for Record Search.

Centralizes connectivity concerns (PostgreSQL pools and connections, the
OpenSearch client). Keep this layer focused on I/O and resource management,
decoupled from store/index/pipeline logic.
"""

from recordsearch.infrastructure.db_factory import (
    apply_statement_timeout,
    build_dsn,
    create_sync_pool,
    get_sync_connection,
)
from recordsearch.infrastructure.search_factory import create_search_client

__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "create_search_client",
    "create_sync_pool",
    "get_sync_connection",
]
