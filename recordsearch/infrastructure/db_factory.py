"""
Database connection factory utilities for Record Search.

Builds PostgreSQL DSNs and connection pools from explicit configuration. The
composition root owns the pool it creates and closes it on shutdown; nothing
here keeps process-wide state.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import Connection
from psycopg_pool import ConnectionPool
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from recordsearch.config import Settings, StoreConfig, get_settings


def build_dsn(settings: Optional[Settings] = None) -> str:
    """Compose a DSN string from settings."""
    return (settings or get_settings()).dsn


def create_sync_pool(config: StoreConfig) -> ConnectionPool:
    """
    Create and open a synchronous connection pool.

    Parameters
    ----------
    config : StoreConfig
        DSN, pool bounds and the acquisition timeout (seconds) applied to
        every `pool.connection()` call.

    Returns
    -------
    ConnectionPool
        An opened pool; the caller is responsible for closing it.
    """
    return ConnectionPool(
        conninfo=config.dsn,
        min_size=config.pool_min_size,
        max_size=config.pool_max_size,
        timeout=config.pool_timeout_s,
        open=True,
    )


def apply_statement_timeout(cursor: psycopg.Cursor, timeout_ms: int) -> None:
    """
    Bound every statement of the current transaction to `timeout_ms`.

    A value of 0 or less leaves the server default untouched.
    """
    if timeout_ms <= 0:
        return
    cursor.execute("SELECT set_config('statement_timeout', %s, true);", (str(timeout_ms),))


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
    reraise=True,
)
def get_sync_connection(dsn: Optional[str] = None) -> Connection:
    """
    Acquire a dedicated synchronous connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.
    Use this for one-off operations such as bulk loads. Prefer the pool for repeated use.

    Raises
    ------
    psycopg.OperationalError
        If connection fails after all retry attempts.
    """
    return psycopg.connect(dsn or build_dsn())


__all__ = [
    "apply_statement_timeout",
    "build_dsn",
    "create_sync_pool",
    "get_sync_connection",
]
