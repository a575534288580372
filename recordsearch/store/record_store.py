"""
Record store adapter over the PostgreSQL system-of-record.

The store is authoritative for record data. It performs no retries of its own:
the write synchronizer decides what happens after a failure. Every statement
runs under a per-call `statement_timeout` and every pool checkout under the
pool's acquisition timeout, so no call blocks indefinitely.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Generator, Iterable, Iterator, List, Protocol, runtime_checkable

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool, PoolTimeout

from recordsearch.config import StoreConfig
from recordsearch.domain.errors import PersistenceError, RecordNotFoundError
from recordsearch.domain.models import Record
from recordsearch.infrastructure.db_factory import apply_statement_timeout
from recordsearch.utils.logging import get_logger

log = get_logger(__name__)

_COLUMNS = "id, record_date, recorded_at, quantity, amount, category, source, description"

_INSERT_SQL = """
    INSERT INTO public.records
        (record_date, recorded_at, quantity, amount, category, source, description)
    VALUES (%s, %s, %s, %s, %s, %s, %s)
    RETURNING id;
"""

_UPDATE_SQL = """
    UPDATE public.records
    SET record_date = %s, recorded_at = %s, quantity = %s, amount = %s,
        category = %s, source = %s, description = %s
    WHERE id = %s
    RETURNING id;
"""


@runtime_checkable
class RecordStore(Protocol):
    """
    Contract of the system-of-record as seen by the pipeline.
    """

    def save(self, record: Record) -> int:
        """Insert when `record.id` is unset, update by id otherwise; return the id."""
        ...

    def get_by_id(self, record_id: int) -> Record:
        """Return the record or raise `RecordNotFoundError`."""
        ...

    def get_by_ids(self, record_ids: Iterable[int]) -> Dict[int, Record]:
        """Batch lookup; missing ids are absent from the mapping, order is not kept."""
        ...

    def iter_records(self, batch_size: int) -> Iterator[List[Record]]:
        """Yield every record in id order, `batch_size` at a time."""
        ...


def _params(record: Record) -> tuple:
    return (
        record.record_date,
        record.recorded_at,
        record.quantity,
        record.amount,
        record.category,
        record.source,
        record.description,
    )


class PostgresRecordStore:
    """
    `RecordStore` backed by a psycopg `ConnectionPool`.

    The pool is shared and thread-safe; the store itself holds no other state.
    """

    def __init__(self, pool: ConnectionPool, config: StoreConfig) -> None:
        self._pool = pool
        self._config = config

    @contextmanager
    def _cursor(self, operation: str, record_id: int | None = None) -> Generator[psycopg.Cursor, None, None]:
        """Check out a connection, bound the transaction, and translate failures."""
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    apply_statement_timeout(cur, self._config.statement_timeout_ms)
                    yield cur
        except PoolTimeout as exc:
            raise PersistenceError(
                f"Record store unavailable: {exc}", operation=operation, record_id=record_id
            ) from exc
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Record store {operation} failed: {exc}", operation=operation, record_id=record_id
            ) from exc

    def save(self, record: Record) -> int:
        if record.is_new:
            with self._cursor("insert") as cur:
                cur.execute(_INSERT_SQL, _params(record))
                row = cur.fetchone()
            record_id = int(row["id"])
            log.debug("Record inserted", extra={"record_id": record_id})
            return record_id

        with self._cursor("update", record.id) as cur:
            cur.execute(_UPDATE_SQL, (*_params(record), record.id))
            row = cur.fetchone()
        if row is None:
            raise PersistenceError(
                "Cannot update a record the store never assigned",
                operation="update",
                record_id=record.id,
            )
        log.debug("Record updated", extra={"record_id": record.id})
        return int(row["id"])

    def get_by_id(self, record_id: int) -> Record:
        with self._cursor("get_by_id", record_id) as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM public.records WHERE id = %s;", (record_id,))
            row = cur.fetchone()
        if row is None:
            raise RecordNotFoundError("Record not found", operation="get_by_id", record_id=record_id)
        return Record.model_validate(row)

    def get_by_ids(self, record_ids: Iterable[int]) -> Dict[int, Record]:
        ids = list(dict.fromkeys(record_ids))
        if not ids:
            return {}
        with self._cursor("get_by_ids") as cur:
            cur.execute(f"SELECT {_COLUMNS} FROM public.records WHERE id = ANY(%s);", (ids,))
            rows = cur.fetchall()
        return {int(row["id"]): Record.model_validate(row) for row in rows}

    def iter_records(self, batch_size: int) -> Iterator[List[Record]]:
        """
        Stream the whole table through a server-side cursor.

        The scan is not bounded by the per-call statement timeout; it is meant
        for the offline index rebuild, not for request paths.
        """
        try:
            with self._pool.connection() as conn:
                # Use name to trigger server-side cursor
                with conn.cursor(name="records_scan", row_factory=dict_row) as cur:
                    cur.execute(f"SELECT {_COLUMNS} FROM public.records ORDER BY id;")
                    while True:
                        rows = cur.fetchmany(batch_size)
                        if not rows:
                            break
                        yield [Record.model_validate(row) for row in rows]
        except PoolTimeout as exc:
            raise PersistenceError(f"Record store unavailable: {exc}", operation="scan") from exc
        except psycopg.Error as exc:
            raise PersistenceError(f"Record store scan failed: {exc}", operation="scan") from exc


__all__ = ["PostgresRecordStore", "RecordStore"]
