"""
Write synchronizer: store first, then index.

State machine per write request:

    PERSISTING -> PERSISTED -> INDEXING -> DONE
    PERSISTING -> FAILED          (store write failed; nothing is indexed)
    PERSISTED  -> INDEX_FAILED    (record is durable but not yet searchable)

The store write is authoritative and fatal on failure. The index upsert is
best-effort: transient failures are retried with bounded exponential backoff,
and an index that stays unavailable yields a degraded success instead of an
error, because the index can always be rebuilt from the store.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from recordsearch.config import RetryPolicy
from recordsearch.domain.errors import IndexWriteError, PersistenceError
from recordsearch.domain.models import Record, WriteOutcome, WriteState
from recordsearch.index.writer import IndexWriter
from recordsearch.store.record_store import RecordStore
from recordsearch.utils.logging import get_logger

log = get_logger(__name__)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, IndexWriteError) and exc.transient


class WriteSynchronizer:
    """
    Orchestrates a single write across the record store and the index writer.

    Parameters
    ----------
    store : RecordStore
        The system-of-record adapter.
    index_writer : IndexWriter
        The search index writer.
    retry_policy : RetryPolicy
        Attempt count and backoff bounds for index upserts.
    sleep : callable, optional
        Sleep function used between retries (injectable for tests).
    """

    def __init__(
        self,
        store: RecordStore,
        index_writer: IndexWriter,
        retry_policy: RetryPolicy,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        self._store = store
        self._index_writer = index_writer
        self._retry_policy = retry_policy
        self._sleep = sleep or time.sleep

    def _retrying(self) -> Retrying:
        policy = self._retry_policy
        return Retrying(
            stop=stop_after_attempt(policy.attempts),
            wait=wait_exponential(multiplier=policy.backoff_s, max=policy.max_backoff_s),
            retry=retry_if_exception(_is_retryable),
            sleep=self._sleep,
            reraise=True,
        )

    def write(self, record: Record) -> WriteOutcome:
        """
        Persist `record`, then index it.

        Raises
        ------
        PersistenceError
            When the store write fails. The index is left untouched.
        """
        log.debug("[WRITE PERSISTING] record", extra={"record_id": record.id})
        try:
            record_id = self._store.save(record)
        except PersistenceError as exc:
            log.error(
                "[WRITE FAILED] store write rejected",
                extra={"record_id": record.id, "state": WriteState.FAILED.value, "error": str(exc)},
            )
            raise

        persisted = record if record.id == record_id else record.model_copy(update={"id": record_id})
        log.debug("[WRITE PERSISTED] record", extra={"record_id": record_id})

        attempts = 0
        try:
            for attempt in self._retrying():
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    log.debug(
                        "[WRITE INDEXING] record",
                        extra={"record_id": record_id, "attempt": attempts},
                    )
                    self._index_writer.upsert(persisted)
        except (IndexWriteError, RetryError) as exc:
            log.warning(
                "[WRITE INDEX_FAILED] record saved but not searchable yet",
                extra={
                    "record_id": record_id,
                    "state": WriteState.INDEX_FAILED.value,
                    "attempts": attempts,
                    "error": str(exc),
                },
            )
            return WriteOutcome(
                record_id=record_id,
                state=WriteState.INDEX_FAILED,
                index_degraded=True,
                attempts=attempts,
                error=str(exc),
            )

        log.info("[WRITE DONE] record", extra={"record_id": record_id, "attempts": attempts})
        return WriteOutcome(record_id=record_id, state=WriteState.DONE, attempts=attempts)


__all__ = ["WriteSynchronizer"]
