"""
Index writer: upserts record documents into OpenSearch.

Upserts are keyed by the record identifier, so replaying the same record is
observably a no-op. Failures are reported as `IndexWriteError` with a
`transient` flag; retrying is the write synchronizer's decision.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Protocol, runtime_checkable

from opensearchpy import OpenSearch
from opensearchpy.exceptions import ConnectionError as TransportConnectionError
from opensearchpy.exceptions import OpenSearchException, TransportError

from recordsearch.config import SearchConfig
from recordsearch.domain.errors import IndexWriteError
from recordsearch.domain.models import Record
from recordsearch.index.documents import INDEX_BODY, document_id, to_document
from recordsearch.utils.logging import get_logger

log = get_logger(__name__)

_TRANSIENT_STATUS = frozenset({429, 502, 503, 504})


def is_transient(exc: Exception) -> bool:
    """Connection loss, timeouts, throttling and gateway errors are worth a retry."""
    if isinstance(exc, TransportConnectionError):
        return True
    if isinstance(exc, TransportError):
        return exc.status_code in _TRANSIENT_STATUS
    return False


@runtime_checkable
class IndexWriter(Protocol):
    def upsert(self, record: Record) -> None:
        """Index the record's document; raise `IndexWriteError` on failure."""
        ...

    def bulk_upsert(self, records: Iterable[Record]) -> int:
        """Index many documents in one request; return how many were written."""
        ...

    def ensure_index(self) -> bool:
        """Create the index when missing; return whether it was created."""
        ...


class OpenSearchIndexWriter:
    """
    `IndexWriter` backed by the synchronous ``opensearch-py`` client.

    Args:
        client: A shared ``OpenSearch`` client.
        config: Index name, per-call timeout and refresh policy.
    """

    def __init__(self, client: OpenSearch, config: SearchConfig) -> None:
        self._client = client
        self._config = config

    @property
    def index(self) -> str:
        return self._config.index

    def _call_params(self) -> Dict[str, Any]:
        return {
            "refresh": "wait_for" if self._config.refresh else "false",
            "request_timeout": self._config.request_timeout_s,
        }

    def ensure_index(self) -> bool:
        try:
            if self._client.indices.exists(index=self.index):
                return False
            self._client.indices.create(index=self.index, body=INDEX_BODY)
        except TransportError as exc:
            if exc.status_code == 400 and "resource_already_exists" in str(exc.error):
                return False
            raise IndexWriteError(
                f"Failed to create index '{self.index}': {exc}",
                operation="ensure_index",
                transient=is_transient(exc),
            ) from exc
        log.info("Index created", extra={"index": self.index})
        return True

    def upsert(self, record: Record) -> None:
        if not record.id:
            raise IndexWriteError("Record has no identifier", operation="upsert")
        try:
            self._client.index(
                index=self.index,
                id=document_id(record.id),
                body=to_document(record),
                **self._call_params(),
            )
        except OpenSearchException as exc:
            raise IndexWriteError(
                f"Index upsert failed: {exc}",
                operation="upsert",
                record_id=record.id,
                transient=is_transient(exc),
            ) from exc

    def bulk_upsert(self, records: Iterable[Record]) -> int:
        body: List[Dict[str, Any]] = []
        for record in records:
            body.append({"index": {"_index": self.index, "_id": document_id(record.id)}})
            body.append(to_document(record))
        if not body:
            return 0

        try:
            response = self._client.bulk(body=body, **self._call_params())
        except OpenSearchException as exc:
            raise IndexWriteError(
                f"Bulk upsert failed: {exc}", operation="bulk_upsert", transient=is_transient(exc)
            ) from exc

        written = len(body) // 2
        if response.get("errors"):
            failed = [
                item["index"].get("_id")
                for item in response.get("items", [])
                if item.get("index", {}).get("error")
            ]
            raise IndexWriteError(
                f"Bulk upsert rejected {len(failed)} of {written} documents: {failed[:10]}",
                operation="bulk_upsert",
            )
        return written


__all__ = ["IndexWriter", "OpenSearchIndexWriter", "is_transient"]
