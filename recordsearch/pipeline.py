"""
Pipeline coordinator: the inbound read and write interface.

Usage:
    from recordsearch.pipeline import build_pipeline

    with build_pipeline() as pipeline:
        page = pipeline.coordinator.list_records(page_number=1, page_size=10, filter="bolt")
        outcome = pipeline.coordinator.upsert_record(record)

Reads run translate -> search -> hydrate; writes go through the write
synchronizer. The coordinator holds references to its components and nothing
else: no cache, no per-request state, so one instance serves concurrent
requests.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Generator, Optional, Union

from opensearchpy import OpenSearch
from psycopg_pool import ConnectionPool

from recordsearch.config import QueryConfig, RetryPolicy, Settings, get_settings
from recordsearch.domain.errors import PipelineError
from recordsearch.domain.models import (
    MatchMode,
    Record,
    RecordFilter,
    RecordPage,
    RecordView,
    WriteOutcome,
)
from recordsearch.index.writer import IndexWriter, OpenSearchIndexWriter
from recordsearch.infrastructure.db_factory import create_sync_pool
from recordsearch.infrastructure.search_factory import create_search_client
from recordsearch.query.executor import SearchExecutor
from recordsearch.query.hydrator import ResultHydrator
from recordsearch.query.translator import QueryTranslator, parse_filter
from recordsearch.store.record_store import PostgresRecordStore, RecordStore
from recordsearch.sync.reconciler import Reconciler
from recordsearch.sync.synchronizer import WriteSynchronizer
from recordsearch.utils.logging import get_logger

log = get_logger(__name__)


@contextmanager
def _stage(name: str) -> Generator[None, None, None]:
    """Log a failing stage with its error kind and context, then re-raise."""
    try:
        yield
    except PipelineError as exc:
        log.error(f"[{name.upper()} FAILED] {exc.message}", extra={"stage": name, **exc.context()})
        raise


class PipelineCoordinator:
    """
    Composes query translation, search, hydration and synchronized writes.

    Every error raised is a `PipelineError` subclass whose `kind` tells the
    caller what failed: `invalid_query` (fix the input), `search_unavailable`
    and `persistence` (retry later), `not_found`. Index write failures never
    surface here: they come back as a degraded `WriteOutcome`.
    """

    def __init__(
        self,
        store: RecordStore,
        translator: QueryTranslator,
        executor: SearchExecutor,
        hydrator: ResultHydrator,
        synchronizer: WriteSynchronizer,
        reconciler: Reconciler,
    ) -> None:
        self._store = store
        self._translator = translator
        self._executor = executor
        self._hydrator = hydrator
        self._synchronizer = synchronizer
        self._reconciler = reconciler

    def list_records(
        self,
        page_number: int = 1,
        page_size: Optional[int] = None,
        filter: Union[str, RecordFilter, None] = None,
        match_mode: Optional[MatchMode] = None,
    ) -> RecordPage:
        """
        Return one page of records matching `filter`, in relevance order.

        Parameters
        ----------
        page_number : int
            1-based page number.
        page_size : int | None
            Page size; defaults to the configured default and is capped by the
            configured maximum.
        filter : str | RecordFilter | None
            A filter expression (see `recordsearch.query.translator`) or an
            already structured filter.
        match_mode : MatchMode | None
            Overrides the configured combination of text and range clauses.

        Returns
        -------
        RecordPage
            The hydrated page. It may hold fewer than `page_size` items when the
            index references records the store no longer has; those ids are
            listed in `missing_ids`.
        """
        with _stage("translate"):
            record_filter = filter if isinstance(filter, RecordFilter) else parse_filter(filter)
            page = self._translator.page_request(page_number, page_size)
            query = self._translator.translate(record_filter, page, match_mode)

        with _stage("search"):
            result = self._executor.execute(query)

        with _stage("hydrate"):
            hydrated = self._hydrator.hydrate(result.ids)

        log.info(
            "[READ] page served",
            extra={
                "query": query.describe(),
                "items": len(hydrated.views),
                "total": result.total,
                "missing": len(hydrated.missing_ids),
                "took_ms": result.took_ms,
            },
        )
        return RecordPage(
            items=hydrated.views,
            page_number=page.page_number,
            page_size=page.page_size,
            total=result.total,
            total_is_exact=result.total_is_exact,
            missing_ids=hydrated.missing_ids,
        )

    def upsert_record(self, record: Record) -> WriteOutcome:
        """Persist then index `record`; see `WriteSynchronizer.write`."""
        with _stage("write"):
            return self._synchronizer.write(record)

    def get_record(self, record_id: int) -> RecordView:
        with _stage("get"):
            return RecordView.from_record(self._store.get_by_id(record_id))

    def ensure_index(self) -> bool:
        with _stage("init_index"):
            return self._reconciler.ensure_index()

    def reindex(self, batch_size: int = 1_000) -> int:
        """Rebuild the index by replaying every stored record."""
        with _stage("reindex"):
            return self._reconciler.reindex(batch_size)


def compose(
    store: RecordStore,
    index_writer: IndexWriter,
    executor: SearchExecutor,
    query_config: QueryConfig,
    retry_policy: RetryPolicy,
    sleep: Optional[Callable[[float], None]] = None,
) -> PipelineCoordinator:
    """Wire a coordinator from already constructed adapters."""
    return PipelineCoordinator(
        store=store,
        translator=QueryTranslator(query_config),
        executor=executor,
        hydrator=ResultHydrator(store),
        synchronizer=WriteSynchronizer(store, index_writer, retry_policy, sleep=sleep),
        reconciler=Reconciler(store, index_writer),
    )


@dataclass
class Pipeline:
    """A coordinator together with the connection resources it was built on."""

    coordinator: PipelineCoordinator
    pool: ConnectionPool
    client: OpenSearch

    def close(self) -> None:
        try:
            self.client.close()
        finally:
            self.pool.close()

    def __enter__(self) -> "Pipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def build_pipeline(settings: Optional[Settings] = None) -> Pipeline:
    """
    Build the production pipeline (PostgreSQL pool + OpenSearch client) from settings.
    """
    settings = settings or get_settings()
    search_config = settings.search_config()
    pool = create_sync_pool(settings.store_config())
    client = create_search_client(search_config)

    coordinator = compose(
        store=PostgresRecordStore(pool, settings.store_config()),
        index_writer=OpenSearchIndexWriter(client, search_config),
        executor=SearchExecutor(client, search_config),
        query_config=settings.query_config(),
        retry_policy=settings.retry_policy(),
    )
    log.info(
        "Pipeline assembled",
        extra={"db": f"{settings.db_host}:{settings.db_port}/{settings.db_name}", "index": search_config.index},
    )
    return Pipeline(coordinator=coordinator, pool=pool, client=client)


__all__ = ["Pipeline", "PipelineCoordinator", "build_pipeline", "compose"]
