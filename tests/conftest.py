"""
Pytest configuration for Record Search.

Provides fixtures for:
- In-memory record store and fake OpenSearch client wired into a coordinator
- A record factory with deterministic field values
- Settings and DSN for integration tests against real services
"""

from __future__ import annotations

import os
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Generator, List

import psycopg
import pytest

from recordsearch.config import QueryConfig, RetryPolicy, SearchConfig, Settings
from recordsearch.domain.models import Record
from recordsearch.index.writer import OpenSearchIndexWriter
from recordsearch.pipeline import PipelineCoordinator, compose
from recordsearch.query.executor import SearchExecutor
from tests.fakes import FakeOpenSearch, InMemoryRecordStore

BASE_TIME = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_record() -> Callable[..., Record]:
    """
    Factory for unsaved records; field values derive from `n` unless overridden.
    """

    def _make(n: int = 1, **overrides: Any) -> Record:
        fields = {
            "record_date": date(2024, 1, 1) + timedelta(days=n),
            "recorded_at": BASE_TIME + timedelta(hours=n),
            "quantity": n * 10,
            "amount": Decimal(n) + Decimal("0.50"),
            "category": "alpha" if n % 2 else "beta",
            "source": "test",
            "description": f"item {n}",
        }
        fields.update(overrides)
        return Record(**fields)

    return _make


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def search_client() -> FakeOpenSearch:
    return FakeOpenSearch()


@pytest.fixture
def search_config() -> SearchConfig:
    return SearchConfig(index="records-test", exact_total_hits=True)


@pytest.fixture
def query_config() -> QueryConfig:
    return QueryConfig(default_page_size=10, max_page_size=50, max_result_window=1_000)


@pytest.fixture
def retry_policy() -> RetryPolicy:
    return RetryPolicy(attempts=3, backoff_s=0.1, max_backoff_s=1.0)


@pytest.fixture
def sleeps() -> List[float]:
    """Records backoff sleeps instead of sleeping."""
    return []


@pytest.fixture
def coordinator(
    store: InMemoryRecordStore,
    search_client: FakeOpenSearch,
    search_config: SearchConfig,
    query_config: QueryConfig,
    retry_policy: RetryPolicy,
    sleeps: List[float],
) -> PipelineCoordinator:
    return compose(
        store=store,
        index_writer=OpenSearchIndexWriter(search_client, search_config),
        executor=SearchExecutor(search_client, search_config),
        query_config=query_config,
        retry_policy=retry_policy,
        sleep=sleeps.append,
    )


@pytest.fixture
def bolt_records(coordinator: PipelineCoordinator, make_record: Callable[..., Record]) -> List[int]:
    """
    Insert records 1..25 through the pipeline; odd identifiers mention "bolt".
    """
    ids = []
    for n in range(1, 26):
        description = f"steel bolt lot {n}" if n % 2 else f"brass washer lot {n}"
        outcome = coordinator.upsert_record(make_record(n, description=description))
        ids.append(outcome.record_id)
    return ids


# -- Integration ---------------------------------------------------------------


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "records"),
        search_hosts=os.getenv("SEARCH_HOSTS", "http://localhost:9200"),
        search_index=os.getenv("SEARCH_INDEX", "records-it"),
        search_verify_certs=False,
        search_refresh=True,
        search_exact_total_hits=True,
        index_retry_backoff_s=0.0,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def db_connection(test_settings: Settings) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection with the schema initialized.

    Skips tests if database is not available.
    """
    try:
        conn = psycopg.connect(test_settings.dsn, connect_timeout=5)
    except psycopg.OperationalError:
        pytest.skip("Database not available for integration tests")

    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with conn.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    conn.commit()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def clean_records_table(db_connection: psycopg.Connection) -> Generator[None, None, None]:
    """
    Empty the records table around each test function.
    """
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.records RESTART IDENTITY CASCADE;")
    db_connection.commit()
    yield
    with db_connection.cursor() as cur:
        cur.execute("TRUNCATE TABLE public.records RESTART IDENTITY CASCADE;")
    db_connection.commit()
