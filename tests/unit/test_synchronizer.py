from __future__ import annotations

import pytest

from recordsearch.config import RetryPolicy
from recordsearch.domain.errors import PersistenceError
from recordsearch.domain.models import WriteState
from recordsearch.index.writer import OpenSearchIndexWriter
from recordsearch.sync.synchronizer import WriteSynchronizer
from tests.fakes import connection_refused, rejected, unavailable

ATTEMPTS = 3


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def synchronizer(store, search_client, search_config, sleeps):
    writer = OpenSearchIndexWriter(search_client, search_config)
    policy = RetryPolicy(attempts=ATTEMPTS, backoff_s=0.1, max_backoff_s=1.0)
    return WriteSynchronizer(store, writer, policy, sleep=sleeps.append)


def test_store_then_index_reaches_done(synchronizer, store, search_client, make_record):
    outcome = synchronizer.write(make_record(1, description="steel bolt"))

    assert outcome.state is WriteState.DONE
    assert outcome.index_degraded is False
    assert outcome.attempts == 1
    assert store.get_by_id(outcome.record_id).description == "steel bolt"
    assert search_client.docs[str(outcome.record_id)]["description"] == "steel bolt"


def test_update_keeps_identifier_and_overwrites_document(synchronizer, search_client, make_record):
    first = synchronizer.write(make_record(1, description="steel bolt"))
    updated = make_record(1, description="brass bolt").model_copy(update={"id": first.record_id})

    second = synchronizer.write(updated)

    assert second.record_id == first.record_id
    assert len(search_client.docs) == 1
    assert search_client.docs[str(first.record_id)]["description"] == "brass bolt"


def test_transient_index_failure_is_retried_with_backoff(synchronizer, search_client, sleeps, make_record):
    search_client.index_failures.extend([connection_refused(), unavailable(503)])

    outcome = synchronizer.write(make_record(1))

    assert outcome.state is WriteState.DONE
    assert outcome.attempts == ATTEMPTS
    assert len(search_client.index_calls) == ATTEMPTS
    assert len(sleeps) == ATTEMPTS - 1
    assert sleeps == sorted(sleeps)
    assert all(0 < delay <= 1.0 for delay in sleeps)


def test_exhausted_retries_yield_degraded_success(synchronizer, store, search_client, make_record):
    search_client.index_failures.extend([unavailable(503)] * ATTEMPTS)

    outcome = synchronizer.write(make_record(1, description="steel bolt"))

    assert outcome.state is WriteState.INDEX_FAILED
    assert outcome.index_degraded is True
    assert outcome.attempts == ATTEMPTS
    assert "503" in outcome.error
    # Durable in the store immediately, absent from the index.
    assert store.get_by_id(outcome.record_id).description == "steel bolt"
    assert search_client.docs == {}


def test_non_transient_index_failure_is_not_retried(synchronizer, search_client, sleeps, make_record):
    search_client.index_failures.append(rejected())

    outcome = synchronizer.write(make_record(1))

    assert outcome.state is WriteState.INDEX_FAILED
    assert outcome.attempts == 1
    assert len(search_client.index_calls) == 1
    assert sleeps == []


def test_store_failure_is_fatal_and_nothing_is_indexed(synchronizer, store, search_client, make_record):
    store.save_error = PersistenceError("duplicate key", operation="insert")

    with pytest.raises(PersistenceError):
        synchronizer.write(make_record(1))

    assert search_client.index_calls == []
    assert len(store) == 0


def test_updating_unknown_identifier_fails_before_indexing(synchronizer, search_client, make_record):
    ghost = make_record(1).model_copy(update={"id": 404})

    with pytest.raises(PersistenceError) as excinfo:
        synchronizer.write(ghost)

    assert excinfo.value.record_id == 404
    assert search_client.index_calls == []
