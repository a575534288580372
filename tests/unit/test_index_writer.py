from __future__ import annotations

from typing import Any, Dict, List

import pytest
from opensearchpy.exceptions import ConnectionTimeout

from recordsearch.config import SearchConfig
from recordsearch.domain.errors import ErrorKind, IndexWriteError
from recordsearch.index.documents import INDEX_BODY, INDEX_SCHEMA_VERSION, to_document
from recordsearch.index.writer import IndexWriter, OpenSearchIndexWriter, is_transient
from tests.fakes import FakeOpenSearch, connection_refused, rejected, unavailable


@pytest.fixture
def writer(search_client, search_config) -> OpenSearchIndexWriter:
    return OpenSearchIndexWriter(search_client, search_config)


def _saved(make_record, n: int, **overrides):
    return make_record(n, **overrides).model_copy(update={"id": n})


def test_writer_satisfies_protocol(writer):
    assert isinstance(writer, IndexWriter)


def test_document_shape(make_record):
    doc = to_document(_saved(make_record, 3))
    assert doc["id"] == 3
    assert doc["record_date"] == "2024-01-04"
    assert doc["amount"] == 3.5
    assert doc["description"] == "item 3"
    assert set(doc) == set(INDEX_BODY["mappings"]["properties"])


def test_document_requires_identifier(make_record):
    with pytest.raises(ValueError):
        to_document(make_record(1))


def test_upsert_is_idempotent(writer, search_client, make_record):
    record = _saved(make_record, 1, description="steel bolt")

    writer.upsert(record)
    writer.upsert(record)

    assert list(search_client.docs) == ["1"]
    assert search_client.docs["1"]["description"] == "steel bolt"


def test_upsert_uses_configured_refresh_and_timeout(search_client, make_record):
    config = SearchConfig(index="records-test", refresh=True, request_timeout_s=1.5)
    OpenSearchIndexWriter(search_client, config).upsert(_saved(make_record, 1))

    _, params = search_client.index_calls[0]
    assert params == {"refresh": "wait_for", "request_timeout": 1.5}


def test_upsert_without_identifier_is_rejected(writer, search_client, make_record):
    with pytest.raises(IndexWriteError):
        writer.upsert(make_record(1))
    assert search_client.index_calls == []


@pytest.mark.parametrize(
    ("error", "transient"),
    [
        (connection_refused(), True),
        (ConnectionTimeout("TIMEOUT", "read timed out", None), True),
        (unavailable(429), True),
        (unavailable(503), True),
        (rejected(), False),
        (unavailable(404), False),
    ],
)
def test_upsert_failures_are_classified(writer, search_client, make_record, error, transient):
    search_client.index_failures.append(error)

    with pytest.raises(IndexWriteError) as excinfo:
        writer.upsert(_saved(make_record, 7))

    assert excinfo.value.kind is ErrorKind.INDEX_WRITE
    assert excinfo.value.record_id == 7
    assert excinfo.value.transient is transient
    assert is_transient(error) is transient


def test_is_transient_ignores_foreign_exceptions():
    assert is_transient(ValueError("boom")) is False


def test_ensure_index_creates_once(writer, search_client, search_config):
    assert writer.ensure_index() is True
    assert writer.ensure_index() is False

    body = search_client.indices_created[search_config.index]
    assert body["mappings"]["_meta"]["schema_version"] == INDEX_SCHEMA_VERSION


def test_ensure_index_tolerates_creation_race(search_config):
    client = FakeOpenSearch()
    client.indices_created[search_config.index] = {}
    client.indices.exists = lambda index, **kwargs: False

    assert OpenSearchIndexWriter(client, search_config).ensure_index() is False


def test_ensure_index_surfaces_other_failures(search_config):
    client = FakeOpenSearch()

    def _down(index: str, **kwargs: Any) -> bool:
        raise unavailable(503)

    client.indices.exists = _down
    with pytest.raises(IndexWriteError) as excinfo:
        OpenSearchIndexWriter(client, search_config).ensure_index()
    assert excinfo.value.transient is True


def test_bulk_upsert_writes_every_record(writer, search_client, make_record):
    records = [_saved(make_record, n) for n in range(1, 6)]

    assert writer.bulk_upsert(records) == 5
    assert sorted(search_client.docs, key=int) == ["1", "2", "3", "4", "5"]
    assert writer.bulk_upsert([]) == 0


def test_bulk_upsert_reports_rejected_items(search_config, make_record):
    class _Partial(FakeOpenSearch):
        def bulk(self, body: List[Dict[str, Any]], **kwargs: Any) -> Dict[str, Any]:
            return {
                "errors": True,
                "items": [
                    {"index": {"_id": "1", "status": 200}},
                    {"index": {"_id": "2", "status": 400, "error": {"type": "mapper_parsing_exception"}}},
                ],
            }

    writer = OpenSearchIndexWriter(_Partial(), search_config)
    with pytest.raises(IndexWriteError, match="rejected 1 of 2"):
        writer.bulk_upsert([_saved(make_record, 1), _saved(make_record, 2)])
