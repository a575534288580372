from __future__ import annotations

from typing import Any, Dict

import pytest

from recordsearch.config import QueryConfig, SearchConfig
from recordsearch.domain.errors import ErrorKind, SearchUnavailableError
from recordsearch.domain.models import PageRequest, RecordFilter
from recordsearch.query.executor import SearchExecutor
from recordsearch.query.translator import IndexQuery, QueryTranslator
from tests.fakes import FakeOpenSearch, connection_refused, unavailable

TOTAL_HITS_BOUND = 5


def _index(client: FakeOpenSearch, doc_id: int, description: str) -> None:
    client.docs[str(doc_id)] = {"id": doc_id, "description": description}


def _query(text: str = "", page_number: int = 1, page_size: int = 10) -> IndexQuery:
    translator = QueryTranslator(QueryConfig())
    return translator.translate(
        RecordFilter(text=text or None), PageRequest(page_number=page_number, page_size=page_size)
    )


def test_ties_are_broken_by_identifier_ascending(search_client, search_config):
    for doc_id in (9, 2, 7, 4):
        _index(search_client, doc_id, "bolt")
    _index(search_client, 5, "bolt bolt")

    page = SearchExecutor(search_client, search_config).execute(_query("bolt"))

    assert page.ids == (5, 2, 4, 7, 9)
    assert page.total == 5
    assert page.total_is_exact is True


def test_request_carries_index_timeout_and_total_policy(search_config):
    calls: Dict[str, Any] = {}

    class _Recorder(FakeOpenSearch):
        def search(self, index: str, body: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
            calls.update(index=index, body=body, **kwargs)
            return super().search(index, body, **kwargs)

    SearchExecutor(_Recorder(), search_config).execute(_query("bolt"))

    assert calls["index"] == search_config.index
    assert calls["request_timeout"] == search_config.request_timeout_s
    assert calls["body"]["track_total_hits"] is True


def test_bounded_total_is_reported_as_lower_bound(search_client):
    for doc_id in range(1, 9):
        _index(search_client, doc_id, "bolt")
    config = SearchConfig(exact_total_hits=False, total_hits_bound=TOTAL_HITS_BOUND)

    page = SearchExecutor(search_client, config).execute(_query("bolt", page_size=3))

    assert search_client.search_bodies[-1]["track_total_hits"] == TOTAL_HITS_BOUND
    assert page.ids == (1, 2, 3)
    assert page.total == TOTAL_HITS_BOUND
    assert page.total_is_exact is False


def test_legacy_integer_total_is_exact(search_config):
    class _Legacy(FakeOpenSearch):
        def search(self, index: str, body: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
            return {"timed_out": False, "hits": {"total": 2, "hits": [{"_id": "3"}, {"_id": "8"}]}}

    page = SearchExecutor(_Legacy(), search_config).execute(_query())
    assert page.ids == (3, 8)
    assert (page.total, page.total_is_exact) == (2, True)


@pytest.mark.parametrize("error", [connection_refused(), unavailable(503), unavailable(400)])
def test_transport_failures_surface_as_search_unavailable(search_client, search_config, error):
    search_client.search_error = error

    with pytest.raises(SearchUnavailableError) as excinfo:
        SearchExecutor(search_client, search_config).execute(_query("bolt"))

    assert excinfo.value.kind is ErrorKind.SEARCH_UNAVAILABLE
    assert excinfo.value.query["text"] == "bolt"
    assert excinfo.value.__cause__ is error


def test_timed_out_search_is_not_served_partially(search_config):
    class _Slow(FakeOpenSearch):
        def search(self, index: str, body: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
            return {"timed_out": True, "hits": {"total": {"value": 1}, "hits": [{"_id": "1"}]}}

    with pytest.raises(SearchUnavailableError, match="timed out"):
        SearchExecutor(_Slow(), search_config).execute(_query())


def test_malformed_hit_identifier_is_reported(search_config):
    class _Garbled(FakeOpenSearch):
        def search(self, index: str, body: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
            return {"hits": {"total": {"value": 1}, "hits": [{"_id": "not-a-number"}]}}

    with pytest.raises(SearchUnavailableError, match="Malformed"):
        SearchExecutor(_Garbled(), search_config).execute(_query())
