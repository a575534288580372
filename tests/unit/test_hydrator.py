from __future__ import annotations

import pytest

from recordsearch.domain.errors import PersistenceError
from recordsearch.domain.models import RecordView
from recordsearch.query.hydrator import ResultHydrator


@pytest.fixture
def saved_ids(store, make_record):
    return [store.save(make_record(n)) for n in range(1, 8)]


def test_hydration_preserves_search_order(store, saved_ids):
    order = [4, 1, 7, 2]

    result = ResultHydrator(store).hydrate(order)

    # The fake store answers batch lookups in descending id order.
    assert list(store.get_by_ids(order)) == [7, 4, 2, 1]
    assert [view.id for view in result.views] == order
    assert result.missing_ids == ()
    assert store.batch_calls[0] == order


def test_views_omit_provenance(store, saved_ids):
    view = ResultHydrator(store).hydrate([3]).views[0]
    assert isinstance(view, RecordView)
    assert "source" not in view.model_dump()
    assert view.description == "item 3"


def test_missing_identifiers_are_dropped_not_raised(store, saved_ids, caplog):
    store.delete_behind_the_pipeline(5)

    with caplog.at_level("WARNING", logger="recordsearch.query.hydrator"):
        result = ResultHydrator(store).hydrate([6, 5, 99, 1])

    assert [view.id for view in result.views] == [6, 1]
    assert result.missing_ids == (5, 99)
    assert "HYDRATION GAP" in caplog.text


def test_empty_page_skips_the_store(store):
    result = ResultHydrator(store).hydrate([])
    assert result.views == ()
    assert store.batch_calls == []


def test_duplicate_identifiers_hydrate_once(store, saved_ids):
    result = ResultHydrator(store).hydrate([2, 3, 2])
    assert [view.id for view in result.views] == [2, 3]


def test_store_failures_propagate(store, saved_ids, monkeypatch):
    def _down(record_ids):
        raise PersistenceError("Record store unavailable", operation="get_by_ids")

    monkeypatch.setattr(store, "get_by_ids", _down)
    with pytest.raises(PersistenceError):
        ResultHydrator(store).hydrate([1])
