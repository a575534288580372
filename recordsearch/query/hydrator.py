"""
Result hydration: ordered identifiers -> ordered outward record views.
"""

from __future__ import annotations

from typing import Iterable, List, NamedTuple, Tuple

from recordsearch.domain.models import RecordView
from recordsearch.store.record_store import RecordStore
from recordsearch.utils.logging import get_logger

log = get_logger(__name__)


class HydrationResult(NamedTuple):
    views: Tuple[RecordView, ...]
    # Identifiers the index returned that the store does not hold (index lag).
    missing_ids: Tuple[int, ...]


class ResultHydrator:
    """
    Batch-fetches records for a page of identifiers and restores their order.

    The store's batch lookup does not preserve order, so results are re-projected
    in the order the search executor produced. Identifiers absent from the store
    are dropped and reported rather than raised; the page is then shorter than
    requested.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def hydrate(self, record_ids: Iterable[int]) -> HydrationResult:
        ordered = list(dict.fromkeys(record_ids))
        if not ordered:
            return HydrationResult(views=(), missing_ids=())

        found = self._store.get_by_ids(ordered)
        views: List[RecordView] = []
        missing: List[int] = []
        for record_id in ordered:
            record = found.get(record_id)
            if record is None:
                missing.append(record_id)
                continue
            views.append(RecordView.from_record(record))

        if missing:
            log.warning(
                "[HYDRATION GAP] index returned identifiers missing from the store",
                extra={"missing_ids": missing, "requested": len(ordered)},
            )
        return HydrationResult(views=tuple(views), missing_ids=tuple(missing))


__all__ = ["HydrationResult", "ResultHydrator"]
