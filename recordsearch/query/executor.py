"""
Search executor: runs a translated query and returns ordered identifiers.

Ordering is the index relevance score, ties broken by identifier ascending so
consecutive pages neither skip nor repeat records. The total match count is
exact when `SearchConfig.exact_total_hits` is set; otherwise the index counts
up to `total_hits_bound` and larger totals are reported as lower bounds
(`SearchPage.total_is_exact` is False).

There is no fallback data source for relevance search, so every failure is
surfaced as `SearchUnavailableError`.
"""

from __future__ import annotations

import time
from typing import Any, Tuple

from opensearchpy import OpenSearch
from opensearchpy.exceptions import OpenSearchException

from recordsearch.config import SearchConfig
from recordsearch.domain.errors import SearchUnavailableError
from recordsearch.domain.models import SearchPage
from recordsearch.query.translator import IndexQuery
from recordsearch.utils.logging import get_logger

log = get_logger(__name__)


class SearchExecutor:
    """
    Executes `IndexQuery` objects against one OpenSearch index.

    Args:
        client: A shared ``OpenSearch`` client.
        config: Index name, per-call timeout and total-count policy.
    """

    def __init__(self, client: OpenSearch, config: SearchConfig) -> None:
        self._client = client
        self._config = config

    def _track_total_hits(self) -> Any:
        if self._config.exact_total_hits:
            return True
        return self._config.total_hits_bound

    def execute(self, query: IndexQuery) -> SearchPage:
        body = query.to_body()
        body["track_total_hits"] = self._track_total_hits()

        start = time.monotonic()
        try:
            response = self._client.search(
                index=self._config.index,
                body=body,
                request_timeout=self._config.request_timeout_s,
            )
        except OpenSearchException as exc:
            raise SearchUnavailableError(
                f"Search index query failed: {exc}", operation="search", query=query.describe()
            ) from exc
        took_ms = int((time.monotonic() - start) * 1000)

        if response.get("timed_out"):
            raise SearchUnavailableError(
                "Search index timed out with partial results", operation="search", query=query.describe()
            )

        hits = response.get("hits", {})
        total, total_is_exact = _parse_total(hits.get("total", 0))
        try:
            ids = tuple(int(hit["_id"]) for hit in hits.get("hits", []))
        except (KeyError, TypeError, ValueError) as exc:
            raise SearchUnavailableError(
                f"Malformed search response: {exc}", operation="search", query=query.describe()
            ) from exc

        log.debug(
            "[SEARCH] query executed",
            extra={"query": query.describe(), "hits": len(ids), "total": total, "took_ms": took_ms},
        )
        return SearchPage(ids=ids, total=total, total_is_exact=total_is_exact, took_ms=took_ms)


def _parse_total(total: Any) -> Tuple[int, bool]:
    """Read `hits.total` in either the object form or the legacy integer form."""
    if isinstance(total, dict):
        return int(total.get("value", 0)), total.get("relation", "eq") == "eq"
    return int(total or 0), True


__all__ = ["SearchExecutor"]
