"""
Query translation: caller filter + page request -> versioned index query.

The rendered request body is a persisted contract between this module and the
index service. Any change to its shape must bump `QUERY_SCHEMA_VERSION`.

Filter expression grammar (whitespace separated tokens):

    bolt washer                     free-text term on the description
    quantity:10..50                 inclusive range
    amount:..99.90  amount:10..     open-ended ranges
    record_date:>=2024-01-01        same as record_date:2024-01-01..
    recorded_at:<=2024-03-01T12:00  same as recorded_at:..2024-03-01T12:00
    quantity:7                      single value (gte == lte)

Only `record_date`, `recorded_at`, `quantity` and `amount` take ranges; any other
token, including ones that merely contain a colon, is free text.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, ValidationError

from recordsearch.config import QueryConfig
from recordsearch.domain.errors import InvalidQueryError
from recordsearch.domain.models import (
    RANGE_FIELDS,
    MatchMode,
    PageRequest,
    RangeConstraint,
    RangeValue,
    RecordFilter,
)

QUERY_SCHEMA_VERSION = 1

# `quantity` is mapped as a signed 64-bit `long`.
_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1

_TEXT_FIELD = "description"
_TIE_BREAK_FIELD = "id"


def _to_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("booleans are not quantities")
    number = value if isinstance(value, int) else int(str(value))
    if not _LONG_MIN <= number <= _LONG_MAX:
        raise ValueError(f"{number} is outside the 64-bit integer range")
    return number


def _to_decimal(value: Any) -> Decimal:
    number = value if isinstance(value, Decimal) else Decimal(str(value))
    if not number.is_finite():
        raise ValueError(f"{value!r} is not a finite amount")
    return number


_COERCERS: Dict[str, Callable[[Any], RangeValue]] = {
    "record_date": _to_date,
    "recorded_at": _to_datetime,
    "quantity": _to_int,
    "amount": _to_decimal,
}


def _wire_value(value: RangeValue) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


class IndexQuery(BaseModel):
    """Translated query: the stable, versioned wire contract with the index."""

    schema_version: int = QUERY_SCHEMA_VERSION
    text: Optional[str] = None
    ranges: Tuple[RangeConstraint, ...] = ()
    match_mode: MatchMode = MatchMode.ANY
    offset: int = 0
    limit: int = 10

    model_config = {"frozen": True}

    def _range_clauses(self) -> List[Dict[str, Any]]:
        clauses = []
        for constraint in self.ranges:
            bounds = {}
            if constraint.gte is not None:
                bounds["gte"] = _wire_value(constraint.gte)
            if constraint.lte is not None:
                bounds["lte"] = _wire_value(constraint.lte)
            clauses.append({"range": {constraint.field: bounds}})
        return clauses

    def query_clause(self) -> Dict[str, Any]:
        text_clauses = [{"match": {_TEXT_FIELD: {"query": self.text}}}] if self.text else []
        range_clauses = self._range_clauses()
        if not text_clauses and not range_clauses:
            return {"match_all": {}}
        if self.match_mode is MatchMode.ALL:
            clause: Dict[str, Any] = {}
            if text_clauses:
                clause["must"] = text_clauses
            if range_clauses:
                clause["filter"] = range_clauses
            return {"bool": clause}
        return {"bool": {"should": text_clauses + range_clauses, "minimum_should_match": 1}}

    def to_body(self) -> Dict[str, Any]:
        return {
            "query": self.query_clause(),
            "from": self.offset,
            "size": self.limit,
            "sort": [
                {"_score": {"order": "desc"}},
                {_TIE_BREAK_FIELD: {"order": "asc"}},
            ],
            "_source": False,
        }

    def describe(self) -> Dict[str, Any]:
        """Compact form for logs and error context."""
        return {
            "v": self.schema_version,
            "text": self.text,
            "ranges": [c.model_dump(mode="json", exclude_none=True) for c in self.ranges],
            "match_mode": self.match_mode.value,
            "offset": self.offset,
            "limit": self.limit,
        }


def _coerce(field: str, raw: Any) -> RangeValue:
    try:
        return _COERCERS[field](raw)
    except (ValueError, TypeError, ArithmeticError) as exc:
        raise InvalidQueryError(
            f"Invalid value {raw!r} for '{field}'", operation="translate"
        ) from exc


def _range_from_token(field: str, bounds: str) -> RangeConstraint:
    if bounds.startswith(">="):
        lower, upper = bounds[2:], ""
    elif bounds.startswith("<="):
        lower, upper = "", bounds[2:]
    elif ".." in bounds:
        lower, upper = bounds.split("..", 1)
    else:
        lower = upper = bounds
    if not lower and not upper:
        raise InvalidQueryError(f"Range on '{field}' has no bounds", operation="parse_filter")
    return make_range(
        field,
        gte=lower or None,
        lte=upper or None,
    )


def make_range(field: str, gte: Any = None, lte: Any = None) -> RangeConstraint:
    """Build a range constraint with values coerced to the field's type."""
    if field not in RANGE_FIELDS:
        raise InvalidQueryError(
            f"'{field}' is not range-filterable (expected one of {', '.join(RANGE_FIELDS)})",
            operation="translate",
        )
    try:
        return RangeConstraint(
            field=field,
            gte=None if gte is None else _coerce(field, gte),
            lte=None if lte is None else _coerce(field, lte),
        )
    except ValidationError as exc:
        raise InvalidQueryError(
            f"Invalid range on '{field}': {exc.errors()[0]['msg']}", operation="translate"
        ) from exc


def parse_filter(expression: Optional[str]) -> RecordFilter:
    """Parse the inbound filter string into a structured filter."""
    if not expression or not expression.strip():
        return RecordFilter()

    words: List[str] = []
    ranges: List[RangeConstraint] = []
    for token in expression.split():
        field, sep, bounds = token.partition(":")
        if sep and field in RANGE_FIELDS:
            ranges.append(_range_from_token(field, bounds))
        else:
            words.append(token)
    return RecordFilter(text=" ".join(words) or None, ranges=tuple(ranges))


class QueryTranslator:
    """
    Converts a filter and page request into an `IndexQuery`.

    Rejects page requests outside the configured bounds before anything
    touches the index or the store.
    """

    def __init__(self, config: QueryConfig) -> None:
        self._config = config

    @property
    def config(self) -> QueryConfig:
        return self._config

    def page_request(self, page_number: Optional[int] = None, page_size: Optional[int] = None) -> PageRequest:
        return PageRequest(
            page_number=1 if page_number is None else page_number,
            page_size=self._config.default_page_size if page_size is None else page_size,
        )

    def _validate_page(self, page: PageRequest) -> None:
        context = {"page_number": page.page_number, "page_size": page.page_size}
        if page.page_number < 1:
            raise InvalidQueryError("page_number must be >= 1", operation="translate", query=context)
        if page.page_size < 1:
            raise InvalidQueryError("page_size must be >= 1", operation="translate", query=context)
        if page.page_size > self._config.max_page_size:
            raise InvalidQueryError(
                f"page_size must be <= {self._config.max_page_size}",
                operation="translate",
                query=context,
            )
        if page.offset + page.limit > self._config.max_result_window:
            raise InvalidQueryError(
                f"page window exceeds the maximum of {self._config.max_result_window} results",
                operation="translate",
                query=context,
            )

    def translate(
        self,
        record_filter: Optional[RecordFilter],
        page: PageRequest,
        match_mode: Optional[MatchMode] = None,
    ) -> IndexQuery:
        self._validate_page(page)
        record_filter = record_filter or RecordFilter()
        ranges = tuple(make_range(r.field, r.gte, r.lte) for r in record_filter.ranges)
        text = (record_filter.text or "").strip() or None
        return IndexQuery(
            text=text,
            ranges=ranges,
            match_mode=match_mode or self._config.match_mode,
            offset=page.offset,
            limit=page.limit,
        )


__all__ = [
    "IndexQuery",
    "QUERY_SCHEMA_VERSION",
    "QueryTranslator",
    "make_range",
    "parse_filter",
]
