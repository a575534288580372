"""
Domain models for Record Search.

Defines the record schema aligned with `db/init.sql`, its outward view, and the
read-only query parameters (page request, filter) plus the result contracts
passed between the pipeline components.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel, Field, model_validator

RangeValue = Union[date, datetime, int, Decimal]

# Fields an index document keeps as range-filterable/sortable.
RANGE_FIELDS: Tuple[str, ...] = ("record_date", "recorded_at", "quantity", "amount")


class MatchMode(str, Enum):
    """How a free-text term and range constraints are combined."""

    ANY = "any"
    ALL = "all"


class WriteState(str, Enum):
    PERSISTING = "persisting"
    PERSISTED = "persisted"
    INDEXING = "indexing"
    DONE = "done"
    FAILED = "failed"
    INDEX_FAILED = "index_failed"


class Record(BaseModel):
    """
    Representation of a single row in the `records` table.

    `id` is assigned by the store; `None` or `0` marks a record that has not
    been persisted yet.
    """

    id: Optional[int] = Field(None, description="Primary key (BIGSERIAL).")
    record_date: date = Field(..., description="Calendar date the record refers to.")
    recorded_at: datetime = Field(..., description="Measurement timestamp.")
    quantity: int = Field(..., description="Integer measurement.")
    amount: Decimal = Field(..., max_digits=14, decimal_places=2, description="Decimal measurement.")
    category: str = Field(..., max_length=32, description="Categorical label.")
    source: str = Field("generator", max_length=32, description="Origin of the record data.")
    description: str = Field("", description="Free-text description.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    @property
    def is_new(self) -> bool:
        return not self.id


class RecordView(BaseModel):
    """Outward projection of a Record; provenance (`source`) is not presented."""

    id: int
    record_date: date
    recorded_at: datetime
    quantity: int
    amount: Decimal
    category: str
    description: str

    model_config = {"frozen": True}

    @classmethod
    def from_record(cls, record: Record) -> "RecordView":
        return cls.model_validate(record.model_dump(exclude={"source"}))


class PageRequest(BaseModel):
    """
    Page coordinates as supplied by the caller.

    Bounds are not validated here: the query translator rejects out-of-range
    values with `InvalidQueryError` before anything touches a store.
    """

    page_number: int = 1
    page_size: int = 10

    model_config = {"frozen": True}

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


class RangeConstraint(BaseModel):
    """
    Bounded range on one field. Bounds are kept as given (date, datetime, int
    or Decimal); the query translator coerces them to the field's type.
    """

    field: str
    gte: Optional[Any] = None
    lte: Optional[Any] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_bounds(self) -> "RangeConstraint":
        if self.gte is None and self.lte is None:
            raise ValueError(f"range on '{self.field}' needs at least one bound")
        if self.gte is not None and self.lte is not None:
            try:
                inverted = self.gte > self.lte
            except (TypeError, ArithmeticError) as exc:
                raise ValueError(f"range on '{self.field}' has incomparable bounds") from exc
            if inverted:
                raise ValueError(f"range on '{self.field}' has lower bound above upper bound")
        return self


class RecordFilter(BaseModel):
    text: Optional[str] = None
    ranges: Tuple[RangeConstraint, ...] = ()

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.ranges


class SearchPage(BaseModel):
    """Ordered identifiers of one page plus the total match count."""

    ids: Tuple[int, ...] = ()
    total: int = 0
    total_is_exact: bool = True
    took_ms: int = 0

    model_config = {"frozen": True}


class WriteOutcome(BaseModel):
    """
    Result of a synchronized write.

    `index_degraded` marks a degraded success: the record is durable in the
    store but not yet searchable.
    """

    record_id: int
    state: WriteState
    index_degraded: bool = False
    attempts: int = 0
    error: Optional[str] = None

    model_config = {"frozen": True}


class RecordPage(BaseModel):
    items: Tuple[RecordView, ...] = ()
    page_number: int
    page_size: int
    total: int = 0
    total_is_exact: bool = True
    # Identifiers the index returned but the store no longer holds.
    missing_ids: Tuple[int, ...] = ()

    model_config = {"frozen": True}

    @property
    def has_gap(self) -> bool:
        return bool(self.missing_ids)


__all__ = [
    "MatchMode",
    "PageRequest",
    "RANGE_FIELDS",
    "RangeConstraint",
    "RangeValue",
    "Record",
    "RecordFilter",
    "RecordPage",
    "RecordView",
    "SearchPage",
    "WriteOutcome",
    "WriteState",
]
