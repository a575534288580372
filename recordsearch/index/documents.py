"""
Index document translation.

Every Record field maps to exactly one index document field. The description
is analyzed text for term matching; dates, the timestamp and the numeric
measurements stay range-filterable and sortable; `id` is kept as a numeric
field so queries can break score ties deterministically.
"""

from __future__ import annotations

from typing import Any, Dict

from recordsearch.domain.models import Record

# Bump when the mapping below changes in a way existing indices cannot absorb.
INDEX_SCHEMA_VERSION = 1

INDEX_BODY: Dict[str, Any] = {
    "settings": {
        "index": {"number_of_shards": 1, "number_of_replicas": 0},
    },
    "mappings": {
        "_meta": {"schema_version": INDEX_SCHEMA_VERSION},
        "dynamic": "strict",
        "properties": {
            "id": {"type": "long"},
            "record_date": {"type": "date", "format": "strict_date"},
            "recorded_at": {"type": "date", "format": "strict_date_optional_time"},
            "quantity": {"type": "long"},
            "amount": {"type": "scaled_float", "scaling_factor": 100},
            "category": {"type": "keyword"},
            "source": {"type": "keyword"},
            "description": {"type": "text", "analyzer": "standard"},
        },
    },
}


def document_id(record_id: int) -> str:
    return str(record_id)


def to_document(record: Record) -> Dict[str, Any]:
    """Project a persisted record onto its index document."""
    if not record.id:
        raise ValueError("only persisted records can be indexed")
    return {
        "id": record.id,
        "record_date": record.record_date.isoformat(),
        "recorded_at": record.recorded_at.isoformat(),
        "quantity": record.quantity,
        "amount": float(record.amount),
        "category": record.category,
        "source": record.source,
        "description": record.description,
    }


__all__ = ["INDEX_BODY", "INDEX_SCHEMA_VERSION", "document_id", "to_document"]
