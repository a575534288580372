"""
Store package for Record Search.

The system-of-record adapter: durable create/update and point/batch lookups.
"""

from recordsearch.store.record_store import PostgresRecordStore, RecordStore

__all__ = [
    "PostgresRecordStore",
    "RecordStore",
]
