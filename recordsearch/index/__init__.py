"""
Index package for Record Search.

Translates records into index documents and writes them into OpenSearch.
The index is a derived, rebuildable cache of the system-of-record.
"""

from recordsearch.index.documents import INDEX_BODY, INDEX_SCHEMA_VERSION, to_document
from recordsearch.index.writer import IndexWriter, OpenSearchIndexWriter, is_transient

__all__ = [
    "INDEX_BODY",
    "INDEX_SCHEMA_VERSION",
    "IndexWriter",
    "OpenSearchIndexWriter",
    "is_transient",
    "to_document",
]
