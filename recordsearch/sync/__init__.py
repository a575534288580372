"""
Sync package for Record Search.

Propagates writes from the system-of-record into the search index and rebuilds
the index from the store.
"""

from recordsearch.sync.reconciler import Reconciler
from recordsearch.sync.synchronizer import WriteSynchronizer

__all__ = [
    "Reconciler",
    "WriteSynchronizer",
]
