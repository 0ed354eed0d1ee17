"""
Log-structured key-value store.

This package provides a persistent key-value store with:
- set(key, value) - append a record and index its location
- get(key) - one index lookup plus one positioned read
- remove(key) - tombstone-based deletion
- The index is rebuilt by replaying the segment files on open
"""

from kvs.engine.store import KvStore
from kvs.models.exceptions import (
    KeyNotFoundError,
    KvsError,
    MalformedRecordError,
    StoreClosedError,
    TruncatedReadError,
)

__version__ = "0.1.0"

__all__ = [
    "KeyNotFoundError",
    "KvStore",
    "KvsError",
    "MalformedRecordError",
    "StoreClosedError",
    "TruncatedReadError",
]
