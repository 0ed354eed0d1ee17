"""
Data models for the storage engine.
"""

from kvs.models.exceptions import (
    KeyNotFoundError,
    KvsError,
    MalformedRecordError,
    StoreClosedError,
    TruncatedReadError,
)
from kvs.models.index import KeyDir, RecordLocation
from kvs.models.record import Record, RecordType
from kvs.models.segment import SegmentReader, SegmentWriter

__all__ = [
    "KeyDir",
    "KeyNotFoundError",
    "KvsError",
    "MalformedRecordError",
    "Record",
    "RecordLocation",
    "RecordType",
    "SegmentReader",
    "SegmentWriter",
    "StoreClosedError",
    "TruncatedReadError",
]
