"""
KvStore - Log-structured key-value store API.
"""

import logging
import os

from kvs.engine.discovery import SegmentDescriptor, SegmentDiscovery
from kvs.engine.replayer import IndexReplayer
from kvs.models import codec
from kvs.models.exceptions import KeyNotFoundError, MalformedRecordError, StoreClosedError
from kvs.models.index import KeyDir, RecordLocation
from kvs.models.record import Record
from kvs.models.segment import SegmentReader, SegmentWriter

logger = logging.getLogger(__name__)


class KvStore:
    """
    Persistent key-value store backed by append-only segment files.

    Provides:
    - set(key, value): Append a SET record and index it
    - get(key): Resolve a key through the index to its record on disk
    - remove(key): Drop the key from the index and append a tombstone
    - rotate(): Seal the active segment and start a new one

    Layout:
    - Segments live in ``<path>/data`` as ``<id>.log``, replayed in id order
    - The highest id is the active segment; all others are read-only
    - The index is rebuilt from the raw logs on every open

    Single-writer, single-process: two stores over the same directory
    corrupt each other's offset bookkeeping. Nothing enforces this.
    """

    DATA_DIR_NAME = "data"

    def __init__(self, path: str | os.PathLike, fsync_interval_ms: int = 0) -> None:
        """
        Open the store rooted at ``path``, replaying every segment.

        Args:
            path: Root directory; segments are kept in its ``data`` subdirectory.
            fsync_interval_ms: Milliseconds between fsyncs (default: 0 = always fsync).
                              Maximum: 10000 (10 seconds).

        Raises:
            MalformedRecordError: If a segment holds a corrupt record.
            OSError: On filesystem failures.
        """
        path = os.fspath(path)
        if not path or not path.strip():
            raise ValueError("path cannot be empty")
        if fsync_interval_ms < 0:
            raise ValueError(f"fsync_interval_ms must be >= 0, got {fsync_interval_ms}")
        if fsync_interval_ms > 10000:
            raise ValueError(
                f"fsync_interval_ms cannot exceed 10000ms (10 seconds), got {fsync_interval_ms}"
            )

        self._data_dir = os.path.join(os.path.abspath(path), self.DATA_DIR_NAME)
        self._fsync_interval_ms = fsync_interval_ms

        self._keydir = KeyDir()
        self._readers: dict[int, SegmentReader] = {}
        self._writer: SegmentWriter
        self._discovery = SegmentDiscovery(self._data_dir)
        self._closed = False

        self._initialize()

    @classmethod
    def open(cls, path: str | os.PathLike, fsync_interval_ms: int = 0) -> "KvStore":
        """Open (or create) the store rooted at ``path``."""
        return cls(path, fsync_interval_ms=fsync_interval_ms)

    def _initialize(self) -> None:
        """Discover segments, replay them and open the active segment."""
        segments = self._discovery.discover()
        replayer = IndexReplayer()

        try:
            for segment in segments:
                reader = SegmentReader(segment.segment_id, segment.path)
                self._readers[segment.segment_id] = reader
                replayer.replay(reader, self._keydir)

            self._open_active(self._discovery.active(segments))
        except Exception:
            self._close_readers()
            raise

        logger.info(
            f"Opened store at {self._data_dir}: {len(self._readers)} segment(s), "
            f"{len(self._keydir)} indexed key(s), active segment {self._writer.segment_id}"
        )

    def _open_active(self, segment: SegmentDescriptor) -> None:
        # Reader first: once registered it is closed on any later failure
        if segment.segment_id not in self._readers:
            self._readers[segment.segment_id] = SegmentReader(segment.segment_id, segment.path)
        self._writer = SegmentWriter(
            segment.segment_id, segment.path, fsync_interval_ms=self._fsync_interval_ms
        )

    @property
    def data_dir(self) -> str:
        return self._data_dir

    @property
    def active_segment_id(self) -> int:
        return self._writer.segment_id

    @property
    def segment_ids(self) -> list[int]:
        """Ids of all open segments, oldest first."""
        return sorted(self._readers)

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError(f"Store at {self._data_dir} is closed")

    def set(self, key: str, value: str) -> None:
        """
        Insert or update a key.

        The record is durable once this returns.

        Args:
            key: The key to set.
            value: The value to store.
        """
        self._check_open()
        self._keydir.put(key, self._write(Record.set(key, value)))

    def get(self, key: str) -> str | None:
        """
        Retrieve the current value of a key.

        Args:
            key: The key to look up.

        Returns:
            The value if found, None if the key was never set or was removed.

        Raises:
            MalformedRecordError: If the indexed record cannot be decoded.
            TruncatedReadError: If the segment is shorter than the index expects.
        """
        self._check_open()
        location = self._keydir.get(key)
        if location is None:
            return None

        reader = self._readers[location.segment_id]
        record = codec.decode(reader.read_exact(location.offset, location.length), location.offset)
        if record.key != key:
            raise MalformedRecordError(
                f"index entry for {key!r} points at a record for {record.key!r}",
                location.offset,
            )

        # Replayed tombstones keep an index entry; they still read as absent
        return None if record.is_tombstone() else record.value

    def remove(self, key: str) -> None:
        """
        Remove a key.

        The index entry is dropped and a tombstone is appended so the key
        stays absent after a reopen.

        Args:
            key: The key to remove.

        Raises:
            KeyNotFoundError: If the key has no index entry.
        """
        self._check_open()
        if key not in self._keydir:
            raise KeyNotFoundError(key)

        self._keydir.pop(key)
        self._write(Record.remove(key))

    def _write(self, record: Record) -> RecordLocation:
        """Append a record to the active segment and return where it landed."""
        offset, length = self._writer.append(codec.encode(record))
        return RecordLocation(segment_id=self._writer.segment_id, offset=offset, length=length)

    def rotate(self) -> int:
        """
        Seal the active segment and start a new one.

        The sealed segment stays readable. No records are rewritten.

        Returns:
            Id of the new active segment.
        """
        self._check_open()
        sealed_id = self._writer.segment_id
        segment = self._discovery.new_segment(max(self._readers))

        # The sealed writer stays active until the new segment is fully open
        reader = SegmentReader(segment.segment_id, segment.path)
        try:
            writer = SegmentWriter(
                segment.segment_id, segment.path, fsync_interval_ms=self._fsync_interval_ms
            )
        except Exception:
            reader.close()
            raise

        try:
            self._writer.close()
        finally:
            self._writer = writer
            self._readers[segment.segment_id] = reader

        logger.info(f"Rotated segment {sealed_id} -> {self._writer.segment_id}")
        return self._writer.segment_id

    def _close_readers(self) -> None:
        for reader in self._readers.values():
            reader.close()

    def close(self) -> None:
        """Flush the active segment and release all file handles."""
        if self._closed:
            return
        self._closed = True

        try:
            self._writer.close()
        finally:
            self._close_readers()

        logger.info(f"Closed store at {self._data_dir}")

    def __enter__(self) -> "KvStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"KvStore(data_dir={self._data_dir!r}, keys={len(self._keydir)})"
