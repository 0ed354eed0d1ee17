import logging
import os
import time
from collections.abc import Iterator
from typing import BinaryIO

from kvs.models import codec
from kvs.models.exceptions import TruncatedReadError
from kvs.models.record import Record

logger = logging.getLogger(__name__)


class SegmentWriter:
    """
    Append-only writer over a single segment file.

    Tracks ``pos``, the end of file, which only ever grows. Every append is
    flushed to the OS and synced to disk before control returns, unless an
    fsync interval is configured.
    """

    def __init__(self, segment_id: int, file_path: str, fsync_interval_ms: int = 0) -> None:
        """
        Open the segment for appending.

        Args:
            segment_id: Identifier of the segment.
            file_path: Path to the segment file (created if missing).
            fsync_interval_ms: Milliseconds between fsyncs.
                              0 = always fsync (default).
                              Max 10000 (10 seconds).
        """
        if fsync_interval_ms < 0:
            raise ValueError(f"fsync_interval_ms must be >= 0, got {fsync_interval_ms}")
        if fsync_interval_ms > 10000:
            raise ValueError(f"fsync_interval_ms cannot exceed 10000ms, got {fsync_interval_ms}")

        self.segment_id = segment_id
        self.file_path = file_path
        self._fsync_interval_ms = fsync_interval_ms
        self._last_fsync_time: float = 0.0  # time.monotonic()

        self._file: BinaryIO | None = open(file_path, "ab")
        self._pos: int = self._file.seek(0, os.SEEK_END)

    @property
    def pos(self) -> int:
        return self._pos

    @property
    def closed(self) -> bool:
        return self._file is None

    def append(self, data: bytes) -> tuple[int, int]:
        """
        Append bytes at the end of the segment.

        Args:
            data: Encoded frame(s) to write.

        Returns:
            Tuple of (start offset, length written).

        Raises:
            RuntimeError: If the writer is closed.
            OSError: If the write or flush fails.
        """
        if self._file is None:
            raise RuntimeError(f"Segment writer {self.segment_id} is closed")

        # Bytes of an earlier failed append may already be in the file
        self._file.flush()
        start = self._end_of_file()
        if start != self._pos:
            logger.warning(
                f"Segment {self.segment_id} grew from {self._pos} to {start} "
                f"outside a successful append"
            )

        try:
            self._file.write(data)
            self._file.flush()
            if self._should_sync():
                self._sync()
        finally:
            self._pos = self._end_of_file()

        logger.debug(f"Appended {len(data)} bytes to segment {self.segment_id} at {start}")
        return start, len(data)

    def _end_of_file(self) -> int:
        return os.fstat(self._file.fileno()).st_size

    def _should_sync(self) -> bool:
        """Check if enough time has elapsed to fsync."""
        if self._fsync_interval_ms == 0:
            return True

        current_time = time.monotonic()
        elapsed_ms = (current_time - self._last_fsync_time) * 1000

        if elapsed_ms >= self._fsync_interval_ms:
            self._last_fsync_time = current_time
            return True
        return False

    def _sync(self) -> None:
        """Push data from the OS kernel to disk."""
        # Use fdatasync if available (Linux), fallback to fsync (macOS/Windows)
        _sync_data = getattr(os, "fdatasync", os.fsync)
        _sync_data(self._file.fileno())

    def close(self) -> None:
        """Flush, sync and close the file."""
        if self._file:
            self._file.flush()
            self._sync()
            self._file.close()
            self._file = None

    def __enter__(self) -> "SegmentWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class SegmentReader:
    """
    Random-access reader over a single segment file.

    Each reader owns its own file handle, so cursors of different
    segments never interfere.
    """

    def __init__(self, segment_id: int, file_path: str) -> None:
        self.segment_id = segment_id
        self.file_path = file_path
        self._file: BinaryIO | None = open(file_path, "rb")

    @property
    def closed(self) -> bool:
        return self._file is None

    def _handle(self) -> BinaryIO:
        if self._file is None:
            raise RuntimeError(f"Segment reader {self.segment_id} is closed")
        return self._file

    def seek(self, offset: int) -> int:
        return self._handle().seek(offset)

    def tell(self) -> int:
        return self._handle().tell()

    def read_exact(self, offset: int, length: int) -> bytes:
        """
        Read exactly ``length`` bytes starting at ``offset``.

        Raises:
            TruncatedReadError: If the segment ends before ``length`` bytes.
        """
        self.seek(offset)
        data = self._handle().read(length)
        if len(data) < length:
            raise TruncatedReadError(offset=offset, expected=length, actual=len(data))
        return data

    def records(self) -> Iterator[tuple[Record, int, int]]:
        """
        Iterate over every record from the start of the segment.

        Yields:
            Tuples of (record, offset, length).

        Raises:
            MalformedRecordError: On the first undecodable frame.
        """
        file = self._handle()
        offset = file.seek(0)
        while True:
            decoded = codec.decode_next(file, offset)
            if decoded is None:
                return
            record, length = decoded
            yield record, offset, length
            offset += length

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None

    def __enter__(self) -> "SegmentReader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[tuple[Record, int, int]]:
        return self.records()
