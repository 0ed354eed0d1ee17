"""
IndexReplayer - Rebuild the index from segment files.
"""

import logging

from kvs.models.index import KeyDir, RecordLocation
from kvs.models.segment import SegmentReader

logger = logging.getLogger(__name__)


class IndexReplayer:
    """
    Replays segments into a KeyDir.

    Used during open to rebuild in-memory state from the log. Every
    record, tombstones included, points the index at itself, so the last
    record for a key wins both within a segment and across segments.
    A removed key therefore keeps an entry that resolves to a tombstone.
    """

    def replay(self, reader: SegmentReader, keydir: KeyDir) -> int:
        """
        Replay one segment from offset 0.

        Args:
            reader: Reader over the segment to replay.
            keydir: Index to update in place.

        Returns:
            Number of records replayed.

        Raises:
            MalformedRecordError: If the segment holds a corrupt or
                truncated record.
        """
        count = 0
        for record, offset, length in reader.records():
            keydir.put(
                record.key,
                RecordLocation(segment_id=reader.segment_id, offset=offset, length=length),
            )
            count += 1

        logger.debug(f"Replayed {count} records from segment {reader.segment_id}")
        return count
