"""
In-memory index mapping keys to the location of their latest record.
"""

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True)
class RecordLocation:
    """
    Identifies one serialized record inside one segment.

    Attributes:
        segment_id: Segment holding the record.
        offset: Byte offset of the record's frame.
        length: Length of the frame in bytes.
    """

    segment_id: int
    offset: int
    length: int

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")
        if self.length <= 0:
            raise ValueError(f"length must be positive, got {self.length}")

    @property
    def end(self) -> int:
        return self.offset + self.length


class KeyDir:
    """
    Key -> RecordLocation mapping.

    Holds only the most recent location per key; superseded records stay
    on disk but become unreachable.
    """

    def __init__(self) -> None:
        self._entries: dict[str, RecordLocation] = {}

    def put(self, key: str, location: RecordLocation) -> None:
        self._entries[key] = location

    def get(self, key: str) -> RecordLocation | None:
        return self._entries.get(key)

    def pop(self, key: str) -> RecordLocation | None:
        """Remove and return the entry for key, or None if absent."""
        return self._entries.pop(key, None)

    def items(self) -> Iterator[tuple[str, RecordLocation]]:
        return iter(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
