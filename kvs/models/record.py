"""
Record and RecordType for entries persisted in a log segment.
"""

from dataclasses import dataclass, field
from enum import IntEnum

from kvs.models.exceptions import MalformedRecordError


class RecordType(IntEnum):
    """Kind of record stored in the log."""

    SET = 0  # Key now maps to value
    REMOVE = 1  # Tombstone


@dataclass(frozen=True)
class Record:
    """
    Represents a single immutable entry in a log segment.

    Attributes:
        key: The key the record applies to.
        value: The stored value (None for tombstones).
        type: Whether this is a SET or a REMOVE record.
    """

    key: str
    value: str | None = None
    type: RecordType = RecordType.SET
    _cached_bytes: bytes = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Validate the record and cache its payload bytes."""
        if self.type == RecordType.SET and self.value is None:
            raise ValueError("SET record requires a value")
        if self.type == RecordType.REMOVE and self.value is not None:
            raise ValueError("REMOVE record cannot carry a value")

        key_bytes = self.key.encode("utf-8")
        value_bytes = self.value.encode("utf-8") if self.value is not None else b""

        # Format: [type:1][key_len:4][key][value_len:4][value]
        payload = (
            self.type.to_bytes(1, "big")
            + len(key_bytes).to_bytes(4, "big")
            + key_bytes
            + len(value_bytes).to_bytes(4, "big")
            + value_bytes
        )
        object.__setattr__(self, "_cached_bytes", payload)

    @classmethod
    def set(cls, key: str, value: str) -> "Record":
        return cls(key=key, value=value, type=RecordType.SET)

    @classmethod
    def remove(cls, key: str) -> "Record":
        return cls(key=key, value=None, type=RecordType.REMOVE)

    def is_tombstone(self) -> bool:
        return self.type == RecordType.REMOVE

    def __bytes__(self) -> bytes:
        """Serialize the payload (without framing)."""
        return self._cached_bytes

    @classmethod
    def from_bytes(cls, data: bytes) -> "Record":
        """
        Deserialize a payload produced by ``bytes(record)``.

        Raises:
            MalformedRecordError: If the payload is short, has trailing
                bytes, an unknown type or invalid UTF-8.
        """
        offset = 0

        if len(data) < 9:
            raise MalformedRecordError(f"payload too short ({len(data)} bytes)")

        # Read type
        try:
            record_type = RecordType(data[offset])
        except ValueError:
            raise MalformedRecordError(f"unknown record type {data[offset]}") from None
        offset += 1

        try:
            # Read key
            key_len = int.from_bytes(data[offset : offset + 4], "big")
            offset += 4
            key_bytes = data[offset : offset + key_len]
            if len(key_bytes) < key_len:
                raise MalformedRecordError("key extends past end of payload")
            key = key_bytes.decode("utf-8")
            offset += key_len

            # Read value
            length_bytes = data[offset : offset + 4]
            if len(length_bytes) < 4:
                raise MalformedRecordError("missing value length")
            value_len = int.from_bytes(length_bytes, "big")
            offset += 4
            value_bytes = data[offset : offset + value_len]
            if len(value_bytes) < value_len:
                raise MalformedRecordError("value extends past end of payload")
            offset += value_len
        except UnicodeDecodeError as e:
            raise MalformedRecordError(f"invalid UTF-8 in key: {e}") from e

        if offset != len(data):
            raise MalformedRecordError(f"{len(data) - offset} trailing bytes in payload")

        if record_type == RecordType.REMOVE:
            if value_len:
                raise MalformedRecordError("tombstone carries a value")
            return cls.remove(key)

        try:
            value = value_bytes.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRecordError(f"invalid UTF-8 in value: {e}") from e
        return cls.set(key, value)
