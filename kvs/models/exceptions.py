"""
Custom exceptions for the key-value store.

I/O failures are not wrapped: they surface as the builtin ``OSError``.
"""


class KvsError(Exception):
    """Base class for errors raised by the storage engine."""


class MalformedRecordError(KvsError):
    """
    Raised when log bytes cannot be decoded into a record.

    Indicates a truncated or corrupted segment. Fail-fast: the current
    operation is aborted and no partial recovery is attempted.
    """

    def __init__(self, reason: str, offset: int | None = None):
        """
        Initialize malformed record error.

        Args:
            reason: Human readable description of the decode failure.
            offset: Segment offset of the offending record, if known.
        """
        self.reason = reason
        self.offset = offset
        if offset is None:
            message = f"Malformed record: {reason}"
        else:
            message = f"Malformed record at offset {offset}: {reason}"
        super().__init__(message)


class TruncatedReadError(KvsError):
    """Raised when a segment holds fewer bytes than an index entry expects."""

    def __init__(self, offset: int, expected: int, actual: int):
        self.offset = offset
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Truncated read at offset {offset}: "
            f"expected {expected} bytes, got {actual}"
        )


class KeyNotFoundError(KvsError, KeyError):
    """Raised by remove() when the key has no index entry."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(key)

    def __str__(self) -> str:
        return f"Key not found: {self.key!r}"


class StoreClosedError(KvsError):
    """Raised when operating on a store after close()."""
