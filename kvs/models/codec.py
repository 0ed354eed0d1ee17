"""
Framing of records in a log segment.

Frame layout: [length:4][payload][crc32:4], big endian, where payload is
``bytes(record)``. The length prefix makes every frame self-delimiting so a
segment can be replayed from offset 0 without any external index.
"""

import zlib
from typing import BinaryIO

from kvs.models.exceptions import MalformedRecordError
from kvs.models.record import Record

LENGTH_SIZE = 4
CHECKSUM_SIZE = 4
FRAME_OVERHEAD = LENGTH_SIZE + CHECKSUM_SIZE


def _checksum(payload: bytes) -> int:
    return zlib.crc32(payload) & 0xffffffff


def encode(record: Record) -> bytes:
    """Serialize a record into a self-delimiting frame."""
    payload = bytes(record)
    return (
        len(payload).to_bytes(LENGTH_SIZE, "big")
        + payload
        + _checksum(payload).to_bytes(CHECKSUM_SIZE, "big")
    )


def decode(data: bytes, offset: int | None = None) -> Record:
    """
    Decode exactly one frame.

    Args:
        data: Bytes holding a single complete frame.
        offset: Segment offset of the frame, for error reporting.

    Returns:
        The decoded record.

    Raises:
        MalformedRecordError: If data is not exactly one valid frame.
    """
    if len(data) < FRAME_OVERHEAD:
        raise MalformedRecordError(f"frame too short ({len(data)} bytes)", offset)

    length = int.from_bytes(data[:LENGTH_SIZE], "big")
    if len(data) != length + FRAME_OVERHEAD:
        raise MalformedRecordError(
            f"frame declares {length} payload bytes but holds {len(data) - FRAME_OVERHEAD}",
            offset,
        )

    payload = data[LENGTH_SIZE : LENGTH_SIZE + length]
    return _verify_and_parse(payload, data[LENGTH_SIZE + length :], offset)


def decode_next(stream: BinaryIO, offset: int | None = None) -> tuple[Record, int] | None:
    """
    Read the next frame from a binary stream.

    Args:
        stream: Stream positioned at a frame boundary.
        offset: Stream offset of the frame, for error reporting.

    Returns:
        Tuple of (record, bytes consumed), or None on a clean end of stream.

    Raises:
        MalformedRecordError: On a partial frame, checksum mismatch or
            undecodable payload.
    """
    length_bytes = stream.read(LENGTH_SIZE)
    if not length_bytes:
        return None
    if len(length_bytes) < LENGTH_SIZE:
        raise MalformedRecordError("truncated frame length", offset)

    length = int.from_bytes(length_bytes, "big")
    payload = stream.read(length)
    if len(payload) < length:
        raise MalformedRecordError(
            f"truncated payload: expected {length} bytes, got {len(payload)}", offset
        )

    checksum_bytes = stream.read(CHECKSUM_SIZE)
    if len(checksum_bytes) < CHECKSUM_SIZE:
        raise MalformedRecordError("truncated checksum", offset)

    record = _verify_and_parse(payload, checksum_bytes, offset)
    return record, length + FRAME_OVERHEAD


def _verify_and_parse(payload: bytes, checksum_bytes: bytes, offset: int | None) -> Record:
    expected = int.from_bytes(checksum_bytes, "big")
    actual = _checksum(payload)
    if expected != actual:
        raise MalformedRecordError(
            f"checksum mismatch: expected CRC32 0x{expected:08x}, got 0x{actual:08x}",
            offset,
        )

    try:
        return Record.from_bytes(payload)
    except MalformedRecordError as e:
        # Re-raise with the frame offset attached
        raise MalformedRecordError(e.reason, offset) from None
