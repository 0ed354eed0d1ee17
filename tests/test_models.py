"""
Tests for data models: Record, the frame codec, RecordLocation and KeyDir.
"""

import io
import zlib

import pytest

from kvs.models import codec
from kvs.models.exceptions import MalformedRecordError
from kvs.models.index import KeyDir, RecordLocation
from kvs.models.record import Record, RecordType


class TestRecord:
    """Tests for Record and RecordType."""

    def test_set_record(self):
        """Test creating a SET record."""
        record = Record.set("key", "value")
        assert record.key == "key"
        assert record.value == "value"
        assert record.type == RecordType.SET
        assert not record.is_tombstone()

    def test_remove_record(self):
        """Test creating a tombstone."""
        record = Record.remove("key")
        assert record.value is None
        assert record.type == RecordType.REMOVE
        assert record.is_tombstone()

    def test_set_requires_value(self):
        with pytest.raises(ValueError):
            Record(key="key", value=None, type=RecordType.SET)

    def test_remove_rejects_value(self):
        with pytest.raises(ValueError):
            Record(key="key", value="v", type=RecordType.REMOVE)

    def test_payload_serialization(self):
        """Test payload serialization and deserialization."""
        original = Record.set("test_key", "test_data")
        assert Record.from_bytes(bytes(original)) == original

    def test_empty_value_is_not_a_tombstone(self):
        """An empty string value survives serialization as a SET."""
        restored = Record.from_bytes(bytes(Record.set("k", "")))
        assert restored.value == ""
        assert not restored.is_tombstone()

    def test_unknown_type_rejected(self):
        payload = bytearray(bytes(Record.set("k", "v")))
        payload[0] = 7
        with pytest.raises(MalformedRecordError, match="unknown record type"):
            Record.from_bytes(bytes(payload))

    def test_trailing_bytes_rejected(self):
        with pytest.raises(MalformedRecordError, match="trailing"):
            Record.from_bytes(bytes(Record.set("k", "v")) + b"\x00")

    def test_short_payload_rejected(self):
        with pytest.raises(MalformedRecordError):
            Record.from_bytes(b"\x00\x00")


class TestCodec:
    """Tests for frame encoding and decoding."""

    def test_round_trip_reports_encoded_length(self, sample_records):
        """decode_next returns each record and exactly the bytes encode produced."""
        for record in sample_records:
            encoded = codec.encode(record)
            decoded, consumed = codec.decode_next(io.BytesIO(encoded))
            assert decoded == record
            assert consumed == len(encoded)

    def test_sequential_decode(self, sample_records):
        """Concatenated frames decode back in order with exact offsets."""
        frames = [codec.encode(r) for r in sample_records]
        stream = io.BytesIO(b"".join(frames))

        decoded = []
        while (result := codec.decode_next(stream)) is not None:
            decoded.append(result)

        assert [r for r, _ in decoded] == sample_records
        assert [n for _, n in decoded] == [len(f) for f in frames]

    def test_empty_stream_is_end_of_stream(self):
        assert codec.decode_next(io.BytesIO(b"")) is None

    def test_frame_layout(self):
        """Verify the frame is [length][payload][crc32]."""
        record = Record.set("testkey", "testvalue")
        frame = codec.encode(record)
        payload = bytes(record)

        assert int.from_bytes(frame[:4], "big") == len(payload)
        assert frame[4:-4] == payload
        assert int.from_bytes(frame[-4:], "big") == zlib.crc32(payload) & 0xffffffff

    @pytest.mark.parametrize("cut", [1, 3, 4, 10])
    def test_truncated_tail_is_malformed(self, cut):
        """A partial trailing frame is an error, not end of stream."""
        frame = codec.encode(Record.set("key", "value"))
        stream = io.BytesIO(frame + frame[:cut])

        assert codec.decode_next(stream) is not None
        with pytest.raises(MalformedRecordError):
            codec.decode_next(stream, offset=len(frame))

    def test_checksum_mismatch_is_malformed(self):
        frame = bytearray(codec.encode(Record.set("key", "value")))
        frame[6] ^= 0xFF

        with pytest.raises(MalformedRecordError, match="checksum mismatch") as exc_info:
            codec.decode_next(io.BytesIO(bytes(frame)), offset=128)
        assert exc_info.value.offset == 128

    def test_decode_single_frame(self):
        record = Record.remove("gone")
        assert codec.decode(codec.encode(record)) == record

    def test_decode_rejects_extra_bytes(self):
        frame = codec.encode(Record.set("k", "v"))
        with pytest.raises(MalformedRecordError):
            codec.decode(frame + b"\x00")

    def test_decode_rejects_short_frame(self):
        with pytest.raises(MalformedRecordError, match="too short"):
            codec.decode(b"\x00\x00\x00")


class TestRecordLocation:
    """Tests for RecordLocation."""

    def test_end(self):
        location = RecordLocation(segment_id=1, offset=10, length=25)
        assert location.end == 35

    def test_rejects_negative_offset(self):
        with pytest.raises(ValueError):
            RecordLocation(segment_id=1, offset=-1, length=10)

    def test_rejects_empty_length(self):
        with pytest.raises(ValueError):
            RecordLocation(segment_id=1, offset=0, length=0)


class TestKeyDir:
    """Tests for the in-memory index."""

    def test_put_and_get(self):
        keydir = KeyDir()
        location = RecordLocation(segment_id=1, offset=0, length=20)
        keydir.put("key", location)

        assert keydir.get("key") == location
        assert "key" in keydir
        assert len(keydir) == 1

    def test_last_put_wins(self):
        keydir = KeyDir()
        keydir.put("key", RecordLocation(segment_id=1, offset=0, length=20))
        keydir.put("key", RecordLocation(segment_id=2, offset=40, length=20))

        assert keydir.get("key") == RecordLocation(segment_id=2, offset=40, length=20)
        assert len(keydir) == 1

    def test_pop(self):
        keydir = KeyDir()
        location = RecordLocation(segment_id=1, offset=0, length=20)
        keydir.put("key", location)

        assert keydir.pop("key") == location
        assert keydir.pop("key") is None
        assert "key" not in keydir

    def test_missing_key(self):
        assert KeyDir().get("missing") is None
