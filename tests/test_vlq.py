"""Tests for variable-length quantities."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from sp404conv.utils.byte_cursor import ByteCursor, UnderflowError
from sp404conv.utils.validation import ValidationError
from sp404conv.utils.vlq import MAX_SMF_VLQ, MAX_VLQ, decode_vlq, encode_vlq, read_vlq, write_vlq


class TestVLQ:
    """Test VLQ encoding and decoding."""

    @pytest.mark.parametrize(
        "value,encoded",
        [
            (0, b"\x00"),
            (0x40, b"\x40"),
            (0x7F, b"\x7f"),
            (0x80, b"\x81\x00"),
            (0x2000, b"\xc0\x00"),
            (0x3FFF, b"\xff\x7f"),
            (0x4000, b"\x81\x80\x00"),
            (0x1FFFFF, b"\xff\xff\x7f"),
            (0x200000, b"\x81\x80\x80\x00"),
            (MAX_SMF_VLQ, b"\xff\xff\xff\x7f"),
            (0x10000000, b"\x81\x80\x80\x80\x00"),
            (MAX_VLQ, b"\x8f\xff\xff\xff\x7f"),
        ],
    )
    def test_known_encodings(self, value, encoded):
        """Test the byte shapes from the SMF specification table."""
        assert encode_vlq(value) == encoded
        assert decode_vlq(encoded) == (value, len(encoded))

    def test_decode_at_offset(self):
        """Test decoding from the middle of a buffer."""
        assert decode_vlq(b"\x00\x83\x60\x90", 1) == (480, 2)

    def test_only_last_byte_clear(self):
        """Test that every byte but the last has the continuation bit."""
        for value in (1, 300, 70000, 5_000_000):
            encoded = encode_vlq(value)
            assert all(b & 0x80 for b in encoded[:-1])
            assert not encoded[-1] & 0x80

    @pytest.mark.parametrize("value", [0, 1, 0x7F, 0x80, 0xFFFF, MAX_SMF_VLQ, 0x12345678, 0xFFFFFFFE, MAX_VLQ])
    def test_u32_values(self, value):
        """Test that every unsigned 32-bit value decodes to itself."""
        encoded = encode_vlq(value)
        assert len(encoded) <= 5
        assert decode_vlq(encoded) == (value, len(encoded))

    def test_out_of_range(self):
        """Test values outside the unsigned 32-bit range."""
        with pytest.raises(ValidationError):
            encode_vlq(MAX_VLQ + 1)
        with pytest.raises(ValidationError):
            encode_vlq(-1)

    def test_cursor_helpers(self):
        """Test reading and writing through a cursor."""
        cursor = ByteCursor.writer()
        assert write_vlq(cursor, 480) == 2
        write_vlq(cursor, 0)

        read = cursor.commit()
        read.reset()
        assert read_vlq(read) == 480
        assert read_vlq(read) == 0
        assert read.remaining_bytes() == 0

    def test_truncated(self):
        """Test a continuation byte with nothing after it."""
        with pytest.raises(UnderflowError):
            read_vlq(ByteCursor(b"\x81"))
