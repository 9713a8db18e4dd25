"""
Variable-length quantity codec used by Standard MIDI Files.

Values are stored as big-endian groups of 7 bits; every byte except the last
has its high bit set. The codec covers unsigned 32-bit values (up to 5 bytes);
SMF files limit them to 4 bytes (MAX_SMF_VLQ).
"""

from typing import Tuple

from sp404conv.utils.byte_cursor import ByteCursor
from sp404conv.utils.validation import validate_range

MAX_VLQ = 0xFFFFFFFF
MAX_SMF_VLQ = 0x0FFFFFFF


def encode_vlq(value: int) -> bytes:
    """
    Encode an integer as a minimal variable-length quantity.

    Args:
        value: Value to encode (0 to 0xFFFFFFFF)

    Returns:
        Encoded bytes (0 encodes as a single zero byte)

    Raises:
        ValidationError: If value is out of range
    """
    validate_range(value, 0, MAX_VLQ, "variable-length quantity")
    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(groups))


def decode_vlq(data: bytes, offset: int = 0) -> Tuple[int, int]:
    """
    Decode a variable-length quantity from a byte string.

    Args:
        data: Source bytes
        offset: Position of the first byte

    Returns:
        Tuple of (value, bytes consumed)
    """
    cursor = ByteCursor(data)
    cursor.seek(offset)
    value = read_vlq(cursor)
    return value, cursor.offset - offset


def read_vlq(cursor: ByteCursor) -> int:
    """Read a variable-length quantity at the cursor and advance past it."""
    value = 0
    while True:
        byte = cursor.read_u8()
        value = (value << 7) + (byte & 0x7F)
        if not byte & 0x80:
            return value


def write_vlq(cursor: ByteCursor, value: int) -> int:
    """Write a variable-length quantity; returns the number of bytes written."""
    data = encode_vlq(value)
    cursor.write_bytes(data)
    return len(data)
