"""
Chunked byte cursor for binary file formats.

ByteCursor reads and writes fixed-width integers, floats and encoded strings
over one or more byte segments. Segments appended to a read cursor are
traversed transparently, so a value split across two segments reads exactly
like one stored in a single segment.

Example:
    cursor = ByteCursor(b"MThd\\x00\\x00\\x00\\x06")
    magic = cursor.read_string(4)
    length = cursor.read_u32()

    out = ByteCursor.writer()
    out.write_u16(480)
    data = out.getvalue()
"""

import logging
import struct
from bisect import bisect_right
from typing import Iterable, List, Optional, Union

from sp404conv.utils.validation import ValidationError, validate_range

log = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]

# Encoding names accepted by read_string / write_string
ENCODINGS = {
    "ascii": "latin-1",
    "latin1": "latin-1",
    "utf8": "utf-8",
    "utf-8": "utf-8",
    "utf16be": "utf-16-be",
    "utf16-be": "utf-16-be",
    "utf16le": "utf-16-le",
    "utf16-le": "utf-16-le",
    "utf16bom": "utf16bom",
    "utf16-bom": "utf16bom",
}

BOM_BE = b"\xfe\xff"
BOM_LE = b"\xff\xfe"


class UnderflowError(ValueError):
    """Raised when a read needs more bytes than the cursor holds."""

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = max(available, 0)
        super().__init__(
            f"Insufficient bytes: requested {requested}, available {self.available}"
        )


def _normalize_encoding(encoding: str) -> str:
    try:
        return ENCODINGS[encoding.lower()]
    except KeyError:
        raise ValueError(f"Unknown encoding: {encoding}") from None


def decode_float48(raw: BytesLike) -> float:
    """
    Decode a 6-byte real with the exponent in byte 0.

    Byte 0 is the exponent biased by 0x81 (0 means the value is zero), bytes
    1-4 hold the low mantissa bits least significant first and byte 5 holds
    the top 7 mantissa bits plus the sign bit. The result is rounded to four
    decimal places.
    """
    if raw[0] == 0:
        return 0.0
    exponent = raw[0] - 0x81
    mantissa = 0.0
    for i in range(1, 5):
        mantissa += raw[i]
        mantissa /= 256
    mantissa += raw[5] & 0x7F
    mantissa /= 128
    mantissa += 1
    if raw[5] & 0x80:
        mantissa = -mantissa
    return round(mantissa * (2.0 ** exponent), 4)


def decode_float80(raw: BytesLike) -> float:
    """
    Decode an 80-bit extended float stored little-endian.

    Bytes 0-7 are the explicit 64-bit mantissa and bytes 8-9 the sign bit
    and 15-bit exponent biased by 16383.
    """
    mantissa = int.from_bytes(bytes(raw[0:8]), "little")
    sign_exp = raw[8] | (raw[9] << 8)
    sign = -1.0 if sign_exp & 0x8000 else 1.0
    exponent = sign_exp & 0x7FFF
    if exponent == 0 and mantissa == 0:
        return 0.0
    if exponent == 0x7FFF:
        if mantissa == 0:
            return sign * float("inf")
        return float("nan")
    return sign * mantissa * 2.0 ** (exponent - 16383 - 63)


class ByteCursor:
    """
    Sequential and random-access cursor over byte segments.

    A cursor is either in read mode (immutable segments, the offset stays in
    [0, length]) or in write mode (a growable buffer; the offset may move past
    the end and writes zero-fill any gap). commit() turns a write cursor into
    a read cursor over the written bytes.
    """

    def __init__(self, data: Optional[Union[BytesLike, Iterable[BytesLike]]] = None):
        self.offset = 0
        self.writing = False
        self._buffer = bytearray()
        self._chunks: List[bytes] = []
        self._starts: List[int] = []
        self._length = 0

        if data is None:
            return
        if isinstance(data, (bytes, bytearray, memoryview)):
            self.append(data)
        else:
            for chunk in data:
                self.append(chunk)

    @classmethod
    def writer(cls, initial: BytesLike = b"") -> "ByteCursor":
        """Create a write-mode cursor, optionally seeded with bytes."""
        cursor = cls()
        cursor.writing = True
        cursor._buffer = bytearray(initial)
        return cursor

    # ------------------------------------------------------------------
    # Segments and positioning
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        if self.writing:
            return len(self._buffer)
        return self._length

    @property
    def chunk_count(self) -> int:
        return 1 if self.writing else len(self._chunks)

    def append(self, chunk: BytesLike) -> int:
        """
        Append a segment to a read cursor.

        Returns:
            Number of segments held
        """
        if self.writing:
            raise ValueError("Cannot append segments to a cursor in write mode")
        chunk = bytes(chunk)
        if chunk:
            self._starts.append(self._length)
            self._chunks.append(chunk)
            self._length += len(chunk)
        log.debug("append: %d segments, %d bytes", len(self._chunks), self._length)
        return len(self._chunks)

    def remaining_bytes(self) -> int:
        return max(len(self) - self.offset, 0)

    def available(self, count: int, offset: Optional[int] = None) -> bool:
        """Check whether count bytes can be read at offset (default: current)."""
        position = self.offset if offset is None else offset
        return position >= 0 and position + count <= len(self)

    def advance(self, count: int) -> None:
        if not self.writing and count > self.remaining_bytes():
            raise UnderflowError(count, self.remaining_bytes())
        self.offset += count

    def rewind(self, count: int) -> None:
        if count > self.offset:
            raise UnderflowError(count, self.offset)
        self.offset -= count

    def seek(self, position: int) -> None:
        """Move to an absolute position."""
        if position < 0:
            raise UnderflowError(-position, 0)
        if not self.writing and position > len(self):
            raise UnderflowError(position - self.offset, self.remaining_bytes())
        self.offset = position

    def reset(self) -> None:
        self.offset = 0

    def copy(self) -> "ByteCursor":
        """Independent cursor over the same bytes, at the same offset."""
        if self.writing:
            result = ByteCursor.writer(self._buffer)
        else:
            result = ByteCursor(self._chunks)
        result.offset = self.offset
        return result

    def slice(self, position: int, length: int) -> "ByteCursor":
        """New read cursor over length bytes starting at position."""
        return ByteCursor(self._get(position, length))

    def compare(self, data: BytesLike, offset: Optional[int] = None) -> bool:
        """Check whether the bytes at offset match data without moving."""
        position = self.offset if offset is None else offset
        if not self.available(len(data), position):
            return False
        return self._get(position, len(data)) == bytes(data)

    def getvalue(self) -> bytes:
        """Return every byte held by the cursor."""
        if self.writing:
            return bytes(self._buffer)
        return b"".join(self._chunks)

    def commit(self) -> "ByteCursor":
        """
        Finalize a write cursor into an immutable read cursor.

        The offset is preserved; call reset() to read from the start.
        """
        if self.writing:
            data = bytes(self._buffer)
            self.writing = False
            self._buffer = bytearray()
            self._chunks, self._starts, self._length = [], [], 0
            self.append(data)
            self.offset = min(self.offset, self._length)
        return self

    def _get(self, position: int, count: int) -> bytes:
        if count < 0:
            raise ValueError(f"Byte count must be non-negative, got {count}")
        total = len(self)
        if position < 0 or position + count > total:
            raise UnderflowError(count, total - position if position >= 0 else 0)
        if self.writing:
            return bytes(self._buffer[position : position + count])

        index = bisect_right(self._starts, position) - 1
        parts = []
        needed = count
        while needed > 0:
            chunk = self._chunks[index]
            local = position - self._starts[index]
            piece = chunk[local : local + needed]
            parts.append(piece)
            needed -= len(piece)
            position += len(piece)
            index += 1
        return b"".join(parts)

    # ------------------------------------------------------------------
    # Raw bytes and integers
    # ------------------------------------------------------------------

    def read(self, count: int) -> bytes:
        data = self._get(self.offset, count)
        self.offset += count
        return data

    read_bytes = read

    def peek(self, count: int, offset: Optional[int] = None) -> bytes:
        return self._get(self.offset if offset is None else offset, count)

    peek_bytes = peek

    def _peek_int(
        self, size: int, signed: bool, offset: Optional[int], little_endian: bool
    ) -> int:
        raw = self.peek(size, offset)
        return int.from_bytes(raw, "little" if little_endian else "big", signed=signed)

    def _read_int(self, size: int, signed: bool, little_endian: bool) -> int:
        value = self._peek_int(size, signed, None, little_endian)
        self.offset += size
        return value

    def read_u8(self) -> int:
        return self._read_int(1, False, False)

    def read_i8(self) -> int:
        return self._read_int(1, True, False)

    def read_u16(self, little_endian: bool = False) -> int:
        return self._read_int(2, False, little_endian)

    def read_i16(self, little_endian: bool = False) -> int:
        return self._read_int(2, True, little_endian)

    def read_u24(self, little_endian: bool = False) -> int:
        return self._read_int(3, False, little_endian)

    def read_i24(self, little_endian: bool = False) -> int:
        return self._read_int(3, True, little_endian)

    def read_u32(self, little_endian: bool = False) -> int:
        return self._read_int(4, False, little_endian)

    def read_i32(self, little_endian: bool = False) -> int:
        return self._read_int(4, True, little_endian)

    def peek_u8(self, offset: Optional[int] = None) -> int:
        return self._peek_int(1, False, offset, False)

    def peek_i8(self, offset: Optional[int] = None) -> int:
        return self._peek_int(1, True, offset, False)

    def peek_u16(self, offset: Optional[int] = None, little_endian: bool = False) -> int:
        return self._peek_int(2, False, offset, little_endian)

    def peek_i16(self, offset: Optional[int] = None, little_endian: bool = False) -> int:
        return self._peek_int(2, True, offset, little_endian)

    def peek_u24(self, offset: Optional[int] = None, little_endian: bool = False) -> int:
        return self._peek_int(3, False, offset, little_endian)

    def peek_i24(self, offset: Optional[int] = None, little_endian: bool = False) -> int:
        return self._peek_int(3, True, offset, little_endian)

    def peek_u32(self, offset: Optional[int] = None, little_endian: bool = False) -> int:
        return self._peek_int(4, False, offset, little_endian)

    def peek_i32(self, offset: Optional[int] = None, little_endian: bool = False) -> int:
        return self._peek_int(4, True, offset, little_endian)

    def peek_bit(self, position: int, length: int = 1, offset: Optional[int] = None) -> int:
        """
        Extract a bit field from one byte without moving the cursor.

        Args:
            position: Index of the first bit, 0 being the most significant
            length: Number of bits (1-8)
            offset: Byte offset (default: current)

        Returns:
            Bit field value
        """
        if not 0 <= position <= 7:
            raise ValueError(f"Bit position must be 0-7, got {position}")
        if not 1 <= length <= 8:
            raise ValueError(f"Bit length must be 1-8, got {length}")
        value = self.peek_u8(offset)
        return ((value << position) & 0xFF) >> (8 - length)

    # ------------------------------------------------------------------
    # Floats
    # ------------------------------------------------------------------

    def read_float32(self, little_endian: bool = False) -> float:
        value = self.peek_float32(None, little_endian)
        self.offset += 4
        return value

    def peek_float32(self, offset: Optional[int] = None, little_endian: bool = False) -> float:
        return struct.unpack("<f" if little_endian else ">f", self.peek(4, offset))[0]

    def read_float64(self, little_endian: bool = False) -> float:
        value = self.peek_float64(None, little_endian)
        self.offset += 8
        return value

    def peek_float64(self, offset: Optional[int] = None, little_endian: bool = False) -> float:
        return struct.unpack("<d" if little_endian else ">d", self.peek(8, offset))[0]

    def read_float48(self, little_endian: bool = True) -> float:
        """Read a 6-byte real; little-endian storage puts the exponent byte last."""
        value = self.peek_float48(None, little_endian)
        self.offset += 6
        return value

    def peek_float48(self, offset: Optional[int] = None, little_endian: bool = True) -> float:
        raw = self.peek(6, offset)
        if little_endian:
            raw = raw[::-1]
        return decode_float48(raw)

    def read_float80(self, little_endian: bool = False) -> float:
        """Read an 80-bit extended float; big-endian storage is used by AIFF headers."""
        value = self.peek_float80(None, little_endian)
        self.offset += 10
        return value

    def peek_float80(self, offset: Optional[int] = None, little_endian: bool = False) -> float:
        raw = self.peek(10, offset)
        if not little_endian:
            raw = raw[::-1]
        return decode_float80(raw)

    # ------------------------------------------------------------------
    # Strings
    # ------------------------------------------------------------------

    def read_string(self, length: Optional[int] = None, encoding: str = "ascii") -> str:
        """
        Read an encoded string and advance past it.

        Args:
            length: Byte length; None reads up to a null terminator (consumed)
                or the end of the data
            encoding: ascii, latin1, utf8, utf16be, utf16le or utf16bom

        Returns:
            Decoded text
        """
        text, consumed = self._decode_string(self.offset, length, encoding)
        self.offset += consumed
        return text

    def peek_string(
        self, offset: Optional[int] = None, length: Optional[int] = None, encoding: str = "ascii"
    ) -> str:
        position = self.offset if offset is None else offset
        return self._decode_string(position, length, encoding)[0]

    def _decode_string(self, position: int, length: Optional[int], encoding: str):
        codec = _normalize_encoding(encoding)
        unit = 2 if codec.startswith("utf16") or codec.startswith("utf-16") else 1

        if length is None:
            # Null-terminated: the end of data also ends the string
            end = len(self)
            cursor = position
            raw = bytearray()
            terminated = False
            while cursor + unit <= end:
                piece = self._get(cursor, unit)
                cursor += unit
                if piece == b"\x00" * unit:
                    terminated = True
                    break
                raw += piece
            consumed = cursor - position
            if not terminated:
                consumed = end - position
            raw = bytes(raw)
        else:
            raw = self._get(position, length)
            consumed = length

        if codec == "utf16bom":
            if raw[:2] == BOM_LE:
                codec, raw = "utf-16-le", raw[2:]
            elif raw[:2] == BOM_BE:
                codec, raw = "utf-16-be", raw[2:]
            else:
                codec = "utf-16-be"
        if unit == 2 and len(raw) % 2:
            raw = raw[:-1]
        return raw.decode(codec, errors="replace"), consumed

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _require_writing(self) -> None:
        if not self.writing:
            raise ValueError("Cursor is not in write mode")

    def write_bytes(self, data: BytesLike, offset: Optional[int] = None, advance: bool = True) -> None:
        """
        Write raw bytes, growing the store as needed.

        Args:
            data: Bytes to write
            offset: Absolute position (default: current)
            advance: Move the cursor past the written bytes
        """
        self._require_writing()
        position = self.offset if offset is None else offset
        if position < 0:
            raise ValidationError(f"Write offset must be non-negative, got {position}")
        end = position + len(data)
        if position > len(self._buffer):
            self._buffer.extend(b"\x00" * (position - len(self._buffer)))
        self._buffer[position:end] = bytes(data)
        if advance:
            self.offset = end

    def _write_int(
        self,
        value: int,
        size: int,
        signed: bool,
        offset: Optional[int],
        advance: bool,
        little_endian: bool,
        name: str,
    ) -> None:
        bits = size * 8
        if signed:
            validate_range(value, -(1 << (bits - 1)), (1 << (bits - 1)) - 1, name)
        else:
            validate_range(value, 0, (1 << bits) - 1, name)
        raw = value.to_bytes(size, "little" if little_endian else "big", signed=signed)
        self.write_bytes(raw, offset, advance)

    def write_u8(self, value: int, offset: Optional[int] = None, advance: bool = True) -> None:
        self._write_int(value, 1, False, offset, advance, False, "uint8")

    def write_i8(self, value: int, offset: Optional[int] = None, advance: bool = True) -> None:
        self._write_int(value, 1, True, offset, advance, False, "int8")

    def write_u16(
        self, value: int, offset: Optional[int] = None, advance: bool = True, little_endian: bool = False
    ) -> None:
        self._write_int(value, 2, False, offset, advance, little_endian, "uint16")

    def write_i16(
        self, value: int, offset: Optional[int] = None, advance: bool = True, little_endian: bool = False
    ) -> None:
        self._write_int(value, 2, True, offset, advance, little_endian, "int16")

    def write_u24(
        self, value: int, offset: Optional[int] = None, advance: bool = True, little_endian: bool = False
    ) -> None:
        self._write_int(value, 3, False, offset, advance, little_endian, "uint24")

    def write_i24(
        self, value: int, offset: Optional[int] = None, advance: bool = True, little_endian: bool = False
    ) -> None:
        self._write_int(value, 3, True, offset, advance, little_endian, "int24")

    def write_u32(
        self, value: int, offset: Optional[int] = None, advance: bool = True, little_endian: bool = False
    ) -> None:
        self._write_int(value, 4, False, offset, advance, little_endian, "uint32")

    def write_i32(
        self, value: int, offset: Optional[int] = None, advance: bool = True, little_endian: bool = False
    ) -> None:
        self._write_int(value, 4, True, offset, advance, little_endian, "int32")

    def write_string(
        self,
        text: str,
        offset: Optional[int] = None,
        encoding: str = "ascii",
        advance: bool = True,
        null_terminate: bool = False,
    ) -> int:
        """
        Encode and write a string.

        ascii and latin1 map characters outside latin-1 to '?'. utf16bom
        writes a big-endian byte order mark followed by big-endian text.

        Returns:
            Number of bytes written
        """
        codec = _normalize_encoding(encoding)
        if codec == "utf16bom":
            data = BOM_BE + text.encode("utf-16-be")
        else:
            data = text.encode(codec, errors="replace")
        if null_terminate:
            data += b"\x00\x00" if codec.startswith(("utf16", "utf-16")) else b"\x00"
        self.write_bytes(data, offset, advance)
        return len(data)
