"""
SP-404 pattern file writer.

Encodes a PatternDocument to the 8-byte record layout plus the 16-byte
footer. A footer read from a file is kept; new documents get the footer
for their hardware revision.
"""

import logging
from pathlib import Path
from typing import Union

from sp404conv.models.pattern import FOOTER_MARKER, FOOTER_SIZE, MAX_BARS, PatternDocument, PatternNote
from sp404conv.utils.byte_cursor import ByteCursor
from sp404conv.utils.pad_maps import HardwareRevision
from sp404conv.utils.validation import ValidationError, validate_byte, validate_range

log = logging.getLogger(__name__)


def build_footer(bars: int, revision: HardwareRevision, time_signature: int = 0) -> bytes:
    """
    Build a pattern footer.

    Args:
        bars: Bar count (1-64); stored as 0 on legacy hardware
        revision: Hardware revision
        time_signature: Time signature index (0-7)

    Returns:
        16 footer bytes
    """
    validate_range(bars, 0, MAX_BARS, "bars")
    validate_range(time_signature, 0, 7, "time signature")

    legacy = revision is HardwareRevision.LEGACY
    footer = bytearray(16)
    footer[1] = FOOTER_MARKER
    footer[8] = 0 if legacy else bars
    footer[9] = 2 if legacy else 0
    footer[12] = time_signature
    footer[13] = 0 if legacy else 128
    footer[14] = 0 if legacy else bars
    footer[15] = 0 if legacy else 1
    return bytes(footer)


class PatternWriter:
    """
    Writer for SP-404 pattern files.

    Example:
        PatternWriter.write(pattern, "PTN00001.BIN")
    """

    @classmethod
    def write(cls, document: PatternDocument, filepath: Union[str, Path]) -> int:
        """
        Write a PatternDocument to a file.

        Returns:
            Number of bytes written
        """
        data = cls().to_bytes(document)
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "wb") as f:
            f.write(data)
        return len(data)

    def to_bytes(self, document: PatternDocument) -> bytes:
        """
        Encode a PatternDocument.

        Raises:
            ValidationError: If a record field does not fit its byte width
        """
        for index, note in enumerate(document.notes):
            try:
                self.check_note(note)
            except ValidationError as e:
                raise ValidationError(f"Note {index}: {e}") from e
        footer = self.footer_for(document)

        cursor = ByteCursor.writer()
        for note in document.notes:
            self.write_note(cursor, note)
        cursor.write_bytes(footer)

        log.debug("to_bytes: %d records, %d bars", len(document.notes), document.bars)
        return cursor.commit().getvalue()

    @staticmethod
    def footer_for(document: PatternDocument) -> bytes:
        """
        Footer bytes for a document.

        A parsed footer is written back as read; bytes 8 and 14 are only
        rewritten when bars changed, byte 12 when time_signature changed.
        Documents built in memory get a fresh footer.
        """
        if len(document.footer) != FOOTER_SIZE:
            return build_footer(document.bars, document.revision, document.time_signature)

        footer = bytearray(document.footer)
        if document.bars != footer[8]:
            validate_range(document.bars, 0, MAX_BARS, "bars")
            bars = 0 if document.revision is HardwareRevision.LEGACY else document.bars
            footer[8] = bars
            footer[14] = bars
        if document.time_signature != footer[12]:
            validate_range(document.time_signature, 0, 7, "time signature")
            footer[12] = document.time_signature
        return bytes(footer)

    @staticmethod
    def check_note(note: PatternNote) -> None:
        validate_byte(note.ticks, "ticks")
        validate_byte(note.midi_note, "midi_note")
        validate_byte(note.bank_switch, "bank_switch")
        validate_byte(note.pitch_mode, "pitch_mode")
        validate_range(note.velocity, 0, 127, "velocity")
        validate_byte(note.reserved, "reserved")
        validate_range(note.length, 0, 0xFFFF, "length")

    @staticmethod
    def write_note(cursor: ByteCursor, note: PatternNote) -> None:
        """Write one 8-byte record."""
        cursor.write_u8(note.ticks)
        cursor.write_u8(note.midi_note)
        cursor.write_u8(note.bank_switch)
        cursor.write_u8(note.pitch_mode)
        cursor.write_u8(note.velocity)
        cursor.write_u8(note.reserved)
        cursor.write_u16(note.length, little_endian=True)


def write_pattern(document: PatternDocument, filepath: Union[str, Path]) -> int:
    """Write a pattern file."""
    return PatternWriter.write(document, filepath)
