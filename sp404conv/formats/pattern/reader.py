"""
SP-404 pattern file reader.

Pattern File Structure (PTNxxxxx.BIN):
    Offset  Size    Description
    0x000   8 * N   Note records
    8 * N   16      Footer

Note record (8 bytes):
    0   ticks           Delay before the note (0-255)
    1   midi_note       Pad note, 128 for a rest record
    2   bank_switch     Bank group (legacy 0/64, MKII 64/65 or 0/1)
    3   pitch_mode      0, or 129-153 for step sequencer pitch
    4   velocity        0-127
    5   reserved        Usually 64, 0 on rests
    6   length          Note length in ticks, u16 little-endian

Footer (16 bytes):
    1       Always 140
    8, 14   Bar count (MKII 1-64, legacy 0)
    9       Legacy 2, MKII 0
    12      Time signature (0-7)
    13      Legacy 0, MKII 128
    15      Legacy 0, MKII 1
    others  0
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from sp404conv.models.pattern import (
    FOOTER_MARKER,
    FOOTER_SIZE,
    MAX_BARS,
    PITCH_MODE_MAX,
    PITCH_MODE_MIN,
    RECORD_SIZE,
    PatternDocument,
    PatternNote,
    PatternOptions,
)
from sp404conv.utils.byte_cursor import ByteCursor
from sp404conv.utils.pad_maps import UNKNOWN_SAMPLE, HardwareRevision
from sp404conv.utils.validation import ValidationIssue

log = logging.getLogger(__name__)


class PatternReader:
    """
    Reader for SP-404 pattern files.

    Example:
        pattern = PatternReader.read("PTN00025.BIN")
        for note in pattern.real_notes:
            print(note.pad_label, note.velocity)
    """

    def __init__(self, options: Optional[PatternOptions] = None):
        self.options = options or PatternOptions()

    @classmethod
    def read(
        cls, filepath: Union[str, Path], options: Optional[PatternOptions] = None
    ) -> PatternDocument:
        """
        Read a pattern file and return a PatternDocument.

        Args:
            filepath: Path to PTN .BIN file
            options: Hardware revision and pads per bank

        Returns:
            Parsed PatternDocument
        """
        return cls(options).parse_file(filepath)

    def parse_file(self, filepath: Union[str, Path]) -> PatternDocument:
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with open(filepath, "rb") as f:
            data = f.read()

        return self.parse_bytes(data)

    def parse_bytes(self, data: bytes) -> PatternDocument:
        """
        Parse pattern data from bytes.

        Raises:
            UnderflowError: If the data is too short to hold a footer
        """
        return self.parse(ByteCursor(data))

    def parse(self, cursor: ByteCursor) -> PatternDocument:
        """
        Parse the records and footer at the cursor.

        Args:
            cursor: Cursor at the first note record

        Returns:
            PatternDocument with diagnostics in issues
        """
        options = self.options
        document = PatternDocument(
            revision=options.revision,
            pads_per_bank=options.pads_per_bank,
        )

        total_notes = cursor.remaining_bytes() // RECORD_SIZE - 2
        log.debug("parse: %d records", max(total_notes, 0))

        for index in range(max(total_notes, 0)):
            offset = cursor.offset
            note = self.parse_record(cursor)
            note.resolve_pad(options.revision, options.pads_per_bank)
            document.notes.append(note)
            document.issues.extend(self._check_record(index, offset, note))

        footer_offset = cursor.offset
        footer = cursor.read(FOOTER_SIZE)
        document.footer = footer
        document.bars = footer[8]
        document.time_signature = footer[12]
        document.issues.extend(check_footer(footer, options.revision, footer_offset))

        if cursor.remaining_bytes():
            document.issues.append(
                ValidationIssue(
                    "warning",
                    "Footer",
                    cursor.offset,
                    f"Read footer but {cursor.remaining_bytes()} bytes remain",
                    "0",
                    str(cursor.remaining_bytes()),
                )
            )

        for issue in document.issues:
            log.debug("parse: %s", issue)
        return document

    @staticmethod
    def parse_record(cursor: ByteCursor) -> PatternNote:
        """Decode one 8-byte note record."""
        return PatternNote(
            ticks=cursor.read_u8(),
            midi_note=cursor.read_u8(),
            bank_switch=cursor.read_u8(),
            pitch_mode=cursor.read_u8(),
            velocity=cursor.read_u8(),
            reserved=cursor.read_u8(),
            length=cursor.read_u16(little_endian=True),
        )

    def _check_record(self, index: int, offset: int, note: PatternNote) -> List[ValidationIssue]:
        issues = []
        area = f"Note {index}"

        if note.sample_number == UNKNOWN_SAMPLE and not note.is_rest:
            issues.append(
                ValidationIssue(
                    "warning",
                    area,
                    offset + 2,
                    f"Unexpected bank switch value for {self.options.revision.name}",
                    "0/64" if self.options.revision is HardwareRevision.LEGACY else "0/1/64/65",
                    str(note.bank_switch),
                )
            )
        if note.pitch_mode != 0 and not PITCH_MODE_MIN <= note.pitch_mode <= PITCH_MODE_MAX:
            issues.append(
                ValidationIssue(
                    "info",
                    area,
                    offset + 3,
                    "Unusual pitch mode",
                    f"0 or {PITCH_MODE_MIN}-{PITCH_MODE_MAX}",
                    str(note.pitch_mode),
                )
            )
        if note.reserved not in (0, 64):
            issues.append(
                ValidationIssue("info", area, offset + 5, "Unusual reserved byte", "0 or 64", str(note.reserved))
            )
        return issues


# Expected footer value per byte index; a tuple is an inclusive range
def _expected_footer(revision: HardwareRevision) -> List[Tuple[int, Union[int, Tuple[int, int]]]]:
    legacy = revision is HardwareRevision.LEGACY
    return [
        (0, 0),
        (1, FOOTER_MARKER),
        (2, 0),
        (3, 0),
        (4, 0),
        (5, 0),
        (6, 0),
        (7, 0),
        (8, 0 if legacy else (1, MAX_BARS)),
        (9, 2 if legacy else 0),
        (10, 0),
        (11, 0),
        (12, (0, 7)),
        (13, 0 if legacy else 128),
        (14, 0 if legacy else (1, MAX_BARS)),
        (15, 0 if legacy else 1),
    ]


def check_footer(footer: bytes, revision: HardwareRevision, offset: int = 0) -> List[ValidationIssue]:
    """
    Compare a footer with the values observed on real hardware.

    Returns:
        One issue per unexpected byte, plus one if the bar bytes disagree
    """
    issues = []
    for index, expected in _expected_footer(revision):
        actual = footer[index]
        if isinstance(expected, tuple):
            low, high = expected
            ok = low <= actual <= high
            wanted = f"{low}-{high}"
        else:
            ok = actual == expected
            wanted = str(expected)
        if not ok:
            issues.append(
                ValidationIssue(
                    "warning",
                    "Footer",
                    offset + index,
                    f"Unique Footer Byte {index}",
                    wanted,
                    str(actual),
                )
            )

    if footer[8] != footer[14]:
        issues.append(
            ValidationIssue(
                "warning",
                "Footer",
                offset + 8,
                "Bars bytes 8 and 14 mismatch",
                str(footer[8]),
                str(footer[14]),
            )
        )
    return issues


def read_pattern(
    filepath: Union[str, Path], revision: HardwareRevision = HardwareRevision.CURRENT
) -> PatternDocument:
    """Read a pattern file for a hardware revision."""
    return PatternReader.read(filepath, PatternOptions(revision))
