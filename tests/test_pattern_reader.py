"""Tests for the SP-404 pattern reader."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import LEGACY_FOOTER, MKII_FOOTER_ONE_BAR, pattern_record
from sp404conv.formats.pattern.reader import PatternReader, check_footer, read_pattern
from sp404conv.models.pattern import PatternOptions
from sp404conv.utils.byte_cursor import UnderflowError
from sp404conv.utils.pad_maps import HardwareRevision


def parse(data: bytes, revision: HardwareRevision = HardwareRevision.CURRENT):
    return PatternReader(PatternOptions(revision)).parse_bytes(data)


class TestPatternReader:
    """Test pattern parsing."""

    def test_mkii_pattern(self, mkii_pattern_data):
        """Test records, rest and footer of the MKII fixture."""
        pattern = parse(mkii_pattern_data)

        assert len(pattern.notes) == 3
        assert [n.pad_label for n in pattern.real_notes] == ["B1", "A1"]
        assert pattern.notes[2].is_rest
        assert pattern.bars == 1
        assert pattern.time_signature == 0
        assert pattern.total_ticks == 495
        assert pattern.issues == []

    def test_record_fields(self, mkii_pattern_data):
        """Test decoding of each record byte and the little-endian length."""
        note = parse(mkii_pattern_data).notes[1]

        assert note.ticks == 240
        assert note.midi_note == 47
        assert note.bank_switch == 64
        assert note.velocity == 90
        assert note.reserved == 64
        assert note.length == 120
        assert note.sample_number == 1

    def test_used_pads_skip_rests(self, mkii_pattern_data):
        """Test that rest records are not listed as used pads."""
        assert parse(mkii_pattern_data).used_pads() == ["B1", "A1"]

    def test_legacy_pattern(self, legacy_pattern_data):
        """Test a legacy pattern with 12 pads per bank."""
        pattern = PatternReader(PatternOptions.legacy()).parse_bytes(legacy_pattern_data)

        assert pattern.pads_per_bank == 12
        assert pattern.notes[0].pad_label == "A1"
        assert pattern.bars == 0
        assert pattern.issues == []

    def test_read_file(self, pattern_file):
        """Test reading from disk."""
        pattern = read_pattern(pattern_file)
        assert len(pattern.real_notes) == 2

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            PatternReader.read(tmp_path / "PTN00099.BIN")

    def test_footer_only(self):
        """Test an empty pattern."""
        pattern = parse(MKII_FOOTER_ONE_BAR)
        assert pattern.notes == []
        assert pattern.issues == []

    def test_too_short(self):
        """Test that data without room for a footer raises UnderflowError."""
        with pytest.raises(UnderflowError):
            parse(b"\x00" * 10)


class TestDiagnostics:
    """Test non-fatal issues recorded while parsing."""

    def test_bars_mismatch(self):
        """Test footer bytes 8 and 14 disagreeing."""
        footer = bytearray(MKII_FOOTER_ONE_BAR)
        footer[14] = 2
        pattern = parse(bytes(footer))

        assert len(pattern.issues) == 1
        assert pattern.issues[0].message == "Bars bytes 8 and 14 mismatch"

    def test_unexpected_footer_byte(self):
        """Test a footer byte outside its observed value."""
        footer = bytearray(MKII_FOOTER_ONE_BAR)
        footer[1] = 0
        issues = parse(bytes(footer)).issues

        assert issues[0].message == "Unique Footer Byte 1"
        assert issues[0].expected == "140"
        assert issues[0].offset == 1

    def test_footer_for_other_revision(self):
        """Test that a MKII footer does not pass as legacy."""
        assert check_footer(MKII_FOOTER_ONE_BAR, HardwareRevision.CURRENT) == []
        assert check_footer(LEGACY_FOOTER, HardwareRevision.LEGACY) == []
        assert len(check_footer(MKII_FOOTER_ONE_BAR, HardwareRevision.LEGACY)) >= 4

    def test_trailing_bytes(self, mkii_pattern_data):
        """Test bytes left after the footer."""
        pattern = parse(mkii_pattern_data + b"\x01\x02\x03")

        assert len(pattern.notes) == 3
        assert pattern.issues[-1].message == "Read footer but 3 bytes remain"

    def test_unexpected_bank_switch(self):
        """Test a record with an unknown bank switch value."""
        pattern = parse(pattern_record(0, 60, 3, 100, 10) + MKII_FOOTER_ONE_BAR)

        assert pattern.notes[0].sample_number == 160
        assert pattern.issues[0].severity == "warning"
        assert pattern.issues[0].actual == "3"

    def test_pitch_and_reserved(self):
        """Test unusual pitch mode and reserved bytes as info."""
        pattern = parse(pattern_record(0, 47, 64, 100, 10, pitch=5, reserved=7) + MKII_FOOTER_ONE_BAR)

        assert [i.message for i in pattern.issues] == ["Unusual pitch mode", "Unusual reserved byte"]
        assert all(i.severity == "info" for i in pattern.issues)

    def test_step_pitch(self):
        """Test step sequencer pitch offsets."""
        pattern = parse(
            pattern_record(0, 47, 64, 100, 10, pitch=141)
            + pattern_record(0, 47, 64, 100, 10, pitch=143)
            + MKII_FOOTER_ONE_BAR
        )

        assert [n.pitch_offset for n in pattern.notes] == [0, 2]
        assert pattern.issues == []
