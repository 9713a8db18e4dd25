"""Tests for the SP-404 pattern writer."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import LEGACY_FOOTER, MKII_FOOTER_ONE_BAR
from sp404conv.formats.pattern.reader import PatternReader
from sp404conv.formats.pattern.writer import PatternWriter, build_footer, write_pattern
from sp404conv.models.pattern import PatternDocument, PatternNote, PatternOptions
from sp404conv.utils.pad_maps import HardwareRevision
from sp404conv.utils.validation import ValidationError


class TestBuildFooter:
    """Test footer construction."""

    def test_mkii_footer(self):
        """Test the MKII layout with the bar count in bytes 8 and 14."""
        assert build_footer(1, HardwareRevision.CURRENT) == MKII_FOOTER_ONE_BAR

        footer = build_footer(64, HardwareRevision.CURRENT, time_signature=1)
        assert (footer[8], footer[14]) == (64, 64)
        assert footer[12] == 1

    def test_legacy_footer(self):
        """Test that legacy footers do not store the bar count."""
        assert build_footer(4, HardwareRevision.LEGACY) == LEGACY_FOOTER

    def test_out_of_range(self):
        """Test bar count and time signature limits."""
        with pytest.raises(ValidationError):
            build_footer(65, HardwareRevision.CURRENT)
        with pytest.raises(ValidationError):
            build_footer(1, HardwareRevision.CURRENT, time_signature=8)


class TestPatternWriter:
    """Test pattern encoding."""

    def test_mkii_bytes_preserved(self, mkii_pattern_data):
        """Test that a parsed MKII pattern encodes to the same bytes."""
        pattern = PatternReader().parse_bytes(mkii_pattern_data)
        assert PatternWriter().to_bytes(pattern) == mkii_pattern_data

    def test_legacy_bytes_preserved(self, legacy_pattern_data):
        """Test that a parsed legacy pattern encodes to the same bytes."""
        pattern = PatternReader(PatternOptions.legacy()).parse_bytes(legacy_pattern_data)
        assert PatternWriter().to_bytes(pattern) == legacy_pattern_data

    def test_record_layout(self):
        """Test the byte order of one record."""
        pattern = PatternDocument(
            notes=[PatternNote(ticks=3, midi_note=63, bank_switch=64, velocity=100, reserved=64, length=0x1234)]
        )
        data = PatternWriter().to_bytes(pattern)

        assert data[:8] == bytes([3, 63, 64, 0, 100, 64, 0x34, 0x12])
        assert len(data) == 24

    def test_invalid_velocity(self):
        """Test that the failing record is named."""
        pattern = PatternDocument(notes=[PatternNote(midi_note=47, velocity=128)])
        with pytest.raises(ValidationError, match="Note 0"):
            PatternWriter().to_bytes(pattern)

    def test_invalid_length(self):
        """Test that the length must fit 16 bits."""
        pattern = PatternDocument(notes=[PatternNote(midi_note=47, length=0x10000)])
        with pytest.raises(ValidationError):
            PatternWriter().to_bytes(pattern)

    def test_invalid_ticks(self):
        """Test that ticks must fit one byte."""
        pattern = PatternDocument(notes=[PatternNote.rest(256)])
        with pytest.raises(ValidationError):
            PatternWriter().to_bytes(pattern)

    def test_write_file(self, tmp_path, mkii_pattern_data):
        """Test writing to disk."""
        pattern = PatternReader().parse_bytes(mkii_pattern_data)
        path = tmp_path / "out" / "PTN00002.BIN"

        assert write_pattern(pattern, path) == len(mkii_pattern_data)
        assert path.read_bytes() == mkii_pattern_data


class TestFooterPreservation:
    """Test that footers read from files are written back."""

    def test_noisy_footer_bytes_preserved(self, mkii_pattern_data):
        """Test unexpected footer bytes and an out of range bar count."""
        data = bytearray(mkii_pattern_data)
        footer_start = len(data) - 16
        data[footer_start + 3] = 5
        data[footer_start + 10] = 7
        data[footer_start + 8] = 70
        data[footer_start + 14] = 70
        data = bytes(data)

        pattern = PatternReader().parse_bytes(data)
        assert pattern.bars == 70
        assert pattern.issues

        assert PatternWriter().to_bytes(pattern) == data

    def test_mismatched_bar_bytes_preserved(self, mkii_pattern_data):
        """Test that footer bytes 8 and 14 keep their own values."""
        data = bytearray(mkii_pattern_data)
        data[-2] = 2
        data = bytes(data)

        pattern = PatternReader().parse_bytes(data)
        assert PatternWriter().to_bytes(pattern) == data

    def test_edited_fields_patched(self, mkii_pattern_data):
        """Test that changed bars and time signature reach bytes 8, 12 and 14."""
        data = bytearray(mkii_pattern_data)
        data[-6] = 9
        pattern = PatternReader().parse_bytes(bytes(data))
        pattern.bars = 4
        pattern.time_signature = 2

        footer = PatternWriter().to_bytes(pattern)[-16:]
        assert (footer[8], footer[12], footer[14]) == (4, 2, 4)
        assert footer[10] == 9
        assert footer[13] == 128

    def test_edited_bars_checked(self, mkii_pattern_data):
        """Test that a changed bar count must fit the footer."""
        pattern = PatternReader().parse_bytes(mkii_pattern_data)
        pattern.bars = 65
        with pytest.raises(ValidationError):
            PatternWriter().to_bytes(pattern)

    def test_new_document_gets_revision_footer(self):
        """Test that documents without a parsed footer get a built one."""
        pattern = PatternDocument(revision=HardwareRevision.LEGACY, bars=4)
        assert PatternWriter().to_bytes(pattern) == LEGACY_FOOTER
