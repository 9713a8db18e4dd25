"""Tests for pattern <-> MIDI conversion."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import LEGACY_FOOTER, MKII_FOOTER_ONE_BAR, pattern_record
from sp404conv.converters.midi_to_pattern import (
    MidiToPatternConverter,
    collect_notes,
    convert_midi_to_pattern,
    midi_to_pattern,
    round_half_up,
)
from sp404conv.converters.pattern_to_midi import (
    PatternToMidiConverter,
    convert_pattern_to_midi,
    pattern_to_midi,
)
from sp404conv.formats.midi.reader import MidiReader, parse_midi
from sp404conv.formats.midi.writer import MidiWriter
from sp404conv.formats.pattern.reader import PatternReader
from sp404conv.formats.pattern.writer import PatternWriter
from sp404conv.models.midi import (
    EndOfTrack,
    MidiDocument,
    MidiTrack,
    NoteOff,
    NoteOn,
    SetTempo,
    TextMetaEvent,
)
from sp404conv.models.pattern import PatternOptions
from sp404conv.utils.pad_maps import HardwareRevision, hardware_note_map, invert_note_map
from sp404conv.utils.validation import ValidationError

PAD_NOTES = hardware_note_map(HardwareRevision.CURRENT)
CURRENT_MAP = invert_note_map(PAD_NOTES)


def notes_document(*notes, division: int = 480) -> MidiDocument:
    """One track of (time, note, length) notes at velocity 100."""
    timed = []
    for time, note, length in notes:
        timed.append((time, NoteOn(channel=0, note=note, velocity=100)))
        if length:
            timed.append((time + length, NoteOff(channel=0, note=note)))
    timed.sort(key=lambda item: item[0])

    track = MidiTrack()
    last = 0
    for time, event in timed:
        event.delta_time = time - last
        last = time
        track.add_event(event)
    track.add_event(EndOfTrack())
    return MidiDocument(track_count=1, time_division=division, tracks=[track])


class TestPatternToMidi:
    """Test pattern to MIDI conversion."""

    def test_events(self, mkii_pattern_data):
        """Test note timing from relative record ticks."""
        pattern = PatternReader().parse_bytes(mkii_pattern_data)
        midi = pattern_to_midi(pattern, PAD_NOTES)
        events = midi.tracks[0].events

        assert midi.time_division == 480
        assert isinstance(events[0], TextMetaEvent)
        assert events[0].text == "SP404 Pattern "
        assert events[1:5] == [
            NoteOn(0, 0, 63, 100),
            NoteOff(240, 0, 63, 0),
            NoteOn(0, 0, 47, 90),
            NoteOff(120, 0, 47, 0),
        ]
        assert isinstance(events[-1], EndOfTrack)
        assert len(events) == 6

    def test_tempo_and_name(self, mkii_pattern_data):
        """Test the optional tempo event and the track name."""
        pattern = PatternReader().parse_bytes(mkii_pattern_data)
        midi = pattern_to_midi(pattern, PAD_NOTES, bpm=90, name="PTN00001.BIN")
        events = midi.tracks[0].events

        assert isinstance(events[0], SetTempo)
        assert events[0].tempo == 666667
        assert midi.tracks[0].name == "SP404 Pattern PTN00001.BIN"

    def test_custom_note_map(self, mkii_pattern_data):
        """Test that pads missing from the map are skipped but keep their time."""
        pattern = PatternReader().parse_bytes(mkii_pattern_data)
        events = pattern_to_midi(pattern, note_map={"A1": 36}).tracks[0].events

        notes = [e for e in events if isinstance(e, (NoteOn, NoteOff))]
        assert notes == [NoteOn(240, 0, 36, 90), NoteOff(120, 0, 36, 0)]

    def test_zero_length_note(self):
        """Test that a record without length produces no Note Off."""
        data = pattern_record(0, 47, 64, 100, 0) + MKII_FOOTER_ONE_BAR
        midi = pattern_to_midi(PatternReader().parse_bytes(data), PAD_NOTES)

        assert [type(e) for e in midi.tracks[0].events[1:]] == [NoteOn, EndOfTrack]

    def test_overlapping_notes_sorted(self):
        """Test that a long note's Note Off lands after later notes."""
        data = (
            pattern_record(0, 47, 64, 100, 500)
            + pattern_record(100, 48, 64, 100, 50)
            + MKII_FOOTER_ONE_BAR
        )
        midi = pattern_to_midi(PatternReader().parse_bytes(data), PAD_NOTES)
        absolute = [
            (time, type(e).__name__, e.note)
            for time, e in midi.tracks[0].absolute_events()
            if isinstance(e, (NoteOn, NoteOff))
        ]

        assert absolute == [
            (0, "NoteOn", 47),
            (100, "NoteOn", 48),
            (150, "NoteOff", 48),
            (500, "NoteOff", 47),
        ]

    def test_legacy_resolution(self, legacy_pattern_data):
        """Test that legacy patterns keep 96 PPQN."""
        pattern = PatternReader(PatternOptions.legacy()).parse_bytes(legacy_pattern_data)
        midi = pattern_to_midi(pattern, hardware_note_map(HardwareRevision.LEGACY))

        assert midi.time_division == 96
        assert NoteOn(0, 0, 47, 127) in midi.tracks[0].events

    def test_output_is_valid_midi(self, mkii_pattern_data):
        """Test that the converted document encodes and validates cleanly."""
        pattern = PatternReader().parse_bytes(mkii_pattern_data)
        midi = parse_midi(MidiWriter().to_bytes(pattern_to_midi(pattern, PAD_NOTES, bpm=120)))
        assert midi.validate() == []

    def test_invalid_note_map(self):
        """Test that a note map value must be a MIDI note."""
        with pytest.raises(ValidationError):
            PatternToMidiConverter({"A1": 200})
        with pytest.raises(ValidationError):
            PatternToMidiConverter(None)
        with pytest.raises(ValidationError):
            pattern_to_midi(PatternReader().parse_bytes(MKII_FOOTER_ONE_BAR), None)

    def test_pads_outside_note_map_reported(self):
        """Test that an F bank pad missing from the hardware map is reported."""
        data = (
            pattern_record(0, 47, 64, 100, 120)
            + pattern_record(120, 47, 65, 90, 120)
            + pattern_record(120, 47, 65, 80, 120)
            + MKII_FOOTER_ONE_BAR
        )
        pattern = PatternReader().parse_bytes(data)
        assert [n.pad_label for n in pattern.notes] == ["A1", "F1", "F1"]

        midi = pattern_to_midi(pattern, PAD_NOTES)
        notes = [e for e in midi.tracks[0].events if isinstance(e, NoteOn)]

        assert notes == [NoteOn(0, 0, 47, 100)]
        assert len(midi.issues) == 1
        assert midi.issues[0].severity == "warning"
        assert midi.issues[0].actual == "F1"
        assert midi.issues[0].offset == 8

        midi = pattern_to_midi(pattern, {"A1": 36, "F1": 41})
        assert [e.note for e in midi.tracks[0].events if isinstance(e, NoteOn)] == [36, 41, 41]
        assert midi.issues == []

    def test_convert_file(self, pattern_file, tmp_path):
        """Test file to file conversion."""
        output = tmp_path / "beat.mid"
        convert_pattern_to_midi(pattern_file, output, PAD_NOTES, bpm=100)

        midi = MidiReader.read(output)
        assert midi.tempo_bpm == 100
        assert midi.tracks[0].name == "SP404 Pattern PTN00001.BIN"


class TestMidiToPattern:
    """Test MIDI to pattern conversion."""

    def test_basic(self):
        """Test records, pads and footer for a short groove."""
        midi = notes_document((0, 47, 120), (240, 63, 120), (480, 47, 120), (720, 48, 120))
        pattern = midi_to_pattern(midi, CURRENT_MAP, 480)

        real = pattern.real_notes
        assert [n.pad_label for n in real] == ["A1", "B1", "A1", "A2"]
        assert [n.ticks for n in real] == [0, 240, 240, 240]
        assert all(n.reserved == 64 and n.pitch_mode == 0 for n in real)
        assert [n.length for n in real] == [120] * 4
        assert pattern.bars == 1
        assert pattern.footer == MKII_FOOTER_ONE_BAR

    def test_long_gap_uses_rests(self):
        """Test that a 600 tick gap becomes rests of 255, 255 and 90."""
        pattern = midi_to_pattern(notes_document((600, 47, 0)), CURRENT_MAP, 480)

        head = [(n.ticks, n.is_rest) for n in pattern.notes[:4]]
        assert head == [(255, True), (255, True), (90, True), (0, False)]

    def test_rounds_up_to_next_bar(self):
        """Test padding a pattern to a whole number of bars."""
        pattern = midi_to_pattern(notes_document((1921, 47, 0)), CURRENT_MAP, 480)

        assert pattern.bars == 2
        assert pattern.total_ticks == 3840

    def test_exact_bar_not_padded(self):
        """Test that a pattern ending on a bar line gets no padding."""
        pattern = midi_to_pattern(notes_document((0, 47, 0), (1920, 47, 0)), CURRENT_MAP, 480)

        assert pattern.bars == 1
        assert not pattern.notes[-1].is_rest

    def test_bar_cap(self):
        """Test that bars never exceed 64."""
        pattern = midi_to_pattern(notes_document((64 * 1920 + 1, 47, 0)), CURRENT_MAP, 480)

        assert pattern.bars == 64
        assert pattern.footer[8] == 64
        assert not pattern.notes[-1].is_rest

    def test_single_note_at_zero(self):
        """Test that a pattern with nothing after tick 0 gets one bar of rests."""
        pattern = midi_to_pattern(notes_document((0, 47, 10)), CURRENT_MAP, 480)

        assert pattern.bars == 1
        assert pattern.total_ticks == 1920
        assert len(pattern.real_notes) == 1
        assert all(n.ticks == 255 for n in pattern.notes[1:-1])

    def test_empty_midi(self):
        """Test a MIDI file without notes."""
        pattern = midi_to_pattern(notes_document(), CURRENT_MAP, 480)

        assert pattern.real_notes == []
        assert pattern.bars == 1
        assert pattern.total_ticks == 1920

    def test_unmapped_notes_skipped(self):
        """Test that unmapped notes do not move the time reference."""
        midi = notes_document((0, 47, 0), (100, 30, 0), (200, 48, 0))
        pattern = midi_to_pattern(midi, CURRENT_MAP, 480)

        assert [(n.pad_label, n.ticks) for n in pattern.real_notes] == [("A1", 0), ("A2", 200)]

    def test_resolution_scaling(self):
        """Test tick scaling between resolutions with half-up rounding."""
        midi = notes_document((0, 47, 0), (5, 48, 0), division=192)
        pattern = midi_to_pattern(midi, CURRENT_MAP, pattern_ppqn=96)

        assert pattern.real_notes[1].ticks == 3

    def test_round_half_up(self):
        """Test the rounding rule."""
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.4) == 2

    def test_length_clamped(self):
        """Test that lengths longer than 16 bits are clamped."""
        midi = notes_document((0, 47, 4000))
        pattern = midi_to_pattern(midi, CURRENT_MAP, pattern_ppqn=9600)

        assert pattern.real_notes[0].length == 0xFFFF

    def test_multiple_tracks_merged(self):
        """Test that notes from every track are merged by time."""
        first = notes_document((0, 47, 0), (480, 47, 0))
        second = notes_document((240, 48, 0))
        first.tracks.extend(second.tracks)

        pattern = midi_to_pattern(first, CURRENT_MAP, 480)
        assert [n.pad_label for n in pattern.real_notes] == ["A1", "A2", "A1"]

    def test_note_lengths_fifo(self):
        """Test that repeated notes release in start order."""
        events = [
            NoteOn(0, 0, 47, 100),
            NoteOn(10, 0, 47, 100),
            NoteOff(20, 0, 47, 0),
            NoteOn(5, 0, 47, 0),
            EndOfTrack(),
        ]
        midi = MidiDocument(time_division=480, tracks=[MidiTrack(events=events)])

        assert [n.length for n in collect_notes(midi)] == [30, 25]

    def test_legacy_revision(self):
        """Test pads, resolution and footer for legacy hardware."""
        midi = notes_document((0, 36, 0), (480, 36, 0), division=480)
        pattern = midi_to_pattern(midi, {36: "A1"}, 96, revision=HardwareRevision.LEGACY)

        assert pattern.real_notes[1].ticks == 96
        assert (pattern.real_notes[0].midi_note, pattern.real_notes[0].bank_switch) == (47, 0)
        assert pattern.footer == LEGACY_FOOTER

    def test_required_arguments(self):
        """Test that missing inputs raise ValidationError."""
        with pytest.raises(ValidationError):
            MidiToPatternConverter(None, 480)
        with pytest.raises(ValidationError):
            MidiToPatternConverter(CURRENT_MAP, 0)
        with pytest.raises(ValidationError):
            MidiToPatternConverter(CURRENT_MAP, 480).convert(None)

    def test_smpte_rejected(self):
        """Test that SMPTE-timed files cannot be converted."""
        midi = MidiDocument(time_division=None, frames_per_second=25, ticks_per_frame=40)
        with pytest.raises(ValidationError):
            midi_to_pattern(midi, CURRENT_MAP, 480)

    def test_convert_file(self, midi_path, tmp_path):
        """Test file to file conversion."""
        output = tmp_path / "PTN00002.BIN"
        convert_midi_to_pattern(midi_path, output, {36: "A1", 38: "A2"}, 480)

        pattern = PatternReader.read(output)
        assert [n.pad_label for n in pattern.real_notes] == ["A1", "A2"]
        assert pattern.real_notes[0].length == 480
        assert pattern.issues == []


class TestRoundTrip:
    """Test pattern -> MIDI -> pattern."""

    def test_pattern_survives_midi(self):
        """Test that a one-bar pattern returns byte for byte."""
        pads = [(47, 64), (63, 64), (48, 64), (79, 64), (47, 64), (95, 64), (48, 64), (111, 64), (47, 64)]
        data = b"".join(
            pattern_record(0 if i == 0 else 240, note, bank, 60 + i, 120) for i, (note, bank) in enumerate(pads)
        )
        data += MKII_FOOTER_ONE_BAR

        pattern = PatternReader().parse_bytes(data)
        midi = parse_midi(MidiWriter().to_bytes(pattern_to_midi(pattern, PAD_NOTES)))
        back = midi_to_pattern(midi, CURRENT_MAP, 480)

        assert PatternWriter().to_bytes(back) == data
