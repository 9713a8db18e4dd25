"""Tests for MIDI document validation."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from sp404conv.formats.midi.reader import parse_midi
from sp404conv.models.midi import (
    EndOfTrack,
    MidiDocument,
    MidiTrack,
    NoteOff,
    NoteOn,
    RawMetaEvent,
    SequenceNumber,
)


def document_with(events, **kwargs) -> MidiDocument:
    return MidiDocument(track_count=1, tracks=[MidiTrack(events=events)], **kwargs)


def messages(document: MidiDocument):
    return [issue.message for issue in document.validate()]


class TestValidate:
    """Test MidiDocument.validate()."""

    def test_clean_document(self):
        """Test that a balanced track has no issues."""
        document = document_with([NoteOn(0, 0, 60, 100), NoteOff(96, 0, 60, 0), EndOfTrack()])
        assert document.validate() == []

    def test_unmatched_note_on(self, simple_midi_data):
        """Test that the snare without a Note Off is reported once."""
        found = [m for m in messages(parse_midi(simple_midi_data)) if "unmatched Note On" in m]
        assert found == ["Track 0 has 1 unmatched Note On for note 38."]

    def test_note_on_zero_velocity_releases(self):
        """Test that velocity 0 counts as a Note Off."""
        document = document_with([NoteOn(0, 0, 60, 100), NoteOn(10, 0, 60, 0), EndOfTrack()])
        assert document.validate() == []

    def test_inactive_note_off(self):
        """Test a Note Off for a note that is not sounding."""
        document = document_with([NoteOff(0, 0, 40, 0), EndOfTrack()])
        assert messages(document) == [
            "Track 0 event 0 tries to Note Off note 40 which was not active."
        ]

    def test_missing_end_of_track(self):
        """Test a track without End of Track."""
        document = document_with([NoteOn(0, 0, 60, 100), NoteOff(1, 0, 60, 0)])
        assert messages(document) == ["Track 0 missing End-of-Track (0xFF 2F) event."]

    def test_negative_delta(self):
        """Test that a negative delta time is an error."""
        document = document_with([NoteOn(-5, 0, 60, 100), NoteOff(5, 0, 60, 0), EndOfTrack()])
        issues = document.validate()

        assert len(issues) == 1
        assert issues[0].severity == "error"
        assert "negative deltaTime -5" in issues[0].message

    def test_unsupported_format(self):
        """Test a format code above 2."""
        document = document_with([EndOfTrack()], format=3)
        assert messages(document) == ["Unsupported MIDI format: 3."]

    def test_track_count_mismatch(self):
        """Test a header count that differs from the parsed tracks."""
        document = MidiDocument(track_count=3, tracks=[MidiTrack(events=[EndOfTrack()])])
        issues = document.validate()

        assert len(issues) == 1
        assert issues[0].expected == "3"
        assert issues[0].actual == "1"

    def test_empty_track_with_length(self):
        """Test a chunk with bytes but no decoded events."""
        document = document_with([])
        document.tracks[0].chunk_length = 10
        assert "Track 0 chunkLength=10 but has 0 events." in messages(document)

    def test_meta_length(self):
        """Test that a fixed-length meta event with another length is reported."""
        document = document_with([RawMetaEvent(0, 3, 0x58, b"\x04\x02\x18"), EndOfTrack()])
        assert messages(document) == [
            "Track 0 event 0 Time Signature has metaEventLength=3, expected=4"
        ]

    def test_sequence_number_lengths(self):
        """Test that both sequence number forms are accepted."""
        document = document_with([SequenceNumber(0, 0, None), SequenceNumber(0, 2, 1), EndOfTrack()])
        assert document.validate() == []

    def test_end_of_track_with_payload(self):
        """Test an End of Track that declares a payload."""
        document = document_with([EndOfTrack(0, 1)])
        assert messages(document) == [
            "Track 0 event 0 End-of-Track has metaEventLength=1, expected=0"
        ]

    def test_parse_issues_first(self):
        """Test that issues recorded while parsing come before semantic ones."""
        data = (
            b"MThd\x00\x00\x00\x06\x00\x01\x00\x02\x01\xe0"
            b"MTrk\x00\x00\x00\x04\x00\xff\x2f\x00"
            b"JUNK\x00\x00\x00\x00"
        )
        issues = parse_midi(data).validate()

        assert issues[0].actual == "JUNK"
        assert "trackCount=2" in issues[1].message
