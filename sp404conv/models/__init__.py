"""Data models for MIDI documents and SP-404 patterns."""

from sp404conv.models.midi import (
    MetaEvent,
    MidiDocument,
    MidiEvent,
    MidiTrack,
    NoteOff,
    NoteOn,
)
from sp404conv.models.pattern import PatternDocument, PatternNote, PatternOptions

__all__ = [
    "MetaEvent",
    "MidiDocument",
    "MidiEvent",
    "MidiTrack",
    "NoteOff",
    "NoteOn",
    "PatternDocument",
    "PatternNote",
    "PatternOptions",
]
