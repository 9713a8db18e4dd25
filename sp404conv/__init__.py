"""
SP404Conv - Bidirectional converter between Roland SP-404 pattern files and MIDI.

This library provides tools to:
- Read and write Standard MIDI Files (.mid)
- Read and write SP-404 pattern files (PTNxxxxx.BIN), MKII and legacy units
- Convert patterns to MIDI and MIDI to patterns

Example usage:
    from sp404conv import MidiReader, PatternWriter
    from sp404conv.converters import midi_to_pattern

    midi = MidiReader.read("beat.mid")
    pattern = midi_to_pattern(midi, {36: "A1", 38: "A2"}, 480)
    PatternWriter.write(pattern, "PTN00001.BIN")
"""

__version__ = "0.1.0"
__author__ = "SP404Conv Contributors"

from sp404conv.formats.midi.reader import MidiReader
from sp404conv.formats.midi.writer import MidiWriter
from sp404conv.formats.pattern.reader import PatternReader
from sp404conv.formats.pattern.writer import PatternWriter
from sp404conv.models.midi import MidiDocument, MidiTrack
from sp404conv.models.pattern import PatternDocument, PatternNote, PatternOptions
from sp404conv.utils.pad_maps import HardwareRevision

__all__ = [
    "MidiReader",
    "MidiWriter",
    "PatternReader",
    "PatternWriter",
    "MidiDocument",
    "MidiTrack",
    "PatternDocument",
    "PatternNote",
    "PatternOptions",
    "HardwareRevision",
]
