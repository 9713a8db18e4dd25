"""Format handlers for Standard MIDI Files and SP-404 patterns."""

from sp404conv.formats.midi import MidiReader, MidiWriter
from sp404conv.formats.pattern import PatternReader, PatternWriter

__all__ = ["MidiReader", "MidiWriter", "PatternReader", "PatternWriter"]
