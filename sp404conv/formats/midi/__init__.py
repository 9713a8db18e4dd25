"""Standard MIDI File reader and writer."""

from sp404conv.formats.midi.reader import MidiFormatError, MidiReader, parse_midi, read_midi
from sp404conv.formats.midi.writer import MidiWriter, write_midi

__all__ = ["MidiFormatError", "MidiReader", "MidiWriter", "parse_midi", "read_midi", "write_midi"]
