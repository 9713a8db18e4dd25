"""Pattern and MIDI converters."""

from sp404conv.converters.midi_to_pattern import (
    MidiToPatternConverter,
    convert_midi_to_pattern,
    midi_to_pattern,
)
from sp404conv.converters.pattern_to_midi import (
    PatternToMidiConverter,
    convert_pattern_to_midi,
    pattern_to_midi,
)

__all__ = [
    "MidiToPatternConverter",
    "PatternToMidiConverter",
    "convert_midi_to_pattern",
    "convert_pattern_to_midi",
    "midi_to_pattern",
    "pattern_to_midi",
]
