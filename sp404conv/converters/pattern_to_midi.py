"""
SP-404 pattern to MIDI converter.

Each pattern record becomes a Note On at its absolute time and, when the
record has a length, a Note Off (velocity 0) that many ticks later. Record
ticks are a delay relative to the previous record, so events are sorted by
absolute time before delta times are computed.

The MIDI file keeps the pattern's resolution: its time division is the
pattern PPQN (480 on MKII, 96 on legacy hardware).
"""

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union

from sp404conv.formats.midi.writer import MidiWriter
from sp404conv.formats.pattern.reader import PatternReader
from sp404conv.models.midi import (
    MetaType,
    MidiDocument,
    MidiEvent,
    MidiTrack,
    NoteOff,
    NoteOn,
    generate_end_of_track_event,
    generate_meta_string_event,
    generate_tempo_event,
)
from sp404conv.models.pattern import RECORD_SIZE, PatternDocument, PatternOptions
from sp404conv.utils.pad_maps import HardwareRevision
from sp404conv.utils.validation import (
    ValidationError,
    ValidationIssue,
    validate_midi_value,
    validate_range,
)

log = logging.getLogger(__name__)


class PatternToMidiConverter:
    """
    Converter from a PatternDocument to a single-track MidiDocument.

    Attributes:
        note_map: Pad label ("A1") to MIDI note
        ppqn: Pulses per quarter note of the pattern
        bpm: Tempo to record, or None for no tempo event
        name: Pattern name used in the track name
        channel: MIDI channel (0-15) of the note events
    """

    def __init__(
        self,
        note_map: Mapping[str, int],
        ppqn: Optional[int] = None,
        bpm: Optional[float] = None,
        name: str = "",
        channel: int = 0,
    ):
        if note_map is None:
            raise ValidationError("A note map (pad label to MIDI note) is required")
        for pad, note in note_map.items():
            validate_midi_value(int(note), f"note for pad {pad}")
        if ppqn is not None:
            validate_range(ppqn, 1, 0x7FFF, "ppqn")
        validate_range(channel, 0, 15, "MIDI channel")

        self.note_map = {pad: int(note) for pad, note in note_map.items()}
        self.ppqn = ppqn
        self.bpm = bpm
        self.name = name
        self.channel = channel

    def convert(self, pattern: PatternDocument) -> MidiDocument:
        """
        Convert a pattern.

        Args:
            pattern: Parsed pattern

        Returns:
            MidiDocument with one track
        """
        ppqn = self.ppqn or pattern.revision.default_ppqn
        timed = self.timed_events(pattern)
        issues = self.unmapped_pads(pattern)

        track = MidiTrack()
        if self.bpm:
            track.add_event(generate_tempo_event(self.bpm))
        track.add_event(generate_meta_string_event(MetaType.TRACK_NAME, f"SP404 Pattern {self.name}"))

        last = 0
        for absolute, event in timed:
            event.delta_time = absolute - last
            last = absolute
            track.add_event(event)
        track.add_event(generate_end_of_track_event())

        log.debug("convert: %d note events, ppqn=%d", len(timed), ppqn)
        return MidiDocument(
            format=1, track_count=1, time_division=ppqn, tracks=[track], issues=issues
        )

    def unmapped_pads(self, pattern: PatternDocument) -> List[ValidationIssue]:
        """One warning per pad that plays in the pattern but has no MIDI note."""
        issues: List[ValidationIssue] = []
        seen = set()
        for index, note in enumerate(pattern.notes):
            if note.is_rest or note.pad_label in self.note_map or note.pad_label in seen:
                continue
            seen.add(note.pad_label)
            log.warning("Pad %s is not in the note map; its notes are skipped", note.pad_label)
            issues.append(
                ValidationIssue(
                    "warning",
                    f"Note {index}",
                    index * RECORD_SIZE,
                    f"Pad {note.pad_label} has no MIDI note in the note map",
                    "mapped pad",
                    note.pad_label,
                )
            )
        return issues

    def timed_events(self, pattern: PatternDocument) -> List[Tuple[int, MidiEvent]]:
        """
        Build note events with absolute times, sorted by time.

        Rest records and pads missing from the note map only advance time.
        """
        events: List[Tuple[int, MidiEvent]] = []
        absolute = 0

        for note in pattern.notes:
            absolute += note.ticks
            if note.is_rest:
                continue

            midi_note = self.note_map.get(note.pad_label)
            if midi_note is None:
                continue

            events.append(
                (absolute, NoteOn(channel=self.channel, note=midi_note, velocity=note.velocity))
            )
            if note.length > 0:
                events.append(
                    (absolute + note.length, NoteOff(channel=self.channel, note=midi_note, velocity=0))
                )

        # Stable: a Note Off and a Note On at the same tick keep record order
        events.sort(key=lambda item: item[0])
        return events


def pattern_to_midi(
    pattern: PatternDocument,
    note_map: Mapping[str, int],
    bpm: Optional[float] = None,
    name: str = "",
    ppqn: Optional[int] = None,
) -> MidiDocument:
    """
    Convert a PatternDocument to a MidiDocument.

    Args:
        pattern: Parsed pattern
        note_map: Pad to MIDI note, e.g. hardware_note_map(pattern.revision)
        bpm: Optional tempo
        name: Pattern name for the track name
        ppqn: Pattern PPQN, used as the MIDI time division; defaults to
            the revision's PPQN

    Returns:
        MidiDocument; pads missing from the note map are listed in issues

    Raises:
        ValidationError: If note_map is None or holds an invalid note
    """
    return PatternToMidiConverter(note_map, ppqn, bpm, name).convert(pattern)


def convert_pattern_to_midi(
    source_path: Union[str, Path],
    output_path: Union[str, Path],
    note_map: Mapping[str, int],
    revision: HardwareRevision = HardwareRevision.CURRENT,
    bpm: Optional[float] = None,
    ppqn: Optional[int] = None,
) -> MidiDocument:
    """
    Convert a pattern file to a MIDI file.

    Example:
        convert_pattern_to_midi("PTN00025.BIN", "PTN00025.mid", {"A1": 36}, bpm=90)
    """
    source_path = Path(source_path)
    pattern = PatternReader.read(source_path, PatternOptions(revision))
    midi = pattern_to_midi(pattern, note_map, bpm, source_path.name, ppqn)
    MidiWriter.write(midi, output_path)
    return midi
