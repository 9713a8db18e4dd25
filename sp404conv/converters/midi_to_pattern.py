"""
MIDI to SP-404 pattern converter.

Note On events from every track are merged into one time-ordered list and
written as pattern records. The record ticks field is a single byte, so any
delay longer than 255 ticks is carried by rest records (note 128) placed
before the note. The pattern is then padded with rests to a whole number of
bars (at most 64) and closed with the footer for the hardware revision.
"""

import logging
import math
from collections import defaultdict, deque
from dataclasses import dataclass
from pathlib import Path
from typing import Deque, Dict, List, Mapping, Tuple, Union

from sp404conv.formats.midi.reader import MidiReader
from sp404conv.formats.pattern.writer import PatternWriter, build_footer
from sp404conv.models.midi import MidiDocument, NoteOff, NoteOn
from sp404conv.models.pattern import MAX_BARS, PatternDocument, PatternNote
from sp404conv.utils.pad_maps import HardwareRevision, pad_map_for
from sp404conv.utils.validation import ValidationError, validate_range

log = logging.getLogger(__name__)

MAX_GAP = 255
MAX_LENGTH = 0xFFFF
RESERVED_DEFAULT = 64


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return math.floor(value + 0.5)


@dataclass
class TimedNote:
    """A Note On with its absolute time and sustain, in MIDI ticks."""

    time: int
    note: int
    velocity: int
    length: int = 0


def collect_notes(midi: MidiDocument) -> List[TimedNote]:
    """
    Gather Note On events (velocity > 0) from all tracks.

    The sustain of each note is the time to the next Note Off (or Note On
    with velocity 0) for the same channel and note in the same track; notes
    that are never released keep a length of 0.

    Returns:
        Notes sorted by absolute time
    """
    notes: List[TimedNote] = []
    for track in midi.tracks:
        pending: Dict[Tuple[int, int], Deque[TimedNote]] = defaultdict(deque)
        for absolute, event in track.absolute_events():
            if isinstance(event, NoteOn) and event.velocity > 0:
                timed = TimedNote(absolute, event.note, event.velocity)
                notes.append(timed)
                pending[(event.channel, event.note)].append(timed)
            elif isinstance(event, (NoteOn, NoteOff)):
                queue = pending.get((event.channel, event.note))
                if queue:
                    started = queue.popleft()
                    started.length = absolute - started.time

    notes.sort(key=lambda timed: timed.time)
    return notes


class MidiToPatternConverter:
    """
    Converter from a MidiDocument to a PatternDocument.

    Attributes:
        note_map: MIDI note to pad label ("A1")
        pattern_ppqn: Pulses per quarter note of the pattern
        revision: Hardware revision whose pad table and footer are used
    """

    def __init__(
        self,
        note_map: Mapping[int, str],
        pattern_ppqn: int,
        revision: HardwareRevision = HardwareRevision.CURRENT,
    ):
        if note_map is None:
            raise ValidationError("A note map (MIDI note to pad label) is required")
        if not pattern_ppqn:
            raise ValidationError(
                "A pattern PPQN is required: 96 for legacy hardware, 480 for MKII"
            )
        validate_range(pattern_ppqn, 1, 0x7FFF, "pattern_ppqn")

        self.note_map = {int(note): pad for note, pad in note_map.items()}
        self.pattern_ppqn = pattern_ppqn
        self.revision = revision
        self.pad_table = pad_map_for(revision)

    @property
    def ticks_per_bar(self) -> int:
        return self.pattern_ppqn * 4

    def convert(self, midi: MidiDocument) -> PatternDocument:
        """
        Convert a MIDI document.

        Raises:
            ValidationError: If the MIDI file uses SMPTE timing
        """
        if midi is None:
            raise ValidationError("A MIDI document is required")
        if midi.is_smpte or not midi.time_division:
            raise ValidationError("MIDI files with SMPTE time division cannot be converted")

        ratio = self.pattern_ppqn / midi.time_division
        log.debug("convert: midi ppqn=%d pattern ppqn=%d ratio=%s", midi.time_division, self.pattern_ppqn, ratio)

        records: List[PatternNote] = []
        current_time = 0
        last_time = 0

        for timed in collect_notes(midi):
            pad = self.note_map.get(timed.note)
            mapping = self.pad_table.get(pad) if pad is not None else None
            if mapping is None:
                log.debug("Skipping unmapped note %d (pad %s)", timed.note, pad)
                continue

            ticks = round_half_up((timed.time - last_time) * ratio)
            if ticks > MAX_GAP:
                records.extend(self.rests(ticks))
                current_time += ticks
                ticks = 0
            else:
                current_time += ticks

            length = round_half_up(timed.length * ratio)
            if length > MAX_LENGTH:
                log.warning("Note %d at %d: length %d clamped to %d", timed.note, timed.time, length, MAX_LENGTH)
                length = MAX_LENGTH

            record = PatternNote(
                ticks=ticks,
                midi_note=mapping.midi_note,
                bank_switch=mapping.bank_switch,
                pitch_mode=0,
                velocity=timed.velocity,
                reserved=RESERVED_DEFAULT,
                length=length,
            )
            records.append(record)
            last_time = timed.time

        padding, current_time = self.round_to_bar(current_time)
        records.extend(padding)

        bars = min(current_time // self.ticks_per_bar, MAX_BARS)
        pads_per_bank = self.revision.pads_per_bank
        for record in records:
            record.resolve_pad(self.revision, pads_per_bank)

        log.debug("convert: %d records, %d bars", len(records), bars)
        return PatternDocument(
            notes=records,
            bars=bars,
            revision=self.revision,
            pads_per_bank=pads_per_bank,
            footer=build_footer(bars, self.revision),
        )

    @staticmethod
    def rests(gap: int) -> List[PatternNote]:
        """Rest records carrying gap ticks, at most 255 each."""
        rests = []
        while gap > 0:
            step = min(gap, MAX_GAP)
            rests.append(PatternNote.rest(step))
            gap -= step
        return rests

    def round_to_bar(self, current_time: int) -> Tuple[List[PatternNote], int]:
        """
        Pad the pattern to a whole bar.

        An empty pattern, or one whose notes all sit at tick 0, gets one bar
        of rests. Otherwise the time is rounded up to the next bar unless that
        passes 64 bars, in which case the bar count is capped.

        Returns:
            Tuple of (rest records, total ticks)
        """
        ticks_per_bar = self.ticks_per_bar
        max_ticks = MAX_BARS * ticks_per_bar

        if current_time == 0:
            return self.rests(ticks_per_bar), ticks_per_bar

        remainder = current_time % ticks_per_bar
        if remainder == 0:
            return [], current_time

        to_next_bar = ticks_per_bar - remainder
        if current_time + to_next_bar <= max_ticks:
            return self.rests(to_next_bar), current_time + to_next_bar

        log.warning("Pattern longer than %d bars; bar count capped", MAX_BARS)
        return [], max_ticks


def midi_to_pattern(
    midi: MidiDocument,
    note_map: Mapping[int, str],
    pattern_ppqn: int,
    revision: HardwareRevision = HardwareRevision.CURRENT,
) -> PatternDocument:
    """
    Convert a MidiDocument to a PatternDocument.

    Args:
        midi: Parsed MIDI file
        note_map: MIDI note to pad label
        pattern_ppqn: Pattern resolution (480 on MKII, 96 on legacy hardware)
        revision: Hardware revision

    Returns:
        PatternDocument

    Raises:
        ValidationError: If the note map or PPQN is missing, or the MIDI
            file uses SMPTE timing
    """
    return MidiToPatternConverter(note_map, pattern_ppqn, revision).convert(midi)


def convert_midi_to_pattern(
    source_path: Union[str, Path],
    output_path: Union[str, Path],
    note_map: Mapping[int, str],
    pattern_ppqn: int,
    revision: HardwareRevision = HardwareRevision.CURRENT,
) -> PatternDocument:
    """
    Convert a MIDI file to a pattern file.

    Example:
        convert_midi_to_pattern("beat.mid", "PTN00001.BIN", {36: "A1", 38: "A2"}, 480)
    """
    midi = MidiReader.read(source_path)
    pattern = midi_to_pattern(midi, note_map, pattern_ppqn, revision)
    PatternWriter.write(pattern, output_path)
    return pattern
