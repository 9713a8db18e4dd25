"""
Standard MIDI File data models.

Events are dataclasses, one per event kind. Each event knows its status byte
and how to produce its payload; framing (delta time, running status, meta
length prefix) belongs to the writer.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, Dict, List, Optional, Tuple, Union

from sp404conv.utils.midi_tables import (
    MLIVE_TAGS,
    SMPTE_FRAME_RATES,
    get_controller_name,
    get_key_name,
    get_manufacturer_name,
    get_system_message_name,
    midi_to_note,
)
from sp404conv.utils.validation import (
    ValidationError,
    ValidationIssue,
    validate_byte,
    validate_channel,
    validate_midi_value,
    validate_range,
    validate_tempo,
)
from sp404conv.utils.vlq import MAX_SMF_VLQ


class EventType(IntEnum):
    """MIDI status bytes (channel bits cleared)."""

    NOTE_OFF = 0x80
    NOTE_ON = 0x90
    POLY_AFTERTOUCH = 0xA0
    CONTROLLER = 0xB0
    PROGRAM_CHANGE = 0xC0
    CHANNEL_AFTERTOUCH = 0xD0
    PITCH_BEND = 0xE0
    SYSEX = 0xF0
    META = 0xFF


class MetaType(IntEnum):
    """Meta event subtypes."""

    SEQUENCE_NUMBER = 0x00
    TEXT = 0x01
    COPYRIGHT = 0x02
    TRACK_NAME = 0x03
    INSTRUMENT_NAME = 0x04
    LYRICS = 0x05
    MARKER = 0x06
    CUE_POINT = 0x07
    PROGRAM_NAME = 0x08
    DEVICE_NAME = 0x09
    CHANNEL_PREFIX = 0x20
    MIDI_PORT = 0x21
    END_OF_TRACK = 0x2F
    MLIVE_TAG = 0x4B
    SET_TEMPO = 0x51
    SMPTE_OFFSET = 0x54
    TIME_SIGNATURE = 0x58
    KEY_SIGNATURE = 0x59
    SEQUENCER_SPECIFIC = 0x7F


TEXT_LABELS = {
    MetaType.TEXT: "Text Event",
    MetaType.COPYRIGHT: "Copyright Notice",
    MetaType.TRACK_NAME: "Sequence / Track Name",
    MetaType.INSTRUMENT_NAME: "Instrument Name",
    MetaType.LYRICS: "Lyrics",
    MetaType.MARKER: "Marker",
    MetaType.CUE_POINT: "Cue Point",
    MetaType.PROGRAM_NAME: "Program Name",
    MetaType.DEVICE_NAME: "Device (Port) Name",
}

# Fixed payload sizes checked by MidiDocument.validate()
EXPECTED_META_LENGTHS: Dict[int, Tuple[int, ...]] = {
    MetaType.SEQUENCE_NUMBER: (0, 2),
    MetaType.END_OF_TRACK: (0,),
    MetaType.SET_TEMPO: (3,),
    MetaType.SMPTE_OFFSET: (5,),
    MetaType.TIME_SIGNATURE: (4,),
    MetaType.KEY_SIGNATURE: (2,),
}

META_LENGTH_NAMES = {
    MetaType.SEQUENCE_NUMBER: "Sequence Number",
    MetaType.END_OF_TRACK: "End-of-Track",
    MetaType.SET_TEMPO: "Tempo event",
    MetaType.SMPTE_OFFSET: "SMPTE Offset",
    MetaType.TIME_SIGNATURE: "Time Signature",
    MetaType.KEY_SIGNATURE: "Key Signature",
}


# ----------------------------------------------------------------------
# Events
# ----------------------------------------------------------------------


@dataclass
class MidiEvent:
    """
    Base class for all track events.

    Attributes:
        delta_time: Ticks since the previous event in the track
    """

    delta_time: int = 0

    label: ClassVar[str] = "Event"

    @property
    def status(self) -> int:
        raise NotImplementedError

    def payload(self) -> bytes:
        """Event bytes following the status byte."""
        raise NotImplementedError

    def check(self) -> None:
        """Raise ValidationError if the event cannot be encoded."""
        validate_range(self.delta_time, 0, MAX_SMF_VLQ, "delta_time")


@dataclass
class ChannelEvent(MidiEvent):
    """A channel voice message; channel is 0-15."""

    channel: int = 0

    type_byte: ClassVar[int] = 0

    @property
    def status(self) -> int:
        return self.type_byte | (self.channel & 0x0F)

    def check(self) -> None:
        super().check()
        validate_channel(self.channel)


@dataclass
class NoteOff(ChannelEvent):
    note: int = 0
    velocity: int = 0

    label: ClassVar[str] = "Note Off"
    type_byte: ClassVar[int] = EventType.NOTE_OFF

    def payload(self) -> bytes:
        return bytes([self.note, self.velocity])

    def check(self) -> None:
        super().check()
        validate_midi_value(self.note, "note")
        validate_midi_value(self.velocity, "velocity")


@dataclass
class NoteOn(ChannelEvent):
    note: int = 0
    velocity: int = 0

    label: ClassVar[str] = "Note On"
    type_byte: ClassVar[int] = EventType.NOTE_ON

    @property
    def is_note_off(self) -> bool:
        """A Note On with velocity 0 acts as a Note Off."""
        return self.velocity == 0

    def payload(self) -> bytes:
        return bytes([self.note, self.velocity])

    def check(self) -> None:
        super().check()
        validate_midi_value(self.note, "note")
        validate_midi_value(self.velocity, "velocity")


@dataclass
class PolyAftertouch(ChannelEvent):
    note: int = 0
    pressure: int = 0

    label: ClassVar[str] = "Note Aftertouch"
    type_byte: ClassVar[int] = EventType.POLY_AFTERTOUCH

    def payload(self) -> bytes:
        return bytes([self.note, self.pressure])

    def check(self) -> None:
        super().check()
        validate_midi_value(self.note, "note")
        validate_midi_value(self.pressure, "pressure")


@dataclass
class Controller(ChannelEvent):
    controller: int = 0
    value: int = 0

    label: ClassVar[str] = "Controller"
    type_byte: ClassVar[int] = EventType.CONTROLLER

    @property
    def controller_name(self) -> str:
        return get_controller_name(self.controller)

    def payload(self) -> bytes:
        return bytes([self.controller, self.value])

    def check(self) -> None:
        super().check()
        validate_midi_value(self.controller, "controller")
        validate_midi_value(self.value, "controller value")


@dataclass
class ProgramChange(ChannelEvent):
    program: int = 0

    label: ClassVar[str] = "Program Change"
    type_byte: ClassVar[int] = EventType.PROGRAM_CHANGE

    def payload(self) -> bytes:
        return bytes([self.program])

    def check(self) -> None:
        super().check()
        validate_midi_value(self.program, "program")


@dataclass
class ChannelAftertouch(ChannelEvent):
    pressure: int = 0

    label: ClassVar[str] = "Channel Aftertouch"
    type_byte: ClassVar[int] = EventType.CHANNEL_AFTERTOUCH

    def payload(self) -> bytes:
        return bytes([self.pressure])

    def check(self) -> None:
        super().check()
        validate_midi_value(self.pressure, "pressure")


@dataclass
class PitchBend(ChannelEvent):
    """Pitch bend; value is 0-16383 with 8192 at center."""

    value: int = 8192

    label: ClassVar[str] = "Pitch Bend Event"
    type_byte: ClassVar[int] = EventType.PITCH_BEND

    @property
    def lsb(self) -> int:
        return self.value & 0x7F

    @property
    def msb(self) -> int:
        return (self.value >> 7) & 0x7F

    def payload(self) -> bytes:
        return bytes([self.lsb, self.msb])

    def check(self) -> None:
        super().check()
        validate_range(self.value, 0, 0x3FFF, "pitch bend")


@dataclass
class SystemExclusive(MidiEvent):
    """SysEx block: manufacturer ID, data bytes, terminating 0xF7."""

    manufacturer_id: int = 0
    data: bytes = b""

    label: ClassVar[str] = "System Exclusive"

    @property
    def status(self) -> int:
        return EventType.SYSEX

    @property
    def manufacturer_name(self) -> str:
        return get_manufacturer_name(self.manufacturer_id)

    def payload(self) -> bytes:
        return bytes([self.manufacturer_id]) + bytes(self.data) + b"\xf7"

    def check(self) -> None:
        super().check()
        validate_midi_value(self.manufacturer_id, "manufacturer_id")
        if 0xF7 in self.data:
            raise ValidationError("SysEx data must not contain the 0xF7 terminator")


@dataclass
class SystemMessage(MidiEvent):
    """
    System common or real-time message (0xF1-0xFE).

    Song Position Pointer (0xF2) carries exactly two data bytes (LSB, MSB);
    every other status is stored with a length prefix.
    """

    system_status: int = 0xF8
    data: bytes = b""

    @property
    def status(self) -> int:
        return self.system_status

    @property
    def name(self) -> str:
        return get_system_message_name(self.system_status)

    @property
    def label(self) -> str:
        return self.name

    def payload(self) -> bytes:
        return bytes(self.data)

    def check(self) -> None:
        super().check()
        validate_range(self.system_status, 0xF1, 0xFE, "system status")
        if self.system_status == 0xF2 and len(self.data) != 2:
            raise ValidationError(
                f"Song Position Pointer needs 2 data bytes, got {len(self.data)}"
            )


# ----------------------------------------------------------------------
# Meta events
# ----------------------------------------------------------------------


@dataclass
class MetaEvent(MidiEvent):
    """
    Base class for 0xFF meta events.

    Attributes:
        declared_length: Payload length as read from the file, None for
            events built in memory
    """

    declared_length: Optional[int] = None

    meta_code: ClassVar[int] = 0

    @property
    def status(self) -> int:
        return EventType.META

    @property
    def meta_type(self) -> int:
        return self.meta_code

    @property
    def length(self) -> int:
        """Declared payload length, or the encoded one for new events."""
        if self.declared_length is not None:
            return self.declared_length
        return len(self.payload())

    def data(self) -> bytes:
        raise NotImplementedError

    def payload(self) -> bytes:
        return self.data()


@dataclass
class SequenceNumber(MetaEvent):
    """Sequence number; None is the zero-length form (next track index)."""

    number: Optional[int] = None

    label: ClassVar[str] = "Sequence Number"
    meta_code: ClassVar[int] = MetaType.SEQUENCE_NUMBER

    def data(self) -> bytes:
        if self.number is None:
            return b""
        return self.number.to_bytes(2, "big")

    def check(self) -> None:
        super().check()
        if self.number is not None:
            validate_range(self.number, 0, 0xFFFF, "sequence number")


@dataclass
class TextMetaEvent(MetaEvent):
    """Text meta events 0x01-0x09, stored as latin-1."""

    text_type: int = MetaType.TEXT
    text: str = ""

    @property
    def meta_type(self) -> int:
        return self.text_type

    @property
    def label(self) -> str:
        return TEXT_LABELS.get(self.text_type, f"Meta Event 0x{self.text_type:02X}")

    def data(self) -> bytes:
        return self.text.encode("latin-1", errors="replace")

    def check(self) -> None:
        super().check()
        validate_range(self.text_type, 0x01, 0x09, "text meta type")


@dataclass
class ChannelPrefix(MetaEvent):
    channel: int = 0

    label: ClassVar[str] = "Channel Prefix"
    meta_code: ClassVar[int] = MetaType.CHANNEL_PREFIX

    def data(self) -> bytes:
        return bytes([self.channel])

    def check(self) -> None:
        super().check()
        validate_channel(self.channel)


@dataclass
class MidiPort(MetaEvent):
    port: int = 0

    label: ClassVar[str] = "MIDI Port"
    meta_code: ClassVar[int] = MetaType.MIDI_PORT

    def data(self) -> bytes:
        return bytes([self.port])

    def check(self) -> None:
        super().check()
        validate_midi_value(self.port, "port")


@dataclass
class EndOfTrack(MetaEvent):
    label: ClassVar[str] = "End of Track"
    meta_code: ClassVar[int] = MetaType.END_OF_TRACK

    def data(self) -> bytes:
        return b""


@dataclass
class MLiveTag(MetaEvent):
    """M-Live tag: a tag byte followed by the tag value."""

    tag: int = 0
    value: bytes = b""

    label: ClassVar[str] = "M-Live Tag"
    meta_code: ClassVar[int] = MetaType.MLIVE_TAG

    @property
    def tag_name(self) -> str:
        return MLIVE_TAGS.get(self.tag, f"Unknown Tag: {self.tag}")

    def data(self) -> bytes:
        return bytes([self.tag]) + bytes(self.value)

    def check(self) -> None:
        super().check()
        validate_byte(self.tag, "tag")


@dataclass
class SetTempo(MetaEvent):
    """Tempo in microseconds per quarter note (24-bit)."""

    tempo: int = 500000

    label: ClassVar[str] = "Set Tempo"
    meta_code: ClassVar[int] = MetaType.SET_TEMPO

    @property
    def bpm(self) -> int:
        return round(60_000_000 / self.tempo) if self.tempo else 0

    @classmethod
    def from_bpm(cls, bpm: float, delta_time: int = 0) -> "SetTempo":
        validate_tempo(bpm)
        return cls(delta_time=delta_time, tempo=round(60_000_000 / bpm))

    def data(self) -> bytes:
        return self.tempo.to_bytes(3, "big")

    def check(self) -> None:
        super().check()
        validate_range(self.tempo, 1, 0xFFFFFF, "tempo")


@dataclass
class SmpteOffset(MetaEvent):
    """SMPTE start offset; the hour byte also carries the frame rate."""

    hour_byte: int = 0
    minute: int = 0
    second: int = 0
    frame: int = 0
    sub_frame: int = 0

    label: ClassVar[str] = "SMPTE Offset"
    meta_code: ClassVar[int] = MetaType.SMPTE_OFFSET

    @property
    def hour(self) -> int:
        return self.hour_byte & 0x1F

    @property
    def frame_rate(self) -> float:
        return SMPTE_FRAME_RATES[(self.hour_byte >> 5) & 0x03]

    def data(self) -> bytes:
        return bytes([self.hour_byte, self.minute, self.second, self.frame, self.sub_frame])

    def check(self) -> None:
        super().check()
        for name in ("hour_byte", "minute", "second", "frame", "sub_frame"):
            validate_midi_value(getattr(self, name), name)


@dataclass
class TimeSignature(MetaEvent):
    """
    Time signature.

    Attributes:
        numerator: Beats per bar
        denominator: Beat unit as a power of two (2 means quarter notes)
        metronome: MIDI clocks per metronome click
        thirty_seconds: 32nd notes per MIDI quarter note
    """

    numerator: int = 4
    denominator: int = 2
    metronome: int = 24
    thirty_seconds: int = 8

    label: ClassVar[str] = "Time Signature"
    meta_code: ClassVar[int] = MetaType.TIME_SIGNATURE

    @property
    def beat_unit(self) -> int:
        return 2 ** self.denominator

    def data(self) -> bytes:
        return bytes([self.numerator, self.denominator, self.metronome, self.thirty_seconds])

    def check(self) -> None:
        super().check()
        for name in ("numerator", "denominator", "metronome", "thirty_seconds"):
            validate_byte(getattr(self, name), name)


@dataclass
class KeySignature(MetaEvent):
    """Key signature: sharps (positive) or flats (negative), and mode."""

    key: int = 0
    scale: int = 0

    label: ClassVar[str] = "Key Signature"
    meta_code: ClassVar[int] = MetaType.KEY_SIGNATURE

    @property
    def key_name(self) -> str:
        return get_key_name(self.key)

    @property
    def mode(self) -> str:
        return "Major" if self.scale == 0 else "Minor"

    def data(self) -> bytes:
        return bytes([self.key & 0xFF, self.scale])

    def check(self) -> None:
        super().check()
        validate_range(self.key, -7, 7, "key")
        validate_range(self.scale, 0, 1, "scale")


@dataclass
class SequencerSpecific(MetaEvent):
    payload_data: bytes = b""

    label: ClassVar[str] = "Sequencer Specific"
    meta_code: ClassVar[int] = MetaType.SEQUENCER_SPECIFIC

    def data(self) -> bytes:
        return bytes(self.payload_data)


@dataclass
class RawMetaEvent(MetaEvent):
    """
    Meta event kept as raw bytes.

    Used for unknown subtypes and for known subtypes whose declared length
    does not match their fixed layout.
    """

    raw_type: int = 0
    raw_data: bytes = b""

    @property
    def meta_type(self) -> int:
        return self.raw_type

    @property
    def label(self) -> str:
        try:
            return f"Meta Event {MetaType(self.raw_type).name}"
        except ValueError:
            return f"Meta Event 0x{self.raw_type:02X}"

    def data(self) -> bytes:
        return bytes(self.raw_data)

    def check(self) -> None:
        super().check()
        validate_byte(self.raw_type, "meta type")


# ----------------------------------------------------------------------
# Tracks and documents
# ----------------------------------------------------------------------


@dataclass
class MidiTrack:
    """
    An MTrk chunk.

    Attributes:
        events: Events in stream order
        chunk_length: Declared byte length of the event data, as read
    """

    events: List[MidiEvent] = field(default_factory=list)
    chunk_length: int = 0

    def add_event(self, event: Union[MidiEvent, List[MidiEvent]]) -> None:
        """Append one event or a list of events."""
        if isinstance(event, list):
            self.events.extend(event)
        else:
            self.events.append(event)

    @property
    def name(self) -> Optional[str]:
        for event in self.events:
            if isinstance(event, TextMetaEvent) and event.text_type == MetaType.TRACK_NAME:
                return event.text
        return None

    @property
    def total_ticks(self) -> int:
        return sum(event.delta_time for event in self.events)

    @property
    def has_end_of_track(self) -> bool:
        return any(isinstance(event, EndOfTrack) for event in self.events)

    def absolute_events(self) -> List[Tuple[int, MidiEvent]]:
        """Pair each event with its absolute time in ticks."""
        result = []
        now = 0
        for event in self.events:
            now += event.delta_time
            result.append((now, event))
        return result


@dataclass
class MidiDocument:
    """
    A Standard MIDI File.

    Attributes:
        format: SMF format (0, 1 or 2)
        track_count: Track count from the header
        time_division: Ticks per quarter note (None for SMPTE timing)
        frames_per_second: SMPTE frames per second, when SMPTE timing is used
        ticks_per_frame: SMPTE ticks per frame
        tracks: Parsed or built tracks
        issues: Structural problems met while parsing
    """

    format: int = 1
    track_count: int = 0
    time_division: Optional[int] = 480
    frames_per_second: Optional[int] = None
    ticks_per_frame: Optional[int] = None
    tracks: List[MidiTrack] = field(default_factory=list)
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def is_smpte(self) -> bool:
        return self.frames_per_second is not None

    def add_track(self) -> MidiTrack:
        """Append a new empty track and return it."""
        track = MidiTrack()
        self.tracks.append(track)
        self.track_count = len(self.tracks)
        return track

    def add_event(self, track: MidiTrack, event: Union[MidiEvent, List[MidiEvent]]) -> None:
        track.add_event(event)

    @property
    def tempo_bpm(self) -> Optional[int]:
        """BPM of the first Set Tempo event, if any."""
        for track in self.tracks:
            for event in track.events:
                if isinstance(event, SetTempo):
                    return event.bpm
        return None

    def used_notes(self) -> List[Tuple[int, str]]:
        """
        Distinct notes played by Note On events (velocity > 0).

        Returns:
            Sorted list of (note number, note name)
        """
        notes = set()
        for track in self.tracks:
            for event in track.events:
                if isinstance(event, NoteOn) and event.velocity > 0:
                    notes.add(event.note)
        return [(note, midi_to_note(note)) for note in sorted(notes)]

    def validate(self) -> List[ValidationIssue]:
        """
        Check the document for semantic problems.

        Never raises. Parse issues already recorded on the document are
        included first.

        Returns:
            List of issues
        """
        issues = list(self.issues)

        if not 0 <= self.format <= 2:
            issues.append(
                ValidationIssue(
                    "error", "Header", 0, f"Unsupported MIDI format: {self.format}.", "0-2", str(self.format)
                )
            )
        if self.track_count != len(self.tracks):
            issues.append(
                ValidationIssue(
                    "warning",
                    "Header",
                    0,
                    f"Header trackCount={self.track_count}, but parsed chunk count={len(self.tracks)}.",
                    str(self.track_count),
                    str(len(self.tracks)),
                )
            )

        for track_index, track in enumerate(self.tracks):
            issues.extend(self._validate_track(track_index, track))

        return issues

    def _validate_track(self, track_index: int, track: MidiTrack) -> List[ValidationIssue]:
        issues = []
        area = f"Track {track_index}"
        active: Dict[int, int] = {}

        def note_off(event_index: int, note: int) -> None:
            if active.get(note, 0) <= 0:
                issues.append(
                    ValidationIssue(
                        "warning",
                        area,
                        event_index,
                        f"Track {track_index} event {event_index} tries to Note Off note {note} which was not active.",
                    )
                )
            else:
                active[note] -= 1

        if track.chunk_length > 0 and not track.events:
            issues.append(
                ValidationIssue(
                    "warning", area, 0, f"Track {track_index} chunkLength={track.chunk_length} but has 0 events."
                )
            )

        for event_index, event in enumerate(track.events):
            if event.delta_time < 0:
                issues.append(
                    ValidationIssue(
                        "error",
                        area,
                        event_index,
                        f"Track {track_index} event {event_index} has negative deltaTime {event.delta_time}.",
                    )
                )

            if isinstance(event, NoteOn):
                if event.velocity > 0:
                    active[event.note] = active.get(event.note, 0) + 1
                else:
                    note_off(event_index, event.note)
            elif isinstance(event, NoteOff):
                note_off(event_index, event.note)
            elif isinstance(event, MetaEvent):
                expected = EXPECTED_META_LENGTHS.get(event.meta_type)
                if expected is not None and event.length not in expected:
                    name = META_LENGTH_NAMES[event.meta_type]
                    wanted = " or ".join(str(n) for n in sorted(expected, reverse=True))
                    issues.append(
                        ValidationIssue(
                            "warning",
                            area,
                            event_index,
                            f"Track {track_index} event {event_index} {name} has "
                            f"metaEventLength={event.length}, expected={wanted}",
                            wanted,
                            str(event.length),
                        )
                    )

        if not track.has_end_of_track:
            issues.append(
                ValidationIssue(
                    "warning", area, len(track.events), f"Track {track_index} missing End-of-Track (0xFF 2F) event."
                )
            )

        for note, count in active.items():
            if count > 0:
                issues.append(
                    ValidationIssue(
                        "warning",
                        area,
                        len(track.events),
                        f"Track {track_index} has {count} unmatched Note On for note {note}.",
                        "0",
                        str(count),
                    )
                )

        return issues


# ----------------------------------------------------------------------
# Event builders
# ----------------------------------------------------------------------


def generate_tempo_event(bpm: float) -> SetTempo:
    """Build a Set Tempo event at delta 0 for a BPM value."""
    return SetTempo.from_bpm(bpm)


def generate_meta_string_event(meta_type: int, text: str) -> TextMetaEvent:
    """Build a text meta event (0x01-0x09) at delta 0."""
    validate_range(meta_type, 0x01, 0x09, "text meta type")
    return TextMetaEvent(text_type=meta_type, text=text)


def generate_end_of_track_event() -> EndOfTrack:
    return EndOfTrack()
