"""
Standard MIDI File reader.

Decodes SMF bytes into a MidiDocument. Parsing is tolerant of damaged
files: a bad track header or an undecodable event stream stops the affected
track, records an issue on the document and keeps every event decoded so
far. Running out of bytes inside an event raises UnderflowError.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from sp404conv.models.midi import (
    ChannelAftertouch,
    ChannelPrefix,
    Controller,
    EndOfTrack,
    KeySignature,
    MetaEvent,
    MetaType,
    MidiDocument,
    MidiEvent,
    MidiPort,
    MidiTrack,
    MLiveTag,
    NoteOff,
    NoteOn,
    PitchBend,
    PolyAftertouch,
    ProgramChange,
    RawMetaEvent,
    SequenceNumber,
    SequencerSpecific,
    SetTempo,
    SmpteOffset,
    SystemExclusive,
    SystemMessage,
    TextMetaEvent,
    TimeSignature,
)
from sp404conv.utils.byte_cursor import ByteCursor
from sp404conv.utils.midi_tables import RESERVED_SYSTEM_MESSAGES, get_system_message_name
from sp404conv.utils.validation import ValidationIssue
from sp404conv.utils.vlq import read_vlq

log = logging.getLogger(__name__)

HEADER_MAGIC = "MThd"
TRACK_MAGIC = "MTrk"
HEADER_LENGTH = 6

# Fixed payload sizes; other lengths are kept as RawMetaEvent
FIXED_META_LENGTHS = {
    MetaType.CHANNEL_PREFIX: 1,
    MetaType.MIDI_PORT: 1,
    MetaType.SET_TEMPO: 3,
    MetaType.SMPTE_OFFSET: 5,
    MetaType.TIME_SIGNATURE: 4,
    MetaType.KEY_SIGNATURE: 2,
}


class MidiFormatError(ValueError):
    """Raised when MIDI data cannot be decoded structurally."""

    def __init__(self, message: str, offset: int = 0):
        self.offset = offset
        super().__init__(message)


class MidiReader:
    """
    Reader for Standard MIDI Files.

    Example:
        midi = MidiReader.read("groove.mid")
        for track in midi.tracks:
            print(track.name, len(track.events))
    """

    def __init__(self, cursor: Optional[ByteCursor] = None):
        self.cursor = cursor

    @classmethod
    def read(cls, filepath: Union[str, Path]) -> MidiDocument:
        """
        Read a MIDI file and return a MidiDocument.

        Args:
            filepath: Path to .mid file

        Returns:
            Parsed MidiDocument
        """
        return cls().parse_file(filepath)

    def parse_file(self, filepath: Union[str, Path]) -> MidiDocument:
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        with open(filepath, "rb") as f:
            data = f.read()

        return self.parse_bytes(data)

    def parse_bytes(self, data: bytes) -> MidiDocument:
        """
        Parse MIDI data from bytes.

        Args:
            data: Raw SMF contents

        Returns:
            Parsed MidiDocument

        Raises:
            MidiFormatError: If the header chunk is invalid
            UnderflowError: If the data ends inside the header or an event
        """
        self.cursor = ByteCursor(data)
        return self.parse()

    def parse(self) -> MidiDocument:
        """Parse the document at the reader's cursor."""
        cursor = self.cursor
        document = self.parse_header(cursor)

        log.debug("parse: reading %d tracks", document.track_count)
        for index in range(document.track_count):
            remaining = cursor.remaining_bytes()
            if remaining == 0:
                log.debug("parse: no more data after %d of %d tracks", index, document.track_count)
                break
            if remaining < 8:
                document.issues.append(
                    ValidationIssue(
                        "error",
                        f"Track {index}",
                        cursor.offset,
                        f"Truncated track header: {remaining} bytes left",
                        "8",
                        str(remaining),
                    )
                )
                break

            header_offset = cursor.offset
            magic = cursor.read_string(4, "latin1")
            if magic != TRACK_MAGIC:
                log.warning("Invalid track header %r at offset %d", magic, header_offset)
                document.issues.append(
                    ValidationIssue(
                        "error",
                        f"Track {index}",
                        header_offset,
                        f'Track {index} has unknown chunk type: "{magic}".',
                        TRACK_MAGIC,
                        magic,
                    )
                )
                break

            document.tracks.append(self.parse_track(cursor, index, document))

        return document

    def parse_header(self, cursor: ByteCursor) -> MidiDocument:
        """
        Decode the MThd chunk.

        Returns:
            MidiDocument with header fields set and no tracks

        Raises:
            MidiFormatError: If the magic or length is wrong
        """
        magic = cursor.read_string(4, "latin1")
        if magic != HEADER_MAGIC:
            raise MidiFormatError(f"Invalid MIDI header: {magic!r}", 0)

        length = cursor.read_u32()
        if length < HEADER_LENGTH:
            raise MidiFormatError(f"MIDI header length must be at least 6, got {length}", 4)

        document = MidiDocument(
            format=cursor.read_u16(),
            track_count=cursor.read_u16(),
        )

        division_high = cursor.read_u8()
        division_low = cursor.read_u8()
        if division_high & 0x80:
            # Negative frames per second (two's complement) and ticks per frame
            document.time_division = None
            document.frames_per_second = 256 - division_high
            document.ticks_per_frame = division_low
        else:
            document.time_division = (division_high << 8) | division_low

        if length > HEADER_LENGTH:
            cursor.advance(length - HEADER_LENGTH)

        log.debug(
            "header: format=%d tracks=%d division=%s",
            document.format,
            document.track_count,
            document.time_division,
        )
        return document

    def parse_track(
        self, cursor: ByteCursor, index: int = 0, document: Optional[MidiDocument] = None
    ) -> MidiTrack:
        """
        Decode one MTrk chunk body (the magic has been read).

        Events are decoded until the declared chunk length is consumed or an
        End of Track event is found. A structural error stops the track and
        is recorded on document.

        Args:
            cursor: Cursor positioned at the chunk length field
            index: Track index, for messages
            document: Document collecting issues

        Returns:
            Parsed MidiTrack
        """
        declared = cursor.read_u32()
        start = cursor.offset
        available = min(declared, cursor.remaining_bytes())
        if available < declared:
            log.warning("Track %d declares %d bytes, only %d present", index, declared, available)
            if document is not None:
                document.issues.append(
                    ValidationIssue(
                        "warning",
                        f"Track {index}",
                        start - 4,
                        f"Track {index} chunkLength={declared} exceeds remaining data",
                        str(declared),
                        str(available),
                    )
                )

        track = MidiTrack(chunk_length=declared)
        body = cursor.slice(start, available)
        last_status: Optional[int] = None

        try:
            while body.remaining_bytes() > 0:
                event, last_status = self.parse_event(body, last_status)
                track.events.append(event)
                if isinstance(event, EndOfTrack):
                    if body.remaining_bytes():
                        log.debug(
                            "Track %d: %d bytes after End of Track", index, body.remaining_bytes()
                        )
                    break
        except MidiFormatError as e:
            log.warning("Track %d: %s", index, e)
            if document is not None:
                document.issues.append(
                    ValidationIssue("error", f"Track {index}", start + e.offset, f"Track {index}: {e}")
                )

        cursor.seek(start + available)
        log.debug("Track %d: %d events", index, len(track.events))
        return track

    def parse_event(self, cursor: ByteCursor, last_status: Optional[int] = None):
        """
        Decode one event.

        Args:
            cursor: Cursor at the event's delta time
            last_status: Running status in effect

        Returns:
            Tuple of (event, running status for the next event)

        Raises:
            MidiFormatError: If a data byte appears with no running status
        """
        delta_time = read_vlq(cursor)
        status = cursor.read_u8()

        if status < 0x80:
            if last_status is None:
                raise MidiFormatError(
                    f"Data byte 0x{status:02X} with no running status", cursor.offset - 1
                )
            status = last_status
            cursor.rewind(1)

        if status < 0xF0:
            return self._parse_channel_event(cursor, status, delta_time), status
        if status == 0xFF:
            return self._parse_meta_event(cursor, delta_time), None
        if status == 0xF0:
            return self._parse_sysex(cursor, delta_time), None
        return self._parse_system_message(cursor, status, delta_time), None

    def _parse_channel_event(self, cursor: ByteCursor, status: int, delta_time: int) -> MidiEvent:
        kind = status & 0xF0
        channel = status & 0x0F

        if kind == 0xC0:
            return ProgramChange(delta_time, channel, cursor.read_u8())
        if kind == 0xD0:
            return ChannelAftertouch(delta_time, channel, cursor.read_u8())

        first = cursor.read_u8()
        second = cursor.read_u8()
        if kind == 0x80:
            return NoteOff(delta_time, channel, first, second)
        if kind == 0x90:
            return NoteOn(delta_time, channel, first, second)
        if kind == 0xA0:
            return PolyAftertouch(delta_time, channel, first, second)
        if kind == 0xB0:
            return Controller(delta_time, channel, first, second)
        return PitchBend(delta_time, channel, (second << 7) + first)

    def _parse_sysex(self, cursor: ByteCursor, delta_time: int) -> SystemExclusive:
        manufacturer_id = cursor.read_u8()
        data = bytearray()
        byte = cursor.read_u8()
        while byte != 0xF7:
            data.append(byte)
            byte = cursor.read_u8()
        return SystemExclusive(delta_time, manufacturer_id, bytes(data))

    def _parse_system_message(self, cursor: ByteCursor, status: int, delta_time: int) -> SystemMessage:
        if status == 0xF2:
            return SystemMessage(delta_time, status, cursor.read(2))
        if status in RESERVED_SYSTEM_MESSAGES:
            log.debug("Reserved system message: %s", get_system_message_name(status))
        length = read_vlq(cursor)
        return SystemMessage(delta_time, status, cursor.read(length))

    def _parse_meta_event(self, cursor: ByteCursor, delta_time: int) -> MetaEvent:
        meta_type = cursor.read_u8()
        length = read_vlq(cursor)
        payload = ByteCursor(cursor.read(length))

        expected = FIXED_META_LENGTHS.get(meta_type)
        if expected is not None and length != expected:
            log.debug("Meta event 0x%02X has length %d, expected %d", meta_type, length, expected)
            return RawMetaEvent(delta_time, length, meta_type, payload.getvalue())

        if meta_type == MetaType.SEQUENCE_NUMBER:
            if length == 2:
                return SequenceNumber(delta_time, length, payload.read_u16())
            if length == 0:
                return SequenceNumber(delta_time, length, None)
            return RawMetaEvent(delta_time, length, meta_type, payload.getvalue())
        if MetaType.TEXT <= meta_type <= MetaType.DEVICE_NAME:
            return TextMetaEvent(delta_time, length, meta_type, payload.read_string(length, "latin1"))
        if meta_type == MetaType.CHANNEL_PREFIX:
            return ChannelPrefix(delta_time, length, payload.read_u8())
        if meta_type == MetaType.MIDI_PORT:
            return MidiPort(delta_time, length, payload.read_u8())
        if meta_type == MetaType.END_OF_TRACK:
            if length:
                log.debug("End of Track has length %d", length)
            return EndOfTrack(delta_time, length)
        if meta_type == MetaType.MLIVE_TAG and length >= 1:
            tag = payload.read_u8()
            return MLiveTag(delta_time, length, tag, payload.read(length - 1))
        if meta_type == MetaType.SET_TEMPO:
            return SetTempo(delta_time, length, payload.read_u24())
        if meta_type == MetaType.SMPTE_OFFSET:
            return SmpteOffset(delta_time, length, *payload.read(5))
        if meta_type == MetaType.TIME_SIGNATURE:
            return TimeSignature(delta_time, length, *payload.read(4))
        if meta_type == MetaType.KEY_SIGNATURE:
            return KeySignature(delta_time, length, payload.read_i8(), payload.read_u8())
        if meta_type == MetaType.SEQUENCER_SPECIFIC:
            return SequencerSpecific(delta_time, length, payload.getvalue())

        log.debug("Unknown meta event 0x%02X, %d bytes", meta_type, length)
        return RawMetaEvent(delta_time, length, meta_type, payload.getvalue())


def read_midi(filepath: Union[str, Path]) -> MidiDocument:
    """Read a MIDI file."""
    return MidiReader.read(filepath)


def parse_midi(data: bytes) -> MidiDocument:
    """Parse MIDI bytes."""
    return MidiReader().parse_bytes(data)
