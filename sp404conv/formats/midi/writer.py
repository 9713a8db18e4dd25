"""
Standard MIDI File writer.

Encodes a MidiDocument to SMF bytes. Every event is checked before the first
byte is produced, so an invalid document never yields a partial file.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from sp404conv.models.midi import (
    ChannelEvent,
    MetaEvent,
    MidiDocument,
    MidiEvent,
    MidiTrack,
    SystemExclusive,
    SystemMessage,
)
from sp404conv.utils.byte_cursor import ByteCursor
from sp404conv.utils.validation import ValidationError, validate_range
from sp404conv.utils.vlq import write_vlq

log = logging.getLogger(__name__)

SMPTE_RATES = (24, 25, 29, 30)


class MidiWriter:
    """
    Writer for Standard MIDI Files.

    Example:
        MidiWriter.write(midi, "groove.mid")
        data = MidiWriter(running_status=True).to_bytes(midi)
    """

    def __init__(self, running_status: bool = False):
        """
        Args:
            running_status: Omit repeated channel status bytes
        """
        self.running_status = running_status

    @classmethod
    def write(
        cls, document: MidiDocument, filepath: Union[str, Path], running_status: bool = False
    ) -> int:
        """
        Write a MidiDocument to a file.

        Returns:
            Number of bytes written
        """
        data = cls(running_status).to_bytes(document)
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "wb") as f:
            f.write(data)
        return len(data)

    def to_bytes(self, document: MidiDocument) -> bytes:
        """
        Encode a MidiDocument.

        Raises:
            ValidationError: If the document or any event cannot be encoded
        """
        self.check(document)

        cursor = ByteCursor.writer()
        self.write_header(cursor, document)
        for track in document.tracks:
            self.write_track(cursor, track)

        return cursor.commit().getvalue()

    def check(self, document: MidiDocument) -> None:
        """Validate every encodable field of the document."""
        validate_range(document.format, 0, 2, "MIDI format")
        validate_range(len(document.tracks), 0, 0xFFFF, "track count")
        if document.is_smpte:
            if document.frames_per_second not in SMPTE_RATES:
                raise ValidationError(
                    f"SMPTE frames per second must be one of {SMPTE_RATES}, "
                    f"got {document.frames_per_second}"
                )
            validate_range(document.ticks_per_frame, 1, 0xFF, "ticks per frame")
        else:
            validate_range(document.time_division, 1, 0x7FFF, "time division")

        for track_index, track in enumerate(document.tracks):
            for event_index, event in enumerate(track.events):
                try:
                    event.check()
                except ValidationError as e:
                    raise ValidationError(f"Track {track_index} event {event_index}: {e}") from e

    def write_header(self, cursor: ByteCursor, document: MidiDocument) -> None:
        cursor.write_string("MThd")
        cursor.write_u32(6)
        cursor.write_u16(document.format)
        cursor.write_u16(len(document.tracks))
        if document.is_smpte:
            cursor.write_u8(256 - document.frames_per_second)
            cursor.write_u8(document.ticks_per_frame)
        else:
            cursor.write_u16(document.time_division)

    def write_track(self, cursor: ByteCursor, track: MidiTrack) -> int:
        """
        Write an MTrk chunk, patching its length after the events.

        Returns:
            Chunk length in bytes
        """
        cursor.write_string("MTrk")
        length_position = cursor.offset
        cursor.write_u32(0)
        start = cursor.offset

        last_status: Optional[int] = None
        for event in track.events:
            last_status = self.write_event(cursor, event, last_status)

        length = cursor.offset - start
        cursor.write_u32(length, offset=length_position, advance=False)
        log.debug("write_track: %d events, %d bytes", len(track.events), length)
        return length

    def write_event(
        self, cursor: ByteCursor, event: MidiEvent, last_status: Optional[int] = None
    ) -> Optional[int]:
        """
        Write one event.

        Returns:
            Running status after the event
        """
        write_vlq(cursor, event.delta_time)
        status = event.status

        if isinstance(event, ChannelEvent):
            if not (self.running_status and status == last_status):
                cursor.write_u8(status)
            cursor.write_bytes(event.payload())
            return status

        cursor.write_u8(status)
        payload = event.payload()
        if isinstance(event, MetaEvent):
            cursor.write_u8(event.meta_type)
            write_vlq(cursor, len(payload))
        elif isinstance(event, SystemMessage) and status != 0xF2:
            write_vlq(cursor, len(payload))
        elif not isinstance(event, (SystemExclusive, SystemMessage)):
            raise ValidationError(f"Unsupported event type: {type(event).__name__}")
        cursor.write_bytes(payload)
        return None


def write_midi(document: MidiDocument, filepath: Union[str, Path]) -> int:
    """Write a MIDI file."""
    return MidiWriter.write(document, filepath)
