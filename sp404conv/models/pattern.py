"""
SP-404 pattern data models.
"""

from dataclasses import dataclass, field
from typing import List

from sp404conv.utils.pad_maps import (
    REST_NOTE,
    HardwareRevision,
    pad_label,
    sample_number,
)
from sp404conv.utils.validation import ValidationIssue

RECORD_SIZE = 8
FOOTER_SIZE = 16

FOOTER_MARKER = 140
MAX_BARS = 64

PITCH_MODE_MIN = 129
PITCH_MODE_MAX = 153


@dataclass
class PatternOptions:
    """
    How to interpret a pattern file.

    Attributes:
        revision: Hardware revision the pattern was recorded on
        pads_per_bank: Pads per bank (16 on MKII, 12 on legacy units)
    """

    revision: HardwareRevision = HardwareRevision.CURRENT
    pads_per_bank: int = 0

    def __post_init__(self):
        if not self.pads_per_bank:
            self.pads_per_bank = self.revision.pads_per_bank

    @classmethod
    def legacy(cls) -> "PatternOptions":
        return cls(HardwareRevision.LEGACY)


@dataclass
class PatternNote:
    """
    One 8-byte pattern record.

    Attributes:
        ticks: Delay before this note, in pattern ticks (0-255)
        midi_note: Pad note (47-126), or 128 for a rest record
        bank_switch: Bank group byte
        pitch_mode: 0 for pad playback; 129-153 for step sequencer pitch
        velocity: Velocity (0-127)
        reserved: Unmapped byte, usually 64 (0 on rests)
        length: Note length in ticks (16-bit little-endian on disk)
        sample_number: 1-based sample number derived from note and bank
        pad_label: Pad such as "B1"
    """

    ticks: int = 0
    midi_note: int = REST_NOTE
    bank_switch: int = 0
    pitch_mode: int = 0
    velocity: int = 0
    reserved: int = 0
    length: int = 0
    sample_number: int = 0
    pad_label: str = ""

    @property
    def is_rest(self) -> bool:
        return self.midi_note == REST_NOTE

    @property
    def pitch_offset(self) -> int:
        """Step sequencer pitch in semitones (pitch mode 141 is +0)."""
        if self.pitch_mode == 0:
            return 0
        return self.pitch_mode - 141

    @classmethod
    def rest(cls, ticks: int) -> "PatternNote":
        """Build a rest record carrying only time."""
        return cls(ticks=ticks, midi_note=REST_NOTE)

    def resolve_pad(self, revision: HardwareRevision, pads_per_bank: int) -> None:
        """Fill sample_number and pad_label from the note and bank bytes."""
        self.sample_number = sample_number(self.midi_note, self.bank_switch, revision, pads_per_bank)
        self.pad_label = pad_label(self.sample_number, pads_per_bank)


@dataclass
class PatternDocument:
    """
    A parsed SP-404 pattern (PTNxxxxx.BIN).

    Attributes:
        notes: Note and rest records in file order
        bars: Bar count from the footer
        time_signature: Time signature index from footer byte 12
        revision: Hardware revision
        pads_per_bank: Pads per bank used for pad labels
        footer: Raw 16-byte footer
        issues: Non-fatal diagnostics found while parsing
    """

    notes: List[PatternNote] = field(default_factory=list)
    bars: int = 1
    time_signature: int = 0
    revision: HardwareRevision = HardwareRevision.CURRENT
    pads_per_bank: int = 16
    footer: bytes = b""
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def real_notes(self) -> List[PatternNote]:
        """Notes excluding rest records."""
        return [note for note in self.notes if not note.is_rest]

    @property
    def total_ticks(self) -> int:
        return sum(note.ticks for note in self.notes)

    def used_pads(self) -> List[str]:
        """Distinct pad labels of non-rest notes, in first-use order."""
        pads: List[str] = []
        for note in self.real_notes:
            if note.pad_label not in pads:
                pads.append(note.pad_label)
        return pads

    def validate(self) -> List[ValidationIssue]:
        """Return diagnostics recorded while parsing."""
        return list(self.issues)
