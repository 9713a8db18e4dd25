"""
SP-404 pad tables.

Maps pad labels (A1 to J16) to the MIDI note and bank switch byte stored in
pattern records, for both hardware revisions:

- current hardware (SP-404 MKII): 10 banks x 16 pads; banks A-E use bank
  switch 64 and banks F-J use bank switch 65, both over notes 47-126.
- legacy hardware (SP-404 / SX / A): 10 banks x 12 pads; banks A-F use bank
  switch 0 over notes 47-118 and banks G-J use bank switch 64 over notes
  71-118.

The tables are built once at import time and exposed read-only.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

BANK_LETTERS = "ABCDEFGHIJ"

# Pulses per quarter note of recorded patterns
DEFAULT_PPQN = 480
DEFAULT_PPQN_OG = 96

# Lowest pad note; sample number = note - 46
BASE_NOTE = 47
REST_NOTE = 128
UNKNOWN_SAMPLE = 160


class HardwareRevision(Enum):
    """SP-404 hardware revision a pattern was recorded on."""

    CURRENT = "mkii"
    LEGACY = "og"

    @property
    def pads_per_bank(self) -> int:
        return 16 if self is HardwareRevision.CURRENT else 12

    @property
    def default_ppqn(self) -> int:
        return DEFAULT_PPQN if self is HardwareRevision.CURRENT else DEFAULT_PPQN_OG


@dataclass(frozen=True)
class PadMapping:
    """Note and bank switch byte recorded for one pad."""

    pad: str
    midi_note: int
    bank_switch: int


def _build_current() -> Mapping[str, PadMapping]:
    table: Dict[str, PadMapping] = {}
    for bank, letter in enumerate(BANK_LETTERS):
        bank_switch = 64 if bank < 5 else 65
        for number in range(1, 17):
            pad = f"{letter}{number}"
            note = BASE_NOTE + (bank % 5) * 16 + number - 1
            table[pad] = PadMapping(pad, note, bank_switch)
    return MappingProxyType(table)


def _build_legacy() -> Mapping[str, PadMapping]:
    table: Dict[str, PadMapping] = {}
    for bank, letter in enumerate(BANK_LETTERS):
        if bank < 6:
            bank_switch, first = 0, BASE_NOTE + bank * 12
        else:
            bank_switch, first = 64, 71 + (bank - 6) * 12
        for number in range(1, 13):
            pad = f"{letter}{number}"
            table[pad] = PadMapping(pad, first + number - 1, bank_switch)
    return MappingProxyType(table)


PAD_MAP: Mapping[str, PadMapping] = _build_current()
PAD_MAP_OG: Mapping[str, PadMapping] = _build_legacy()


def pad_map_for(revision: HardwareRevision) -> Mapping[str, PadMapping]:
    """Return the pad table for a hardware revision."""
    return PAD_MAP if revision is HardwareRevision.CURRENT else PAD_MAP_OG


def sample_number(
    midi_note: int, bank_switch: int, revision: HardwareRevision, pads_per_bank: int
) -> int:
    """
    Derive the 1-based sample number of a pattern record.

    Args:
        midi_note: Note byte of the record
        bank_switch: Bank switch byte of the record
        revision: Hardware revision the pattern belongs to
        pads_per_bank: Pads per bank (12 or 16)

    Returns:
        Sample number, or 160 for an unrecognized bank switch value
    """
    if revision is HardwareRevision.LEGACY:
        low, high = (0,), (64,)
    else:
        # Newer firmware writes 64/65 instead of 0/1
        low, high = (0, 64), (1, 65)

    if bank_switch in low:
        return midi_note - 46
    if bank_switch in high:
        return midi_note - 46 + pads_per_bank * 5
    return UNKNOWN_SAMPLE


def pad_label(sample: int, pads_per_bank: int) -> str:
    """
    Build the pad label ("B1") for a sample number.

    Example:
        >>> pad_label(17, 16)
        'B1'
    """
    pad_number = sample - 1
    letter = chr(ord("A") + pad_number // pads_per_bank)
    return f"{letter}{pad_number % pads_per_bank + 1}"


def split_pad_label(label: str) -> Tuple[str, int]:
    """Split "B12" into ("B", 12)."""
    return label[0], int(label[1:])


def hardware_note_map(revision: HardwareRevision = HardwareRevision.CURRENT) -> Dict[str, int]:
    """
    Default pad to MIDI note map for pattern export.

    Each pad plays the note it is stored with. Pads outside the primary bank
    switch group share notes with pads inside it, so only the primary group
    (A-E on current hardware, A-F on legacy hardware) is included.
    """
    table = pad_map_for(revision)
    primary = 64 if revision is HardwareRevision.CURRENT else 0
    return {pad: entry.midi_note for pad, entry in table.items() if entry.bank_switch == primary}


def invert_note_map(note_map: Mapping[str, int]) -> Dict[int, str]:
    """Turn a pad to note map into a note to pad map (first pad wins)."""
    inverted: Dict[int, str] = {}
    for pad, note in note_map.items():
        inverted.setdefault(int(note), pad)
    return inverted
