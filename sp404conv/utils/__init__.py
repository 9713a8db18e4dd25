"""Utility modules for byte access, MIDI tables and pad layouts."""

from sp404conv.utils.byte_cursor import ByteCursor, UnderflowError
from sp404conv.utils.pad_maps import (
    HardwareRevision,
    PadMapping,
    hardware_note_map,
    invert_note_map,
    pad_label,
    pad_map_for,
    sample_number,
)
from sp404conv.utils.validation import ValidationError, ValidationIssue
from sp404conv.utils.vlq import decode_vlq, encode_vlq

__all__ = [
    "ByteCursor",
    "UnderflowError",
    "HardwareRevision",
    "PadMapping",
    "hardware_note_map",
    "invert_note_map",
    "pad_label",
    "pad_map_for",
    "sample_number",
    "ValidationError",
    "ValidationIssue",
    "decode_vlq",
    "encode_vlq",
]
