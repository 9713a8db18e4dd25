"""
CLI display modules.
"""

from cli.display.tables import (
    display_midi_info,
    display_pattern_info,
    display_pad_table,
)
from cli.display.hex_view import display_hex_dump

__all__ = [
    "display_midi_info",
    "display_pattern_info",
    "display_pad_table",
    "display_hex_dump",
]
