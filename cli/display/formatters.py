"""
Display formatting utilities for CLI output.

Provides velocity bars, musical positions and timing helpers.
"""

from typing import Optional

from sp404conv.models.midi import MidiDocument


def value_bar(
    value: int,
    max_value: int = 127,
    width: int = 10,
    filled_char: str = "█",
    empty_char: str = "░",
    show_value: bool = True,
) -> str:
    """
    Create a text-based bar graphic for a MIDI value.

    Args:
        value: Current value
        max_value: Maximum value (default 127 for MIDI)
        width: Bar width in characters
        filled_char: Character for filled portion
        empty_char: Character for empty portion
        show_value: Show numeric value

    Returns:
        Formatted string like "91 [███████░░░]"
    """
    if max_value <= 0:
        max_value = 1

    clamped = max(0, min(value, max_value))
    fill_count = int((clamped / max_value) * width)
    bar = filled_char * fill_count + empty_char * (width - fill_count)

    if show_value:
        return f"{value:3d} [{bar}]"
    return f"[{bar}]"


def format_position(ticks: int, ppqn: int, beats_per_bar: int = 4) -> str:
    """
    Format an absolute tick position as bar.beat.tick (1-based bar and beat).

    Returns:
        "2.3.120" for tick 3000 at 480 PPQN
    """
    if ppqn <= 0:
        return str(ticks)
    beat, tick = divmod(ticks, ppqn)
    bar, beat = divmod(beat, beats_per_bar)
    return f"{bar + 1}.{beat + 1}.{tick:03d}"


def format_tempo(bpm: Optional[int], tempo: Optional[int] = None) -> str:
    """
    Format tempo with the raw microseconds per quarter note.

    Returns:
        "120 BPM (500000 us/qn)" or "Not set"
    """
    if bpm is None:
        return "[dim]Not set[/dim]"
    if tempo is None:
        return f"{bpm} BPM"
    return f"{bpm} BPM ({tempo} us/qn)"


def format_division(document: MidiDocument) -> str:
    """
    Format the header division word.

    Returns:
        "480 PPQN" or "SMPTE 25 fps, 40 ticks/frame"
    """
    if document.is_smpte:
        return f"SMPTE {document.frames_per_second} fps, {document.ticks_per_frame} ticks/frame"
    return f"{document.time_division} PPQN"


def density_bar(used: int, total: int, width: int = 20, filled_char: str = "█", empty_char: str = "░") -> str:
    """
    Create a usage bar with percentage.

    Returns:
        Formatted string like "[████████░░░░░░░░░░░░]  40.0% (64/160)"
    """
    if total <= 0:
        return f"[{empty_char * width}]   0.0% (0/0)"

    percent = (used / total) * 100
    fill_count = int((used / total) * width)
    bar = filled_char * fill_count + empty_char * (width - fill_count)
    return f"[{bar}] {percent:5.1f}% ({used}/{total})"
