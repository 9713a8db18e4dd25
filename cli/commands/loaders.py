"""
Shared file loading for CLI commands.
"""

import json
from pathlib import Path
from typing import Dict, Optional, Union

import typer
from rich.console import Console

from sp404conv.formats.midi.reader import MidiReader
from sp404conv.formats.pattern.reader import PatternReader
from sp404conv.models.midi import MidiDocument
from sp404conv.models.pattern import PatternDocument, PatternOptions
from sp404conv.utils.pad_maps import HardwareRevision, pad_map_for

console = Console()

MIDI_SUFFIXES = (".mid", ".midi", ".smf")
PATTERN_SUFFIXES = (".bin",)


def file_kind(path: Path) -> str:
    """Return "midi", "pattern" or "" from the file extension."""
    suffix = path.suffix.lower()
    if suffix in MIDI_SUFFIXES:
        return "midi"
    if suffix in PATTERN_SUFFIXES:
        return "pattern"
    return ""


def parse_revision(name: str) -> HardwareRevision:
    """Map a --revision value (mkii/og) to a HardwareRevision."""
    for revision in HardwareRevision:
        if name.lower() in (revision.value, revision.name.lower()):
            return revision
    console.print(f"[red]Error: Unknown hardware revision: {name}[/red]")
    console.print("Supported revisions: mkii, og")
    raise typer.Exit(1)


def require_file(path: Path) -> str:
    """Exit unless path exists and has a known extension; return its kind."""
    if not path.exists():
        console.print(f"[red]Error: File not found: {path}[/red]")
        raise typer.Exit(1)

    kind = file_kind(path)
    if not kind:
        console.print(f"[red]Error: Unknown file type: {path.suffix}[/red]")
        console.print("Supported formats: .mid (MIDI), .BIN (SP-404 pattern)")
        raise typer.Exit(1)
    return kind


def load_document(path: Path, revision: HardwareRevision) -> Union[MidiDocument, PatternDocument]:
    """Read a MIDI or pattern file, exiting with a message on failure."""
    kind = require_file(path)
    try:
        if kind == "midi":
            return MidiReader.read(path)
        return PatternReader.read(path, PatternOptions(revision))
    except ValueError as e:
        console.print(f"[red]Error: Cannot parse {path}: {e}[/red]")
        raise typer.Exit(1)


def load_note_map(path: Optional[Path], revision: HardwareRevision) -> Optional[Dict[str, int]]:
    """
    Load a pad to MIDI note map from JSON.

    The file holds an object such as {"A1": 36, "A2": 38}. Objects keyed by
    note number ({"36": "A1"}) are accepted too.

    Returns:
        Pad label to MIDI note, or None when no path is given
    """
    if path is None:
        return None
    if not path.exists():
        console.print(f"[red]Error: Note map not found: {path}[/red]")
        raise typer.Exit(1)

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: Invalid note map JSON: {e}[/red]")
        raise typer.Exit(1)

    if not isinstance(raw, dict):
        console.print("[red]Error: Note map must be a JSON object[/red]")
        raise typer.Exit(1)

    pads = pad_map_for(revision)
    note_map: Dict[str, int] = {}
    for key, value in raw.items():
        pad, note = (value, key) if str(key).isdigit() else (key, value)
        pad = str(pad).upper()
        if pad not in pads:
            console.print(f"[red]Error: Unknown pad in note map: {pad}[/red]")
            raise typer.Exit(1)
        note_map[pad] = int(note)
    return note_map
