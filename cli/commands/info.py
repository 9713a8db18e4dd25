"""
Info command - display MIDI or pattern file information.
"""

from pathlib import Path

import typer
from rich.console import Console

from cli.commands.loaders import load_document, parse_revision
from cli.display.hex_view import display_hex_dump
from cli.display.tables import display_midi_info, display_pattern_info
from sp404conv.models.midi import MidiDocument
from sp404conv.models.pattern import RECORD_SIZE

console = Console()
app = typer.Typer()


@app.command()
def info(
    file: Path = typer.Argument(..., help="MIDI (.mid) or pattern (.BIN) file"),
    revision: str = typer.Option("mkii", "--revision", "-r", help="Pattern hardware: mkii or og"),
    full: bool = typer.Option(False, "--full", "-f", help="List every event or record"),
    show_hex: bool = typer.Option(False, "--hex", "-x", help="Show the pattern footer bytes"),
) -> None:
    """
    Display MIDI or SP-404 pattern information.

    Examples:

        sp404conv info beat.mid

        sp404conv info PTN00025.BIN --full

        sp404conv info PTN00001.BIN --revision og --hex
    """
    document = load_document(file, parse_revision(revision))

    if isinstance(document, MidiDocument):
        display_midi_info(document, str(file), show_events=full)
        return

    display_pattern_info(document, str(file), show_notes=full)
    if show_hex:
        offset = len(document.notes) * RECORD_SIZE
        display_hex_dump(document.footer, title="Footer", start_offset=offset)


if __name__ == "__main__":
    app()
