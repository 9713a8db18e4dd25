"""
Pads command - show the pad to MIDI note table of a hardware revision.
"""

import json

import typer
from rich.console import Console

from cli.commands.loaders import parse_revision
from cli.display.tables import display_pad_table
from sp404conv.utils.pad_maps import hardware_note_map

console = Console()
app = typer.Typer()


@app.command()
def pads(
    revision: str = typer.Option("mkii", "--revision", "-r", help="Hardware: mkii or og"),
    as_json: bool = typer.Option(
        False, "--json", "-j", help="Print the default note map as JSON (usable with --note-map)"
    ),
) -> None:
    """
    Show the note and bank switch byte recorded for every pad.

    Examples:

        sp404conv pads

        sp404conv pads --revision og

        sp404conv pads --json > drums.json
    """
    hardware = parse_revision(revision)

    if as_json:
        typer.echo(json.dumps(hardware_note_map(hardware), indent=2))
        return

    display_pad_table(hardware)


if __name__ == "__main__":
    app()
