"""
Convert command - bidirectional conversion between SP-404 patterns and MIDI.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from cli.commands.loaders import load_note_map, parse_revision, require_file
from sp404conv.converters.midi_to_pattern import convert_midi_to_pattern
from sp404conv.converters.pattern_to_midi import convert_pattern_to_midi
from sp404conv.utils.pad_maps import hardware_note_map, invert_note_map

console = Console()
app = typer.Typer()


@app.command()
def convert(
    source: Path = typer.Argument(..., help="Source file (.BIN or .mid)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path"),
    revision: str = typer.Option("mkii", "--revision", "-r", help="Pattern hardware: mkii or og"),
    note_map: Optional[Path] = typer.Option(
        None, "--note-map", "-m", help="JSON pad to MIDI note map, e.g. {\"A1\": 36}"
    ),
    bpm: Optional[float] = typer.Option(None, "--bpm", "-b", help="Tempo written to the MIDI file"),
    ppqn: Optional[int] = typer.Option(
        None,
        "--ppqn",
        "-p",
        help="Pattern PPQN; also the MIDI time division for .BIN input (default 480 mkii, 96 og)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed progress"),
) -> None:
    """
    Convert between SP-404 pattern files and Standard MIDI Files.

    Automatically detects input format and converts to the other:

    - .BIN -> .mid (pattern to MIDI)
    - .mid -> .BIN (MIDI to pattern)

    Without --note-map each pad plays its own hardware note. Pads with no
    note in the map (banks F-J on MKII) are skipped with a warning.

    Examples:

        sp404conv convert PTN00025.BIN -o beat.mid --bpm 92

        sp404conv convert beat.mid -o PTN00001.BIN --note-map drums.json

        sp404conv convert beat.mid --revision og
    """
    kind = require_file(source)
    hardware = parse_revision(revision)
    pad_to_note = load_note_map(note_map, hardware) or hardware_note_map(hardware)
    pattern_ppqn = ppqn or hardware.default_ppqn

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=not verbose,
    ) as progress:
        if kind == "pattern":
            output_path = output or source.with_suffix(".mid")
            task = progress.add_task("Converting pattern to MIDI...", total=None)

            try:
                midi = convert_pattern_to_midi(
                    source, output_path, pad_to_note, hardware, bpm, pattern_ppqn
                )
            except ValueError as e:
                console.print(f"[red]Error: {e}[/red]")
                if verbose:
                    console.print_exception()
                raise typer.Exit(1)

            progress.update(task, description="Done!")
            events = sum(len(track.events) for track in midi.tracks)
            console.print(f"[green]Converted:[/green] {source} -> {output_path}")
            console.print(f"[dim]Output: {events} events, {midi.time_division} PPQN[/dim]")
            for issue in midi.issues:
                console.print(f"[yellow]Warning: {issue.message}[/yellow]")

        else:
            output_path = output or source.with_suffix(".BIN")
            task = progress.add_task("Converting MIDI to pattern...", total=None)

            note_to_pad = invert_note_map(pad_to_note)
            try:
                pattern = convert_midi_to_pattern(source, output_path, note_to_pad, pattern_ppqn, hardware)
            except ValueError as e:
                console.print(f"[red]Error: {e}[/red]")
                if verbose:
                    console.print_exception()
                raise typer.Exit(1)

            progress.update(task, description="Done!")
            console.print(f"[green]Converted:[/green] {source} -> {output_path}")
            console.print(
                f"[dim]Output: {len(pattern.notes)} records "
                f"({len(pattern.real_notes)} notes), {pattern.bars} bars[/dim]"
            )
            if not pattern.real_notes:
                console.print("[yellow]Warning: no MIDI notes matched the note map[/yellow]")


if __name__ == "__main__":
    app()
