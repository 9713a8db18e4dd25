"""
Rich table displays for MIDI and pattern information.
"""

from dataclasses import fields
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cli.display.formatters import density_bar, format_division, format_position, format_tempo, value_bar
from sp404conv.models.midi import MetaEvent, MidiDocument, MidiEvent, SetTempo
from sp404conv.models.pattern import MAX_BARS, PatternDocument
from sp404conv.utils.midi_tables import midi_to_note
from sp404conv.utils.pad_maps import HardwareRevision, pad_map_for

console = Console()

# Fields already shown in their own column
_HIDDEN_FIELDS = {"delta_time", "declared_length"}


def describe_event(event: MidiEvent) -> str:
    """One-line summary of an event's fields."""
    parts = []
    for item in fields(event):
        if item.name in _HIDDEN_FIELDS:
            continue
        value = getattr(event, item.name)
        if isinstance(value, (bytes, bytearray)):
            value = value.hex(" ") if value else "-"
        parts.append(f"{item.name}={value}")
    if isinstance(event, SetTempo):
        parts.append(f"bpm={event.bpm}")
    return " ".join(parts)


def display_midi_info(document: MidiDocument, filepath: str = "", show_events: bool = False) -> None:
    """Display MIDI header, track summary and optionally every event."""
    first_tempo: Optional[SetTempo] = None
    for track in document.tracks:
        first_tempo = next((e for e in track.events if isinstance(e, SetTempo)), None)
        if first_tempo:
            break

    notes = document.used_notes()
    header_content = f"""[bold]File:[/bold] {filepath or "N/A"}
[bold]Format:[/bold] {document.format}
[bold]Tracks:[/bold] {len(document.tracks)} (header: {document.track_count})
[bold]Division:[/bold] {format_division(document)}
[bold]Tempo:[/bold] {format_tempo(document.tempo_bpm, first_tempo.tempo if first_tempo else None)}
[bold]Notes Used:[/bold] {", ".join(f"{n} ({name})" for n, name in notes) or "None"}"""

    console.print(
        Panel(header_content, title="[bold blue]MIDI File Info[/bold blue]", border_style="blue", expand=False)
    )

    track_table = Table(title="Tracks", box=box.ROUNDED, show_header=True, header_style="bold green")
    track_table.add_column("#", style="dim", width=3)
    track_table.add_column("Name", style="cyan", width=24)
    track_table.add_column("Events", width=8)
    track_table.add_column("Bytes", width=8)
    track_table.add_column("Ticks", width=10)
    track_table.add_column("End", width=5)

    for index, track in enumerate(document.tracks):
        end = "[green]Yes[/green]" if track.has_end_of_track else "[red]No[/red]"
        track_table.add_row(
            str(index),
            track.name or "[dim]-[/dim]",
            str(len(track.events)),
            str(track.chunk_length),
            str(track.total_ticks),
            end,
        )

    console.print(track_table)

    if show_events:
        ppqn = document.time_division or 0
        for index, track in enumerate(document.tracks):
            event_table = Table(
                title=f"Track {index} Events", box=box.SIMPLE, show_header=True, header_style="bold yellow"
            )
            event_table.add_column("Time", style="dim", width=10)
            event_table.add_column("Delta", width=7)
            event_table.add_column("Event", style="cyan", width=20)
            event_table.add_column("Data", width=50)

            for absolute, event in track.absolute_events():
                style = "magenta" if isinstance(event, MetaEvent) else ""
                event_table.add_row(
                    format_position(absolute, ppqn),
                    str(event.delta_time),
                    f"[{style}]{event.label}[/{style}]" if style else event.label,
                    describe_event(event),
                )
            console.print(event_table)


def display_pattern_info(pattern: PatternDocument, filepath: str = "", show_notes: bool = False) -> None:
    """Display pattern summary, pad usage and optionally every record."""
    ppqn = pattern.revision.default_ppqn
    real_notes = pattern.real_notes

    header_content = f"""[bold]File:[/bold] {filepath or "N/A"}
[bold]Hardware:[/bold] {pattern.revision.name} ({pattern.pads_per_bank} pads per bank)
[bold]Bars:[/bold] {pattern.bars}
[bold]Time Signature:[/bold] index {pattern.time_signature}
[bold]Records:[/bold] {len(pattern.notes)} ({len(real_notes)} notes, {len(pattern.notes) - len(real_notes)} rests)
[bold]Length:[/bold] {pattern.total_ticks} ticks ({format_position(pattern.total_ticks, ppqn)})
[bold]Issues:[/bold] {len(pattern.issues)}"""

    console.print(
        Panel(header_content, title="[bold blue]Pattern Info[/bold blue]", border_style="blue", expand=False)
    )

    pads = pattern.used_pads()
    pad_table = Table(title="Pads Used", box=box.ROUNDED, show_header=True, header_style="bold magenta")
    pad_table.add_column("Pad", style="cyan", width=5)
    pad_table.add_column("Hits", width=6)
    pad_table.add_column("Avg Velocity", width=20)

    for pad in pads:
        hits = [note for note in real_notes if note.pad_label == pad]
        average = round(sum(note.velocity for note in hits) / len(hits))
        pad_table.add_row(pad, str(len(hits)), value_bar(average))

    console.print(pad_table)
    total_pads = pattern.pads_per_bank * 10
    console.print(f"[bold]Pad usage:[/bold] {density_bar(len(pads), total_pads)}")

    if show_notes:
        note_table = Table(title="Records", box=box.SIMPLE, show_header=True, header_style="bold yellow")
        note_table.add_column("#", style="dim", width=4)
        note_table.add_column("Position", width=10)
        note_table.add_column("Ticks", width=6)
        note_table.add_column("Pad", style="cyan", width=5)
        note_table.add_column("Note", width=5)
        note_table.add_column("Bank", width=5)
        note_table.add_column("Velocity", width=16)
        note_table.add_column("Length", width=7)
        note_table.add_column("Pitch", width=6)

        absolute = 0
        for index, note in enumerate(pattern.notes):
            absolute += note.ticks
            if note.is_rest:
                note_table.add_row(
                    str(index), format_position(absolute, ppqn), str(note.ticks), "[dim]rest[/dim]", "", "", "", "", ""
                )
                continue
            note_table.add_row(
                str(index),
                format_position(absolute, ppqn),
                str(note.ticks),
                note.pad_label,
                str(note.midi_note),
                str(note.bank_switch),
                value_bar(note.velocity),
                str(note.length),
                f"{note.pitch_offset:+d}" if note.pitch_mode else "",
            )
        console.print(note_table)


def display_pad_table(revision: HardwareRevision) -> None:
    """Display the pad to note/bank switch table of a hardware revision."""
    table = Table(
        title=f"{revision.name} Pads (max {MAX_BARS} bars, {revision.default_ppqn} PPQN)",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Pad", style="cyan", width=5)
    table.add_column("MIDI Note", width=10)
    table.add_column("Name", width=6)
    table.add_column("Bank Switch", width=12)

    for pad, entry in pad_map_for(revision).items():
        table.add_row(pad, str(entry.midi_note), midi_to_note(entry.midi_note), str(entry.bank_switch))

    console.print(table)
