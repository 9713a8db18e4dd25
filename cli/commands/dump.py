"""
Dump command - annotated hex dump of a pattern or MIDI file.
"""

from pathlib import Path
from typing import List, Tuple

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cli.commands.loaders import require_file
from sp404conv.models.pattern import FOOTER_SIZE, RECORD_SIZE
from sp404conv.utils.byte_cursor import ByteCursor

console = Console()
app = typer.Typer()

# start, end, name, description, color
Region = Tuple[int, int, str, str, str]

# Field names of a pattern record; length is a u16
RECORD_FIELDS = ["ticks", "note", "bank", "pitch", "vel", "rsv", "length"]


def pattern_regions(size: int) -> List[Region]:
    """Records then the 16-byte footer; anything after it is trailing data."""
    count = max(size // RECORD_SIZE - 2, 0)
    regions: List[Region] = []
    for index in range(count):
        start = index * RECORD_SIZE
        color = "cyan" if index % 2 == 0 else "bright_blue"
        regions.append((start, start + RECORD_SIZE, f"NOTE_{index:03d}", "Note record", color))

    footer = count * RECORD_SIZE
    if footer < size:
        regions.append((footer, min(footer + FOOTER_SIZE, size), "FOOTER", "Bars and time signature", "green"))
    if footer + FOOTER_SIZE < size:
        regions.append((footer + FOOTER_SIZE, size, "TRAILING", "Bytes after the footer", "red"))
    return regions


def midi_regions(data: bytes) -> List[Region]:
    """Walk the chunk headers of a MIDI file."""
    cursor = ByteCursor(data)
    regions: List[Region] = []
    index = 0
    while cursor.remaining_bytes() >= 8:
        start = cursor.offset
        magic = cursor.read_string(4, "latin1")
        length = cursor.read_u32()
        end = min(cursor.offset + length, len(data))
        if magic == "MThd":
            regions.append((start, end, "HEADER", "Format, tracks and division", "bright_blue"))
        else:
            color = "magenta" if index % 2 == 0 else "yellow"
            regions.append((start, start + 8, f"MTRK_{index:02d}", f"Chunk header ({magic})", "green"))
            regions.append((start + 8, end, f"TRACK_{index:02d}", f"Events ({length} bytes)", color))
            index += 1
        cursor.seek(end)
    return regions


def get_region_for_offset(regions: List[Region], offset: int) -> Tuple[str, str, str]:
    """Get region name, description, and color for an offset."""
    for start, end, name, desc, color in regions:
        if start <= offset < end:
            return name, desc, color
    return "UNKNOWN", "Unknown region", "white"


def format_hex_line(data: bytes, offset: int, regions: List[Region], bytes_per_line: int = 16) -> Text:
    """
    Format a single line of hex dump with colors and annotations.

    Returns Rich Text object with colored output.
    """
    region_name, _, region_color = get_region_for_offset(regions, offset)

    text = Text()
    text.append(f"0x{offset:04X} ", style="dim")
    text.append(f"[{region_name:10s}] ", style=region_color)

    for byte in data:
        if byte == 0x00:
            style = "dim"
        elif byte == 0x80:
            style = "dim cyan"
        else:
            style = "bold white"
        text.append(f"{byte:02X}", style=style)
        text.append(" ")

    if len(data) < bytes_per_line:
        text.append("   " * (bytes_per_line - len(data)))

    text.append(" ", style="dim")
    for byte in data:
        if 32 <= byte < 127:
            text.append(chr(byte), style="green")
        else:
            text.append(".", style="dim")

    return text


def create_legend(regions: List[Region]) -> Table:
    """Create a legend for the hex dump colors."""
    table = Table(title="Legend", box=box.SIMPLE, show_header=False, expand=False)
    table.add_column("Region", width=12)
    table.add_column("Description", width=40)

    for start, end, name, desc, color in regions:
        table.add_row(Text(name, style=color), f"{desc} ({end - start} bytes, 0x{start:04X}-0x{end - 1:04X})")

    return table


def record_table(data: bytes, regions: List[Region]) -> Table:
    """Field-by-field view of the pattern records."""
    table = Table(title="Records", box=box.SIMPLE, show_header=True, header_style="bold cyan")
    table.add_column("Record", style="cyan", width=10)
    for name in RECORD_FIELDS:
        table.add_column(name, width=6)

    for start, end, name, _, _ in regions:
        if not name.startswith("NOTE_"):
            continue
        record = data[start:end]
        length = record[6] | (record[7] << 8)
        table.add_row(name, *(str(b) for b in record[:6]), str(length))
    return table


@app.command()
def dump(
    file: Path = typer.Argument(..., help="Pattern (.BIN) or MIDI (.mid) file to dump"),
    start: int = typer.Option(0, "--start", "-s", help="Start offset"),
    length: int = typer.Option(0, "--length", "-l", help="Number of bytes (0=all)"),
    width: int = typer.Option(16, "--width", "-w", help="Bytes per line"),
    no_legend: bool = typer.Option(False, "--no-legend", help="Hide the legend"),
    region: str = typer.Option("", "--region", "-r", help="Show only one region (e.g., FOOTER, TRACK_00)"),
    records: bool = typer.Option(False, "--records", help="Also decode pattern records field by field"),
) -> None:
    """
    Annotated hex dump of a pattern or MIDI file.

    Patterns are split into 8-byte note records and the 16-byte footer;
    MIDI files into the header chunk and the track chunks.

    Examples:

        sp404conv dump PTN00025.BIN --width 8

        sp404conv dump PTN00025.BIN --region FOOTER

        sp404conv dump beat.mid --region TRACK_00
    """
    kind = require_file(file)

    with open(file, "rb") as f:
        data = f.read()

    regions = pattern_regions(len(data)) if kind == "pattern" else midi_regions(data)

    if region:
        region_upper = region.upper()
        match = next((r for r in regions if r[2] == region_upper), None)
        if match is None:
            console.print(f"[red]Unknown region: {region}[/red]")
            console.print("Available regions: " + ", ".join(r[2] for r in regions))
            raise typer.Exit(1)
        r_start, r_end, r_name, r_desc, r_color = match
        start = r_start
        length = r_end - r_start
        console.print(f"[{r_color}]Showing region: {r_name} - {r_desc}[/{r_color}]")

    if length == 0:
        length = len(data) - start
    end = min(start + length, len(data))

    if not no_legend and not region:
        console.print(create_legend(regions))
        console.print()

    console.print(
        Panel(
            f"[bold]File:[/bold] {file}\n"
            f"[bold]Size:[/bold] {len(data)} bytes\n"
            f"[bold]Showing:[/bold] 0x{start:04X} - 0x{max(end - 1, start):04X} ({max(end - start, 0)} bytes)",
            title="[bold]Hex Dump[/bold]",
            border_style="blue",
        )
    )

    lines_shown = 0
    for offset in range(start, end, width):
        chunk = data[offset : min(offset + width, end)]
        console.print(format_hex_line(chunk, offset, regions, width))
        lines_shown += 1

    console.print()
    console.print(f"[dim]Total: {lines_shown} lines displayed[/dim]")

    if records and kind == "pattern":
        console.print(record_table(data, regions))


if __name__ == "__main__":
    app()
