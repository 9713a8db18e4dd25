"""
Hex dump display utilities.
"""

from rich.console import Console
from rich.panel import Panel

console = Console()


def hex_lines(data: bytes, start_offset: int = 0, bytes_per_line: int = 16, max_lines: int = 32) -> str:
    """Format bytes as Rich-markup hex dump lines with an ASCII column."""
    lines = []
    end = min(len(data), max_lines * bytes_per_line)

    for offset in range(0, end, bytes_per_line):
        chunk = data[offset : offset + bytes_per_line]

        hex_parts = []
        for i, b in enumerate(chunk):
            if i == 8:
                hex_parts.append(" ")
            hex_parts.append(f"{b:02X}")
        hex_str = " ".join(hex_parts)

        ascii_str = "".join(chr(b) if 32 <= b < 127 else "." for b in chunk)
        addr = start_offset + offset

        lines.append(
            f"[dim]{addr:08X}[/dim]  {hex_str:<{bytes_per_line * 3 + 2}}  [cyan]{ascii_str}[/cyan]"
        )

    if len(data) > end:
        lines.append(f"[dim]... {len(data) - end} more bytes ...[/dim]")

    return "\n".join(lines)


def display_hex_dump(
    data: bytes,
    title: str = "Hex Dump",
    start_offset: int = 0,
    bytes_per_line: int = 16,
    max_lines: int = 32,
) -> None:
    """Display formatted hex dump with Rich."""
    content = hex_lines(data, start_offset, bytes_per_line, max_lines)
    console.print(Panel(content, title=title, border_style="blue", expand=False))
