"""
SP404Conv - Bidirectional converter between SP-404 patterns and MIDI files.

A modern CLI tool for converting and analyzing Roland SP-404 patterns.
"""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from cli.commands.info import info
from cli.commands.convert import convert
from cli.commands.validate import validate
from cli.commands.dump import dump
from cli.commands.pads import pads
from sp404conv import __version__

console = Console()

# Main app
app = typer.Typer(
    name="sp404conv",
    help="Convert and analyze Roland SP-404 pattern files and MIDI files.",
    add_completion=False,
    rich_markup_mode="rich",
)

# Add commands directly
app.command(name="info")(info)
app.command(name="convert")(convert)
app.command(name="validate")(validate)
app.command(name="dump")(dump)
app.command(name="pads")(pads)


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]sp404conv[/bold] version {__version__}")
    console.print("[dim]Bidirectional converter for SP-404 patterns and MIDI files[/dim]")


def setup_logging(debug: bool) -> None:
    """Route library logging through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version_flag: bool = typer.Option(False, "--version", "-V", help="Show version"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Show debug logging"),
) -> None:
    """
    SP404Conv - Convert and analyze Roland SP-404 patterns.

    Supports bidirectional conversion between:

    - [cyan]SP-404[/cyan] pattern files (PTNxxxxx.BIN), MKII and legacy units
    - [cyan]Standard MIDI Files[/cyan] (.mid)

    [bold]Quick Start:[/bold]

        sp404conv info PTN00025.BIN          # Pattern summary
        sp404conv info PTN00025.BIN --full   # Every record

    [bold]Conversion:[/bold]

        sp404conv convert PTN00025.BIN -o beat.mid --bpm 90
        sp404conv convert beat.mid -o PTN00001.BIN --note-map drums.json

    [bold]Utility Commands:[/bold]

        sp404conv validate beat.mid      # Check file structure
        sp404conv dump PTN00025.BIN      # Annotated hex dump
        sp404conv pads --revision og     # Pad to note table

    Use --help with any command for more details.
    """
    setup_logging(debug)

    if version_flag:
        version()
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
