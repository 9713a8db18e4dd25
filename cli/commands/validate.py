"""
Validate command - check MIDI or pattern file integrity and structure.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cli.commands.loaders import load_document, parse_revision
from sp404conv.utils.validation import ValidationIssue

console = Console()
app = typer.Typer()


@dataclass
class ValidationResult:
    """Result of validating a file."""

    filepath: str
    valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    info: List[ValidationIssue] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return len(self.errors) + len(self.warnings) + len(self.info)

    @classmethod
    def from_issues(cls, filepath: str, issues: List[ValidationIssue]) -> "ValidationResult":
        errors = [i for i in issues if i.severity == "error"]
        return cls(
            filepath=filepath,
            valid=not errors,
            errors=errors,
            warnings=[i for i in issues if i.severity == "warning"],
            info=[i for i in issues if i.severity == "info"],
        )


def display_validation(result: ValidationResult, show_info: bool = False) -> None:
    """Display validation result with Rich formatting."""
    if result.valid:
        status = "[bold green]VALID[/bold green]"
        border = "green"
    else:
        status = "[bold red]INVALID[/bold red]"
        border = "red"

    console.print(
        Panel(
            f"[bold]File:[/bold] {result.filepath}\n"
            f"[bold]Status:[/bold] {status}\n\n"
            f"Errors: [red]{len(result.errors)}[/red]  "
            f"Warnings: [yellow]{len(result.warnings)}[/yellow]  "
            f"Info: [blue]{len(result.info)}[/blue]",
            title="[bold]Validation Result[/bold]",
            border_style=border,
        )
    )

    rows = [("[red]ERROR[/red]", i) for i in result.errors]
    rows += [("[yellow]WARN[/yellow]", i) for i in result.warnings]
    if show_info:
        rows += [("[blue]INFO[/blue]", i) for i in result.info]

    if rows:
        table = Table(title="Issues", box=box.ROUNDED, show_header=True, header_style="bold cyan")
        table.add_column("Severity", width=10)
        table.add_column("Area", style="cyan", width=12)
        table.add_column("Offset", style="dim", width=8)
        table.add_column("Message", width=60)
        table.add_column("Expected", width=10)
        table.add_column("Actual", width=10)

        for severity, issue in rows:
            table.add_row(
                severity,
                issue.area,
                f"0x{issue.offset:03X}",
                issue.message,
                issue.expected,
                issue.actual,
            )

        console.print(table)
    elif not result.total_issues:
        console.print("[green]OK[/green] No issues found")


@app.command()
def validate(
    file: Path = typer.Argument(..., help="MIDI (.mid) or pattern (.BIN) file to validate"),
    revision: str = typer.Option("mkii", "--revision", "-r", help="Pattern hardware: mkii or og"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show info-level issues"),
    strict: bool = typer.Option(False, "--strict", "-s", help="Treat warnings as errors"),
) -> None:
    """
    Validate a MIDI or SP-404 pattern file.

    MIDI checks:

    - Format code and header track count
    - End-of-Track present in every track
    - Unmatched Note On / Note Off events
    - Meta event lengths and negative delta times

    Pattern checks:

    - Footer bytes against the hardware revision
    - Bank switch, pitch mode and reserved bytes of every record

    Examples:

        sp404conv validate beat.mid

        sp404conv validate PTN00025.BIN --strict
    """
    document = load_document(file, parse_revision(revision))

    result = ValidationResult.from_issues(str(file), document.validate())

    if strict and result.warnings:
        result.valid = False

    display_validation(result, show_info=verbose)

    if not result.valid:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
