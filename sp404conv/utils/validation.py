"""
Data validation utilities for SP-404 pattern and MIDI data.
"""

from dataclasses import dataclass


class ValidationError(ValueError):
    """Raised when a value cannot be encoded into its target field."""

    pass


@dataclass
class ValidationIssue:
    """A single non-fatal problem found while decoding or validating."""

    severity: str  # "error", "warning", "info"
    area: str
    offset: int
    message: str
    expected: str = ""
    actual: str = ""

    def __str__(self) -> str:
        text = f"[{self.severity}] {self.area}: {self.message}"
        if self.expected or self.actual:
            text += f" (expected {self.expected}, got {self.actual})"
        return text


def validate_range(value: int, low: int, high: int, name: str = "value") -> None:
    """
    Validate that an integer lies within an inclusive range.

    Args:
        value: The value to validate
        low: Minimum allowed value
        high: Maximum allowed value
        name: Name of the value for error messages

    Raises:
        ValidationError: If value is out of range or not an integer
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if not low <= value <= high:
        raise ValidationError(f"{name} must be {low}-{high}, got {value}")


def validate_midi_value(value: int, name: str = "value") -> None:
    """
    Validate that a value is in MIDI data range (0-127).

    Args:
        value: The value to validate
        name: Name of the value for error messages

    Raises:
        ValidationError: If value is out of range
    """
    validate_range(value, 0, 127, name)


def validate_channel(channel: int) -> None:
    """
    Validate a zero-based MIDI channel number (0-15).

    Args:
        channel: Channel number

    Raises:
        ValidationError: If channel is out of range
    """
    validate_range(channel, 0, 15, "MIDI channel")


def validate_byte(value: int, name: str = "value") -> None:
    """Validate that a value fits in one unsigned byte."""
    validate_range(value, 0, 0xFF, name)


def validate_tempo(bpm: float) -> None:
    """
    Validate a tempo in BPM for a Set Tempo event.

    The microseconds-per-quarter value must fit in 24 bits.

    Raises:
        ValidationError: If tempo is out of range
    """
    if bpm <= 0 or round(60_000_000 / bpm) > 0xFFFFFF:
        raise ValidationError(f"Tempo must be above 3.58 BPM, got {bpm}")
