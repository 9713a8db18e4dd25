"""SP-404 pattern (PTNxxxxx.BIN) reader and writer."""

from sp404conv.formats.pattern.reader import PatternReader, check_footer, read_pattern
from sp404conv.formats.pattern.writer import PatternWriter, build_footer, write_pattern

__all__ = [
    "PatternReader",
    "PatternWriter",
    "build_footer",
    "check_footer",
    "read_pattern",
    "write_pattern",
]
