"""Test configuration and fixtures."""

import struct

import pytest

# End of Track meta event at delta 0
END_OF_TRACK = b"\x00\xff\x2f\x00"


def track_chunk(body: bytes, length: int = None) -> bytes:
    """Wrap event bytes in an MTrk chunk; length defaults to len(body)."""
    return b"MTrk" + struct.pack(">I", len(body) if length is None else length) + body


def midi_file(tracks, division: int = 480, fmt: int = 1, track_count: int = None) -> bytes:
    """Build SMF bytes from already-framed track chunks."""
    count = len(tracks) if track_count is None else track_count
    header = b"MThd" + struct.pack(">IHHH", 6, fmt, count, division)
    return header + b"".join(tracks)


def pattern_record(ticks, note, bank, velocity, length, pitch=0, reserved=64) -> bytes:
    return bytes([ticks, note, bank, pitch, velocity, reserved]) + struct.pack("<H", length)


MKII_FOOTER_ONE_BAR = bytes([0, 140, 0, 0, 0, 0, 0, 0, 1, 0, 0, 0, 0, 128, 1, 1])
LEGACY_FOOTER = bytes([0, 140, 0, 0, 0, 0, 0, 0, 0, 2, 0, 0, 0, 0, 0, 0])


@pytest.fixture
def simple_midi_data():
    """
    One track at 480 PPQN: tempo 500000, track name "Drums", a kick (36) for
    one beat, then a snare (38) with no Note Off.
    """
    body = (
        b"\x00\xff\x51\x03\x07\xa1\x20"
        b"\x00\xff\x03\x05Drums"
        b"\x00\x90\x24\x64"
        b"\x83\x60\x80\x24\x40"
        b"\x00\x90\x26\x50"
        + END_OF_TRACK
    )
    return midi_file([track_chunk(body)])


@pytest.fixture
def running_status_midi_data():
    """Four Note On events sharing one status byte."""
    body = (
        b"\x00\x90\x3c\x64"
        b"\x60\x3c\x00"
        b"\x00\x3e\x64"
        b"\x60\x3e\x00"
        + END_OF_TRACK
    )
    return midi_file([track_chunk(body)], fmt=0)


@pytest.fixture
def mkii_pattern_data():
    """Two notes (B1 and A1), a rest and a one-bar MKII footer."""
    return (
        pattern_record(0, 63, 64, 100, 240)
        + pattern_record(240, 47, 64, 90, 120)
        + pattern_record(255, 128, 0, 0, 0, reserved=0)
        + MKII_FOOTER_ONE_BAR
    )


@pytest.fixture
def legacy_pattern_data():
    """One note on legacy pad A1 (note 47, bank switch 0)."""
    return pattern_record(0, 47, 0, 127, 96) + LEGACY_FOOTER


@pytest.fixture
def pattern_file(tmp_path, mkii_pattern_data):
    path = tmp_path / "PTN00001.BIN"
    path.write_bytes(mkii_pattern_data)
    return path


@pytest.fixture
def midi_path(tmp_path, simple_midi_data):
    path = tmp_path / "beat.mid"
    path.write_bytes(simple_midi_data)
    return path
