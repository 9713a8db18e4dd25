"""
MIDI lookup tables: controller names, SysEx manufacturers, system message
names, key signatures and note names.

Based on the MIDI 1.0 Detailed Specification and the Standard MIDI File
format. Reference: https://www.midi.org/specifications
"""

import re
from typing import Dict

CONTROLLER_NAMES: Dict[int, str] = {
    0x00: "Bank Select (MSB)",
    0x01: "Modulation Wheel (MSB)",
    0x02: "Breath Controller (MSB)",
    0x04: "Foot Controller (MSB)",
    0x05: "Portamento Time (MSB)",
    0x06: "Data Entry (MSB)",
    0x07: "Volume (MSB)",
    0x08: "Balance (MSB)",
    0x0A: "Pan (MSB)",
    0x0B: "Expression Controller (MSB)",
    0x0C: "Effect Control 1 (MSB)",
    0x0D: "Effect Control 2 (MSB)",
    0x10: "General Purpose Controller 1 (MSB)",
    0x11: "General Purpose Controller 2 (MSB)",
    0x12: "General Purpose Controller 3 (MSB)",
    0x13: "General Purpose Controller 4 (MSB)",
    0x20: "Bank Select (LSB)",
    0x21: "Modulation Wheel (LSB)",
    0x22: "Breath Controller (LSB)",
    0x24: "Foot Controller (LSB)",
    0x25: "Portamento Time (LSB)",
    0x26: "Data Entry (LSB)",
    0x27: "Volume (LSB)",
    0x28: "Balance (LSB)",
    0x2A: "Pan (LSB)",
    0x2B: "Expression Controller (LSB)",
    0x2C: "Effect Control 1 (LSB)",
    0x2D: "Effect Control 2 (LSB)",
    0x30: "General Purpose Controller 1 (LSB)",
    0x31: "General Purpose Controller 2 (LSB)",
    0x32: "General Purpose #3 LSB",
    0x33: "General Purpose #4 LSB",
    0x40: "Hold Pedal #1",
    0x41: "Portamento (GS)",
    0x42: "Sostenuto (GS)",
    0x43: "Soft Pedal (GS)",
    0x44: "Legato Pedal",
    0x45: "Hold Pedal #2",
    0x46: "Sound Variation",
    0x47: "Sound Timbre",
    0x48: "Sound Release Time",
    0x49: "Sound Attack Time",
    0x4A: "Sound Brightness",
    0x4B: "Sound Control #6",
    0x4C: "Sound Control #7",
    0x4D: "Sound Control #8",
    0x4E: "Sound Control #9",
    0x4F: "Sound Control #10",
    0x50: "GP Control #5",
    0x51: "GP Control #6",
    0x52: "GP Control #7",
    0x53: "GP Control #8",
    0x54: "Portamento Control (GS)",
    0x5B: "Reverb Level (GS)",
    0x5C: "Tremolo Depth",
    0x5D: "Chorus Level (GS)",
    0x5E: "Celeste Depth",
    0x5F: "Phaser Depth",
    0x60: "Data Increment",
    0x61: "Data Decrement",
    0x62: "NRPN Parameter LSB (GS)",
    0x63: "NRPN Parameter MSB (GS)",
    0x64: "RPN Parameter LSB",
    0x65: "RPN Parameter MSB",
    0x78: "All Sound Off (GS)",
    0x79: "Reset All Controllers",
    0x7A: "Local On/Off",
    0x7B: "All Notes Off",
    0x7C: "Omni Mode Off",
    0x7D: "Omni Mode On",
    0x7E: "Mono Mode On",
    0x7F: "Poly Mode On",
}

MANUFACTURERS: Dict[int, str] = {
    0x01: "Sequential Circuits",
    0x02: "Big Briar",
    0x03: "Octave/Plateau",
    0x04: "Moog",
    0x05: "Passport Designs",
    0x06: "Lexicon",
    0x07: "Kurzweil",
    0x08: "Fender",
    0x09: "Gulbransen",
    0x0A: "Delta Labs",
    0x0B: "Sound Comp",
    0x0C: "General Electro",
    0x0D: "Matthews Research",
    0x10: "Oberheim",
    0x11: "PAIA",
    0x12: "Simmons",
    0x13: "DigiDesign",
    0x14: "Fairlight",
    0x15: "JL Cooper",
    0x16: "Lowery",
    0x17: "Lin",
    0x18: "Emu",
    0x1B: "Peavey",
    0x20: "BonTempi",
    0x21: "S.I.E.L.",
    0x23: "SyntheAxe",
    0x24: "Hohner",
    0x25: "Crumar",
    0x26: "Solton",
    0x27: "Jellinghaus Ms",
    0x28: "CTS",
    0x29: "PPG",
    0x2F: "Elka",
    0x36: "Cheetah",
    0x3E: "Waldorf",
    0x40: "Kawai",
    0x41: "Roland",
    0x42: "Korg",
    0x43: "Yamaha",
    0x44: "Casio",
    0x46: "Kamiya Studio",
    0x47: "Akai",
    0x48: "Victor",
    0x4B: "Fujitsu",
    0x4C: "Sony",
    0x4E: "Teac",
    0x50: "Matsushita",
    0x51: "Fostex",
    0x52: "Zoom",
    0x54: "Matsushita",
    0x55: "Suzuki",
    0x56: "Fuji Sound",
    0x57: "Acoustic Technical Laboratory",
    0x7E: "Universal Non Realtime Message (UNRT)",
    0x7F: "Universal Realtime Message (URT)",
}

# 0xF1-0xFE system common / real-time messages
SYSTEM_MESSAGES: Dict[int, str] = {
    0xF1: "System Common Messages - MIDI Time Code Quarter Frame",
    0xF2: "Song Position Pointer",
    0xF3: "System Common Messages - Song Select",
    0xF4: "System Real Time Messages - Undefined 0xF4 (Reserved)",
    0xF5: "System Real Time Messages - Undefined 0xF5 (Reserved)",
    0xF6: "System Common Messages - Tune Request",
    0xF7: "System Common Messages - EOX",
    0xF8: "System Real Time Messages - MIDI Clock",
    0xF9: "System Real Time Messages - Undefined 0xF9 (Reserved)",
    0xFA: "System Real Time Messages - Start",
    0xFB: "System Real Time Messages - Continue",
    0xFC: "System Real Time Messages - Stop",
    0xFD: "System Real Time Messages - Undefined 0xFD (Reserved)",
    0xFE: "System Real Time Messages - Active Sensing",
}

RESERVED_SYSTEM_MESSAGES = (0xF4, 0xF5, 0xF9, 0xFD)

MLIVE_TAGS: Dict[int, str] = {
    0x01: "Genre",
    0x02: "Artist",
    0x03: "Composer",
    0x04: "Duration (seconds)",
    0x05: "BPM (Tempo)",
}

# Key signature: number of sharps (positive) or flats (negative)
KEY_NAMES: Dict[int, str] = {
    -7: "C♭",
    -6: "G♭",
    -5: "D♭",
    -4: "A♭",
    -3: "E♭",
    -2: "B♭",
    -1: "F",
    0: "C",
    1: "G",
    2: "D",
    3: "A",
    4: "E",
    5: "B",
    6: "F♯",
    7: "C♯",
}

# SMPTE offset hour byte bits 5-6
SMPTE_FRAME_RATES = {0: 24, 1: 25, 2: 29.97, 3: 30}

NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

NOTE_VALUES = {
    "C": 0,
    "C#": 1,
    "D": 2,
    "D#": 3,
    "E": 4,
    "E#": 5,
    "F": 5,
    "F#": 6,
    "G": 7,
    "G#": 8,
    "A": 9,
    "A#": 10,
    "B": 11,
    "B#": 0,
}

_NOTE_PATTERN = re.compile(r"^([A-G]#?)(-?\d+)$")


def get_controller_name(controller: int) -> str:
    """Get controller name for a CC number."""
    return CONTROLLER_NAMES.get(controller, f"Unknown Controller: {controller}")


def get_manufacturer_name(manufacturer_id: int) -> str:
    """Get manufacturer name for a SysEx manufacturer ID."""
    return MANUFACTURERS.get(manufacturer_id, f"Unknown Manufacturer: {manufacturer_id:X}")


def get_system_message_name(status: int) -> str:
    return SYSTEM_MESSAGES.get(status, f"System Message 0x{status:02X}")


def get_key_name(key: int) -> str:
    return KEY_NAMES.get(key, "Unknown Key")


def midi_to_note(value: int, octave_offset: int = 2) -> str:
    """
    Convert a MIDI note number to a note name.

    Args:
        value: MIDI note (0-127)
        octave_offset: Octave shift; with the default of 2, note 60 is "C3"

    Returns:
        Note name such as "C3" or "F#-1"

    Raises:
        ValueError: If value is not a MIDI note
    """
    if not 0 <= value <= 127:
        raise ValueError(f"Invalid MIDI value: {value}. Must be between 0 and 127.")
    return f"{NOTE_NAMES[value % 12]}{value // 12 - octave_offset}"


def note_to_midi(note: str, octave_offset: int = 2) -> int:
    """
    Convert a note name such as "C3" to a MIDI note number.

    Raises:
        ValueError: If the name is malformed or outside the MIDI range
    """
    match = _NOTE_PATTERN.match(note)
    if not match:
        raise ValueError(f"Invalid note format: {note}")
    name, octave = match.groups()
    value = (int(octave) + octave_offset) * 12 + NOTE_VALUES[name]
    if not 0 <= value <= 127:
        raise ValueError(f"Note out of valid MIDI range: {note}")
    return value
