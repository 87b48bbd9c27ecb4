from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, List, Tuple, Union

DEFAULT_TPB = 960
DEFAULT_BPM = 120
DEFAULT_VELOCITY = 100
DEFAULT_CHANNEL = 0
BASE_OCTAVE = 4

# --- Pass 1: parsed ABC ---

@dataclass(frozen=True)
class Header:
    title: str = "Untitled"
    key: str = "C"
    meter: str = "4/4"
    tempo: int = DEFAULT_BPM
    number: Optional[int] = None          # X:
    default_length: Optional[str] = None  # L:
    composer: Optional[str] = None        # C:

@dataclass(frozen=True)
class Note:
    letter: str          # A-G / a-g, case kept
    midi: int            # not clamped, see validate_midi_notes
    duration: float      # relative units, 1 = default length
    accidental: str = ""
    octave: int = BASE_OCTAVE

@dataclass(frozen=True)
class Metadata:
    comments: Tuple[str, ...] = ()
    bar_count: int = 0

@dataclass(frozen=True)
class ParsedMusic:
    header: Header
    notes: Tuple[Note, ...]
    metadata: Metadata = field(default_factory=Metadata)

@dataclass
class ValidationReport:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationReport":
        return cls(is_valid=not errors, errors=list(errors))

# --- Pass 2: MIDI events ---

@dataclass(frozen=True)
class TempoEvent:
    bpm: int

@dataclass(frozen=True)
class ProgramChange:
    instrument: int
    channel: int = DEFAULT_CHANNEL

@dataclass(frozen=True)
class NoteEvent:
    pitch: str           # e.g. "C#4"
    duration: str        # tick class, e.g. "eighth"
    velocity: int = DEFAULT_VELOCITY
    channel: int = DEFAULT_CHANNEL

@dataclass(frozen=True)
class ControllerChange:
    controller: int
    value: int
    channel: int = DEFAULT_CHANNEL

@dataclass(frozen=True)
class TextEvent:
    text: str

MidiEvent = Union[TempoEvent, ProgramChange, NoteEvent, ControllerChange, TextEvent]
