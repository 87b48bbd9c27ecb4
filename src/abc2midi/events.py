# src/abc2midi/events.py
from __future__ import annotations
import re
from typing import Any, Dict, Iterable, List, Optional
from .models import (
    ParsedMusic, Note, ValidationReport, MidiEvent,
    TempoEvent, ProgramChange, NoteEvent, ControllerChange, TextEvent,
    DEFAULT_BPM, DEFAULT_TPB, DEFAULT_VELOCITY, DEFAULT_CHANNEL,
)
from .util.time import beats_to_ticks

NOTE_NAMES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

# relative length unit -> tick class
DURATION_TO_TICK_CLASS: Dict[float, str] = {
    0.25: "thirty-second",
    0.5: "sixteenth",
    1: "eighth",
    2: "quarter",
    4: "half",
    8: "whole",
}
FALLBACK_TICK_CLASS = "eighth"

# tick class -> length in beats (quarter = 1 beat)
TICK_CLASS_BEATS: Dict[str, float] = {
    "thirty-second": 0.125,
    "sixteenth": 0.25,
    "eighth": 0.5,
    "quarter": 1.0,
    "half": 2.0,
    "whole": 4.0,
}

INSTRUMENTS: Dict[str, int] = {
    "piano": 0,
    "violin": 40,
    "flute": 73,
    "guitar": 24,
    "bass": 32,
}

SUSTAIN_CC = 64
MODULATION_CC = 1

_PITCH_RE = re.compile(r"^([A-G]#?)(-?\d+)$")

# ---------- lookups ----------

def midi_note_to_pitch(midi: int) -> str:
    """60 -> "C4", 69 -> "A4", 0 -> "C-1"."""
    octave = midi // 12 - 1
    return f"{NOTE_NAMES[midi % 12]}{octave}"

def pitch_to_midi(pitch: str) -> int:
    m = _PITCH_RE.match(pitch)
    if not m:
        raise ValueError(f"Not a pitch name: {pitch!r}")
    name, octave = m.group(1), int(m.group(2))
    return (octave + 1) * 12 + NOTE_NAMES.index(name)

def duration_to_tick_class(duration: float) -> str:
    # unknown lengths (3, 6, ...) silently become eighths
    return DURATION_TO_TICK_CLASS.get(duration, FALLBACK_TICK_CLASS)

def tick_class_to_ticks(tick_class: str, tpb: int = DEFAULT_TPB) -> int:
    return beats_to_ticks(TICK_CLASS_BEATS[tick_class], tpb)

def instrument_program(name: Optional[str]) -> int:
    return INSTRUMENTS.get((name or "").strip().lower(), 0)

# ---------- event building ----------

def _cfg_int(cfg: Optional[Dict[str, Any]], key: str, default: int) -> int:
    try:
        return int((cfg or {}).get(key, default))
    except (TypeError, ValueError):
        return default

def note_events(notes: Iterable[Note], cfg: Optional[Dict[str, Any]] = None) -> List[NoteEvent]:
    velocity = _cfg_int(cfg, "velocity", DEFAULT_VELOCITY)
    channel = _cfg_int(cfg, "channel", DEFAULT_CHANNEL)
    return [
        NoteEvent(
            pitch=midi_note_to_pitch(n.midi),
            duration=duration_to_tick_class(n.duration),
            velocity=velocity,
            channel=channel,
        )
        for n in notes
    ]

def build_events(
    parsed: ParsedMusic,
    cfg: Optional[Dict[str, Any]] = None,
    instrument: Optional[str] = None,
    title: Optional[str] = None,
    composer: Optional[str] = None,
) -> List[MidiEvent]:
    """
    Event stream for one track, in playback order:
    [text(title)] [text(composer)] tempo, program change, one note per parsed note.
    """
    events: List[MidiEvent] = []
    if title:
        events.append(TextEvent(title))
    if composer:
        events.append(TextEvent(composer))

    default_bpm = _cfg_int(cfg, "default_tempo", DEFAULT_BPM)
    events.append(TempoEvent(parsed.header.tempo or default_bpm))

    if instrument is None:
        instrument = (cfg or {}).get("instrument", "piano")
    events.append(ProgramChange(
        instrument=instrument_program(instrument),
        channel=_cfg_int(cfg, "channel", DEFAULT_CHANNEL),
    ))

    events.extend(note_events(parsed.notes, cfg))
    return events

def effect_events(sustain: bool = False, vibrato: bool = False,
                  channel: int = DEFAULT_CHANNEL) -> List[ControllerChange]:
    out: List[ControllerChange] = []
    if sustain:
        out.append(ControllerChange(SUSTAIN_CC, 127, channel))
    if vibrato:
        out.append(ControllerChange(MODULATION_CC, 64, channel))
    return out

# ---------- validation ----------

def validate_midi_notes(notes: Iterable[Note]) -> ValidationReport:
    errors: List[str] = []
    for i, n in enumerate(notes, start=1):
        if n.midi < 0 or n.midi > 127:
            errors.append(f"Note {i}: MIDI note {n.midi} out of range (0-127)")
        if n.duration <= 0:
            errors.append(f"Note {i}: invalid duration {n.duration}")
    return ValidationReport.from_errors(errors)
