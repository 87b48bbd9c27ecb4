# src/abc2midi/write.py
from __future__ import annotations
import io
import mido
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from .models import (
    ParsedMusic, MidiEvent, TempoEvent, ProgramChange, NoteEvent,
    ControllerChange, TextEvent, DEFAULT_TPB, DEFAULT_CHANNEL,
)
from .events import build_events, effect_events, pitch_to_midi, tick_class_to_ticks
from .config import get_ticks_per_beat

# ---------- internal helpers ----------

MAX_TEMPO_MICRO = 0xFFFFFF  # set_tempo is a 24-bit field
MIDI_CHARSET = "utf-8"

def _bpm_to_micro(bpm: float) -> int:
    micro = int(round(60_000_000 / max(1e-6, float(bpm))))
    return max(1, min(MAX_TEMPO_MICRO, micro))

def _new_midi(smf_type: int, tpb: int) -> mido.MidiFile:
    return mido.MidiFile(type=smf_type, ticks_per_beat=tpb, charset=MIDI_CHARSET)

def _tpb(cfg: Optional[Dict[str, Any]]) -> int:
    return get_ticks_per_beat(cfg) if cfg else DEFAULT_TPB

def _emit_events(track: mido.MidiTrack, events: Iterable[MidiEvent], tpb: int):
    """Appends events in order. Notes are monophonic: on at delta 0, off after their tick length."""
    for ev in events:
        if isinstance(ev, TempoEvent):
            track.append(mido.MetaMessage("set_tempo", tempo=_bpm_to_micro(ev.bpm), time=0))
        elif isinstance(ev, TextEvent):
            track.append(mido.MetaMessage("text", text=ev.text, time=0))
        elif isinstance(ev, ProgramChange):
            track.append(mido.Message("program_change", program=ev.instrument, channel=ev.channel, time=0))
        elif isinstance(ev, ControllerChange):
            track.append(mido.Message("control_change", control=ev.controller, value=ev.value,
                                      channel=ev.channel, time=0))
        elif isinstance(ev, NoteEvent):
            note = pitch_to_midi(ev.pitch)
            track.append(mido.Message("note_on", note=note, velocity=ev.velocity, channel=ev.channel, time=0))
            track.append(mido.Message("note_off", note=note, velocity=0, channel=ev.channel,
                                      time=tick_class_to_ticks(ev.duration, tpb)))
        else:
            raise TypeError(f"Unknown MIDI event: {ev!r}")

def _to_bytes(mid: mido.MidiFile) -> bytes:
    buf = io.BytesIO()
    mid.save(file=buf)
    return buf.getvalue()

def _single_track(events: Iterable[MidiEvent], tpb: int) -> bytes:
    mid = _new_midi(0, tpb)
    track = mido.MidiTrack()
    _emit_events(track, events, tpb)
    mid.tracks.append(track)
    return _to_bytes(mid)

# ---------- public generator APIs ----------

def generate(parsed: ParsedMusic, cfg: Optional[Dict[str, Any]] = None) -> bytes:
    """One track: tempo, piano program change, then every note in order."""
    tpb = _tpb(cfg)
    return _single_track(build_events(parsed, cfg), tpb)

def generate_multi_track(
    parsed: ParsedMusic,
    instruments: Optional[List[str]] = None,
    cfg: Optional[Dict[str, Any]] = None,
) -> bytes:
    """
    SMF type 1 with one track per instrument name. Every track carries the full
    note sequence; notes are not split between instruments. Unknown names play
    as piano. Tempo is written to the first track only.
    """
    tpb = _tpb(cfg)
    mid = _new_midi(1, tpb)
    for idx, name in enumerate(instruments or ["piano"]):
        events = build_events(parsed, cfg, instrument=name)
        if idx > 0:
            events = [e for e in events if not isinstance(e, TempoEvent)]
        mt = mido.MidiTrack()
        mt.append(mido.MetaMessage("track_name", name=str(name), time=0))
        _emit_events(mt, events, tpb)
        mid.tracks.append(mt)
    return _to_bytes(mid)

def add_effects(track: mido.MidiTrack, sustain: bool = False, vibrato: bool = False,
                channel: int = DEFAULT_CHANNEL) -> mido.MidiTrack:
    """Appends sustain pedal (CC64=127) and/or modulation wheel (CC1=64) to the track."""
    _emit_events(track, effect_events(sustain, vibrato, channel), DEFAULT_TPB)
    return track

def generate_with_effects(
    parsed: ParsedMusic,
    sustain: bool = False,
    vibrato: bool = False,
    cfg: Optional[Dict[str, Any]] = None,
) -> bytes:
    tpb = _tpb(cfg)
    events = build_events(parsed, cfg)
    head = [e for e in events if not isinstance(e, NoteEvent)]
    notes = [e for e in events if isinstance(e, NoteEvent)]
    channel = head[-1].channel if head and isinstance(head[-1], ProgramChange) else DEFAULT_CHANNEL

    mid = _new_midi(0, tpb)
    track = mido.MidiTrack()
    _emit_events(track, head, tpb)
    add_effects(track, sustain=sustain, vibrato=vibrato, channel=channel)
    _emit_events(track, notes, tpb)
    mid.tracks.append(track)
    return _to_bytes(mid)

def generate_with_metadata(
    parsed: ParsedMusic,
    title: Optional[str] = None,
    composer: Optional[str] = None,
    cfg: Optional[Dict[str, Any]] = None,
) -> bytes:
    """Like generate(), with title/composer text events in front."""
    tpb = _tpb(cfg)
    return _single_track(build_events(parsed, cfg, title=title, composer=composer), tpb)

def optimize_midi(data: bytes) -> bytes:
    # placeholder, returns the input unchanged
    return data

def write_midi(data: bytes, out_path: str):
    path = Path(out_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
