# src/abc2midi/convert.py
from __future__ import annotations
import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from .models import ParsedMusic, ValidationReport
from .parse import parse_abc, validate_abc
from .events import validate_midi_notes
from . import write

INVALID_INPUT = "Invalid input"
INVALID_STRUCTURE = "Invalid musical structure"
CONVERSION_FAILED = "Conversion failed"

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

@dataclass
class ConversionResult:
    success: bool
    midi: Optional[bytes] = None
    error: Optional[str] = None
    details: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=_now)

    @classmethod
    def failure(cls, error: str, details: List[str]) -> "ConversionResult":
        return cls(success=False, error=error, details=list(details))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "midi_size": len(self.midi) if self.midi is not None else 0,
            "error": self.error,
            "details": list(self.details),
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp,
        }

class ConversionHistory:
    """
    Log of conversion results. Owned by the caller and handed to convert()
    explicitly; nothing in the package keeps one globally.
    """
    def __init__(self):
        self.results: List[ConversionResult] = []

    def __len__(self) -> int:
        return len(self.results)

    def record(self, result: ConversionResult):
        self.results.append(result)

    def clear(self):
        self.results = []

    def get(self, index: int) -> Optional[ConversionResult]:
        if 0 <= index < len(self.results):
            return self.results[index]
        return None

    def stats(self) -> Dict[str, Any]:
        total = len(self.results)
        successful = sum(1 for r in self.results if r.success)
        durations = [r.metadata.get("duration_ms", 0) for r in self.results]
        return {
            "total": total,
            "successful": successful,
            "failed": total - successful,
            "success_rate": (successful / total) * 100 if total else 0.0,
            "average_duration_ms": sum(durations) / total if total else 0.0,
            "last": self.results[-1] if self.results else None,
        }

    def export_json(self) -> str:
        return json.dumps([r.to_dict() for r in self.results], indent=2)

# ---------- validation ----------

def validate_input(text: Any) -> ValidationReport:
    if not isinstance(text, str):
        return ValidationReport.from_errors(["Input must be a text string"])
    if not text.strip():
        return ValidationReport.from_errors(["Input must not be empty"])
    return validate_abc(text)

def validate_music_structure(parsed: ParsedMusic) -> ValidationReport:
    errors: List[str] = []
    if not parsed.notes:
        errors.append("No notes found in the music")
    else:
        errors.extend(validate_midi_notes(parsed.notes).errors)
    return ValidationReport.from_errors(errors)

def _header_metadata(parsed: ParsedMusic) -> Dict[str, Any]:
    h = parsed.header
    return {
        "title": h.title,
        "key": h.key,
        "tempo": h.tempo,
        "meter": h.meter,
        "note_count": len(parsed.notes),
    }

# ---------- conversions ----------

def convert(
    text: Any,
    optimize: bool = False,
    cfg: Optional[Dict[str, Any]] = None,
    history: Optional[ConversionHistory] = None,
) -> ConversionResult:
    """
    validate -> parse -> structural check -> generate. Never raises; failures
    come back as a result with success=False and one of the three error kinds.
    """
    started = time.perf_counter()

    def done(result: ConversionResult) -> ConversionResult:
        result.metadata.setdefault("duration_ms", (time.perf_counter() - started) * 1000.0)
        if history is not None:
            history.record(result)
        return result

    report = validate_input(text)
    if not report.is_valid:
        return done(ConversionResult.failure(INVALID_INPUT, report.errors))

    try:
        parsed = parse_abc(text)
        structure = validate_music_structure(parsed)
        if not structure.is_valid:
            return done(ConversionResult.failure(INVALID_STRUCTURE, structure.errors))

        midi = write.generate(parsed, cfg)
        if optimize:
            midi = write.optimize_midi(midi)
    except Exception as e:
        return done(ConversionResult.failure(CONVERSION_FAILED, [str(e)]))

    return done(ConversionResult(success=True, midi=midi, metadata=_header_metadata(parsed)))

def convert_multi_track(
    text: str,
    instruments: Optional[List[str]] = None,
    cfg: Optional[Dict[str, Any]] = None,
) -> ConversionResult:
    instruments = list(instruments or ["piano"])
    try:
        parsed = parse_abc(text)
        midi = write.generate_multi_track(parsed, instruments, cfg)
    except Exception as e:
        return ConversionResult.failure(CONVERSION_FAILED, [str(e)])
    meta = _header_metadata(parsed)
    meta.update(instruments=instruments, track_count=len(instruments))
    return ConversionResult(success=True, midi=midi, metadata=meta)

def convert_with_effects(
    text: str,
    sustain: bool = False,
    vibrato: bool = False,
    cfg: Optional[Dict[str, Any]] = None,
) -> ConversionResult:
    try:
        parsed = parse_abc(text)
        midi = write.generate_with_effects(parsed, sustain=sustain, vibrato=vibrato, cfg=cfg)
    except Exception as e:
        return ConversionResult.failure(CONVERSION_FAILED, [str(e)])
    meta = _header_metadata(parsed)
    meta["effects"] = {"sustain": sustain, "vibrato": vibrato}
    return ConversionResult(success=True, midi=midi, metadata=meta)

# ---------- files ----------

def convert_file(
    path: str,
    cfg: Optional[Dict[str, Any]] = None,
    history: Optional[ConversionHistory] = None,
) -> ConversionResult:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return ConversionResult.failure("Could not read file", [str(e)])
    return convert(text, cfg=cfg, history=history)

def save_midi(data: bytes, path: str) -> Dict[str, Any]:
    try:
        write.write_midi(data, path)
    except OSError as e:
        return {"success": False, "error": "Could not write MIDI file", "details": [str(e)]}
    return {"success": True, "path": str(path)}
