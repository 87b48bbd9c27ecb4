# src/abc2midi/parse.py
from __future__ import annotations
import re
from typing import Dict, List, Optional, Tuple
from .models import Header, Note, Metadata, ParsedMusic, ValidationReport, BASE_OCTAVE, DEFAULT_BPM

# uppercase = octave 4 (C=60), lowercase = octave 5 (c=72)
LETTER_TO_MIDI: Dict[str, int] = {
    "C": 60, "D": 62, "E": 64, "F": 65, "G": 67, "A": 69, "B": 71,
    "c": 72, "d": 74, "e": 76, "f": 77, "g": 79, "a": 81, "b": 83,
}

HEADER_TAGS = ("X:", "T:", "C:", "M:", "L:", "K:", "Q:", "V:", "I:")

# letter, then any mix of accidental/octave markers, then digits.
# Accidentals written before the letter (ABC style) are accepted too.
NOTE_RE = re.compile(r"([\^_=]*)([A-Ga-g])([\^_=',]*)(\d*)")
TEMPO_RE = re.compile(r"(\d+)/(\d+)=(\d+)")
LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")
COMMENT_RE = re.compile(r"%.*$", re.MULTILINE)
INVALID_CHAR_RE = re.compile(r"[^A-Ga-g\s,.'^_=\d|\[\](){}]")


def _leading_int(text: str) -> Optional[int]:
    m = LEADING_INT_RE.match(text)
    return int(m.group(1)) if m else None

def parse_tempo(value: str) -> int:
    """Q: field -> BPM. "1/4=120" -> 120, "90" -> 90, anything else -> 120."""
    m = TEMPO_RE.search(value)
    if m:
        return int(m.group(3))
    bpm = _leading_int(value)
    return DEFAULT_BPM if bpm is None else bpm

def accidental_offset(markers: str) -> int:
    """Semitone offset of the captured marker text; '=' wins over '^'/'_'."""
    if "=" in markers:
        return 0
    offset = 0
    if "^" in markers:
        offset += 1
    if "_" in markers:
        offset -= 1
    return offset

def octave_shift(markers: str) -> int:
    return markers.count("'") - markers.count(",")

# ---------- header / body ----------

def parse_header(lines: List[str]) -> Tuple[Header, int]:
    """
    Scans header lines from the top. Returns the header and the index of the
    first body line (len(lines) if the whole input is header).
    """
    fields: Dict[str, object] = {}
    boundary = len(lines)

    for i, raw in enumerate(lines):
        line = raw.strip()
        tag, value = line[:2], line[2:].strip()
        if tag == "X:":
            fields["number"] = _leading_int(value)
        elif tag == "T:":
            fields["title"] = value
        elif tag == "C:":
            fields["composer"] = value
        elif tag == "K:":
            fields["key"] = value
        elif tag == "M:":
            fields["meter"] = value
        elif tag == "Q:":
            fields["tempo"] = parse_tempo(value)
        elif tag == "L:":
            fields["default_length"] = value
        elif line == "" or tag in ("V:", "I:"):
            continue
        else:
            boundary = i
            break

    return Header(**fields), boundary

def parse_body(lines: List[str]) -> List[Note]:
    notes: List[Note] = []
    body = " ".join(lines)

    for m in NOTE_RE.finditer(body):
        prefix, letter, markers, digits = m.groups()
        accidental = prefix + markers
        shift = octave_shift(markers)
        midi = LETTER_TO_MIDI[letter] + accidental_offset(accidental) + shift * 12
        notes.append(Note(
            letter=letter,
            midi=midi,
            duration=int(digits) if digits else 1,
            accidental=accidental,
            octave=BASE_OCTAVE + shift,
        ))

    return notes

def extract_metadata(text: str) -> Metadata:
    comments = tuple(c[1:].strip() for c in COMMENT_RE.findall(text))
    return Metadata(comments=comments, bar_count=text.count("|"))

def parse_abc(text: str) -> ParsedMusic:
    lines = text.strip().split("\n")
    header, boundary = parse_header(lines)
    notes = parse_body(lines[boundary:])
    return ParsedMusic(header=header, notes=tuple(notes), metadata=extract_metadata(text))

# ---------- validation ----------

def validate_abc(text: str) -> ValidationReport:
    """
    Advisory syntax check. Never stops parsing; the caller decides whether to
    generate anyway.
    """
    if not text or not text.strip():
        return ValidationReport.from_errors(["ABC notation must not be empty"])

    errors: List[str] = []
    if not re.search(r"[A-Ga-g]", text):
        errors.append("No valid notes found (A-G, a-g)")
    if "K:" not in text:
        errors.append("Missing key/clef field (K:)")
    if "M:" not in text:
        errors.append("Missing meter field (M:)")

    note_section = " ".join(
        line for line in text.split("\n")
        if not line.startswith(HEADER_TAGS) and line.strip() != ""
    )
    if note_section:
        # dict keeps first-seen order
        invalid = list(dict.fromkeys(INVALID_CHAR_RE.findall(note_section)))
        if invalid:
            errors.append(f"Invalid characters in notes: {', '.join(invalid)}")

    return ValidationReport.from_errors(errors)
