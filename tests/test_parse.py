from abc2midi.models import Header, Note
from abc2midi.parse import (
    parse_abc, parse_header, parse_tempo, accidental_offset, octave_shift, validate_abc,
)


def _midis(text):
    return [n.midi for n in parse_abc(text).notes]


# ---------- header ----------

def test_scale_header_and_notes(scale_abc):
    pm = parse_abc(scale_abc)
    assert pm.header.title == "Test Escala"
    assert pm.header.key == "C"
    assert pm.header.meter == "4/4"
    assert pm.header.tempo == 120
    assert pm.header.number == 1
    assert len(pm.notes) == 8
    assert [n.midi for n in pm.notes] == [60, 62, 64, 65, 67, 69, 71, 72]

def test_defaults_without_header():
    pm = parse_abc("CDE")
    assert pm.header == Header()
    assert pm.header.title == "Untitled"
    assert len(pm.notes) == 3

def test_all_fields_populated():
    text = "X:3\nT: Tune \nC:Trad\nM:3/4\nL:1/8\nQ:1/4=100\nK:G\nGAB"
    h = parse_abc(text).header
    assert h == Header(title="Tune", key="G", meter="3/4", tempo=100,
                       number=3, default_length="1/8", composer="Trad")

def test_header_boundary_skips_blank_voice_and_instruction_lines():
    lines = ["X:1", "", "V:1", "I:linebreak $", "K:D", "D", "K:G"]
    header, boundary = parse_header(lines)
    assert header.key == "D"
    assert boundary == 5

def test_header_only_input_has_no_notes():
    pm = parse_abc("X:1\nT:Only\nK:C")
    assert pm.notes == ()
    assert pm.header.title == "Only"

def test_non_numeric_reference_number():
    assert parse_abc("X:abc\nK:C\nC").header.number is None

def test_tempo_parsing():
    assert parse_tempo("1/4=120") == 120
    assert parse_tempo("3/8=72") == 72
    assert parse_tempo("90") == 90
    assert parse_tempo("abc") == 120
    assert parse_tempo("") == 120

# ---------- notes ----------

def test_accidentals():
    assert _midis("^C") == [61]
    assert _midis("_C") == [59]
    assert _midis("=^C") == [60]
    assert _midis("^=C") == [60]
    assert _midis("C^") == [61]
    assert _midis("^_C") == [60]

def test_accidental_offset_natural_wins():
    assert accidental_offset("") == 0
    assert accidental_offset("^") == 1
    assert accidental_offset("_") == -1
    assert accidental_offset("^=") == 0
    assert accidental_offset("_^^") == 0

def test_octave_markers():
    assert _midis("C'") == [72]
    assert _midis("C,") == [48]
    assert _midis("C''") == [84]
    assert _midis("c,") == [60]
    assert octave_shift("',,") == -1

def test_double_comma_note():
    pm = parse_abc("C,,")
    assert pm.notes == (Note(letter="C", midi=36, duration=1, accidental=",,", octave=2),)

def test_lowercase_is_octave_above():
    notes = parse_abc("cdefgab").notes
    assert [n.midi for n in notes] == [72, 74, 76, 77, 79, 81, 83]
    assert [n.letter for n in notes] == list("cdefgab")
    assert all(n.octave == 4 for n in notes)

def test_durations():
    notes = parse_abc("C2 D4 E F16 G0").notes
    assert [n.duration for n in notes] == [2, 4, 1, 16, 0]

def test_sharp_after_letter_belongs_to_that_note():
    assert _midis("G^AB") == [68, 69, 71]

def test_body_lines_are_joined():
    assert _midis("X:1\nK:C\nCD|\nEF|]") == [60, 62, 64, 65]

def test_notes_out_of_range_are_kept():
    assert _midis("c''''''") == [144]
    assert _midis("C,,,,,,") == [-12]

def test_parse_is_repeatable(scale_abc):
    assert parse_abc(scale_abc) == parse_abc(scale_abc)

# ---------- metadata ----------

def test_metadata_comments_and_bars():
    md = parse_abc("X:1\nK:C\nCD | EF | % first\n% second\nGA|]").metadata
    assert md.comments == ("first", "second")
    assert md.bar_count == 3

# ---------- validation ----------

def test_validate_scale_is_valid(scale_abc):
    report = validate_abc(scale_abc)
    assert report.is_valid
    assert report.errors == []

def test_validate_empty():
    report = validate_abc("   \n ")
    assert not report.is_valid
    assert len(report.errors) == 1

def test_validate_unstructured_text():
    report = validate_abc("ABC inválido sin estructura")
    assert not report.is_valid
    assert any("K:" in e for e in report.errors)
    assert any("M:" in e for e in report.errors)
    assert any("Invalid characters" in e for e in report.errors)

def test_validate_no_notes():
    report = validate_abc("X:1\nM:4/4\nK:\n")
    assert report.errors == ["No valid notes found (A-G, a-g)"]

def test_validate_lists_each_invalid_char_once():
    report = validate_abc("X:1\nM:4/4\nK:C\nCxDxy")
    assert report.errors == ["Invalid characters in notes: x, y"]

def test_validate_ignores_all_header_tags():
    text = "X:1\nT:Title!\nC:Somebody\nM:4/4\nL:1/4\nQ:1/4=90\nV:1\nI:abc\nK:C\n[CE] (DF) {g}A2 | B,4 |]"
    assert validate_abc(text).is_valid
