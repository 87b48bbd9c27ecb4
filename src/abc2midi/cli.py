from __future__ import annotations
import argparse, pathlib, sys, traceback
from . import write
from .config import load_config
from .convert import validate_input, validate_music_structure, save_midi
from .parse import parse_abc

def main(argv=None):
    p = argparse.ArgumentParser(description="ABC notation -> MIDI")
    p.add_argument("--in", dest="infile", required=True, help="Input ABC file (.abc/.txt)")
    p.add_argument("--out", dest="outfile", required=False, help="Output MIDI file (.mid)")
    p.add_argument("--config", dest="config", default=None, help="YAML config (defaults applied if omitted)")

    p.add_argument("--instruments", default=None,
                   help="Comma separated instrument names, one track each (piano, violin, flute, guitar, bass)")
    p.add_argument("--sustain", action="store_true", help="Add sustain pedal controller")
    p.add_argument("--vibrato", action="store_true", help="Add modulation wheel controller")
    p.add_argument("--title", default=None, help="Title text event")
    p.add_argument("--composer", default=None, help="Composer text event")
    p.add_argument("--optimize", action="store_true", help="Run the MIDI optimization pass")
    p.add_argument("--validate-only", action="store_true", help="Only validate the input")

    args = p.parse_args(argv)

    # one generator per run: tracks, effects and text events are separate outputs
    modes = [flag for flag, used in (
        ("--instruments", bool(args.instruments)),
        ("--sustain/--vibrato", args.sustain or args.vibrato),
        ("--title/--composer", bool(args.title or args.composer)),
    ) if used]
    if len(modes) > 1:
        p.error(f"cannot combine {' and '.join(modes)}")

    in_path = pathlib.Path(args.infile).expanduser().resolve()
    if not in_path.exists():
        print(f"[cli] ERROR: Input not found: {in_path}", file=sys.stderr)
        sys.exit(1)

    cfg = load_config(args.config)
    print(f"[cli] infile = {in_path}")

    text = in_path.read_text(encoding="utf-8")
    report = validate_input(text)
    for err in report.errors:
        print(f"[cli] WARNING: {err}", file=sys.stderr)
    if args.validate_only:
        print(f"[cli] valid = {report.is_valid}")
        sys.exit(0 if report.is_valid else 1)
    if not report.is_valid:
        print("[cli] ERROR: invalid input", file=sys.stderr)
        sys.exit(1)

    try:
        parsed = parse_abc(text)
        structure = validate_music_structure(parsed)
        if not structure.is_valid:
            for err in structure.errors:
                print(f"[cli] ERROR: {err}", file=sys.stderr)
            sys.exit(1)

        if args.instruments:
            names = [n.strip() for n in args.instruments.split(",") if n.strip()]
            data = write.generate_multi_track(parsed, names, cfg)
        elif args.sustain or args.vibrato:
            data = write.generate_with_effects(parsed, sustain=args.sustain, vibrato=args.vibrato, cfg=cfg)
        elif args.title or args.composer:
            data = write.generate_with_metadata(parsed, title=args.title, composer=args.composer, cfg=cfg)
        else:
            data = write.generate(parsed, cfg)
        if args.optimize:
            data = write.optimize_midi(data)
    except Exception:
        traceback.print_exc()
        sys.exit(2)

    out_path = pathlib.Path(args.outfile).expanduser().resolve() if args.outfile else in_path.with_suffix(".mid")
    saved = save_midi(data, str(out_path))
    if not saved["success"]:
        print(f"[cli] ERROR: {saved['error']}: {'; '.join(saved['details'])}", file=sys.stderr)
        sys.exit(1)
    print(f"[cli] midi -> {out_path}")

    h = parsed.header
    print(f"[cli] Done. title={h.title!r} key={h.key} tempo={h.tempo} notes={len(parsed.notes)}")
