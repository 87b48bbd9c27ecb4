from __future__ import annotations

def beats_to_ticks(beats: float, tpb: int) -> int:
    if tpb <= 0:
        tpb = 960
    return int(round(beats * tpb))
