# src/abc2midi/config.py
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Optional, Union
import copy
import yaml
from .models import DEFAULT_BPM, DEFAULT_CHANNEL, DEFAULT_TPB, DEFAULT_VELOCITY

PKG_ROOT = Path(__file__).resolve().parent
DEFAULT_CFG_PATH = PKG_ROOT / "config.default.yaml"
USER_CFG_PATH = Path.home() / ".config" / "abc2midi" / "config.yaml"

# lowest layer; config.default.yaml and the user file override it in that order
DEFAULTS: Dict[str, Any] = {
    "ticks_per_beat": DEFAULT_TPB,
    "velocity": DEFAULT_VELOCITY,
    "channel": DEFAULT_CHANNEL,
    "default_tempo": DEFAULT_BPM,
    "instrument": "piano",
}

PathLike = Union[str, Path]

def read_layer(path: Optional[PathLike]) -> Dict[str, Any]:
    """One YAML mapping, or {} if the file is missing, unreadable or not a mapping."""
    if path is None:
        return {}
    path = Path(path)
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}

def merge_layers(*layers: Dict[str, Any]) -> Dict[str, Any]:
    """Later layers win; nested mappings merge key by key."""
    merged: Dict[str, Any] = {}
    for layer in layers:
        for key, value in layer.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = merge_layers(merged[key], value)
            else:
                merged[key] = copy.deepcopy(value)
    return merged

def load_config(
    user_path: Optional[PathLike] = None,
    default_path: Optional[PathLike] = None,
) -> Dict[str, Any]:
    return merge_layers(
        DEFAULTS,
        read_layer(default_path or DEFAULT_CFG_PATH),
        read_layer(user_path or USER_CFG_PATH),
    )

def get_ticks_per_beat(cfg: Dict[str, Any]) -> int:
    try:
        tpb = int(cfg.get("ticks_per_beat", DEFAULT_TPB))
    except (TypeError, ValueError):
        return DEFAULT_TPB
    return tpb if tpb > 0 else DEFAULT_TPB
