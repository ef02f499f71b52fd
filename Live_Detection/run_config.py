from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Dict, List, Sequence


STR_KEYS = {"model", "backend", "profile", "video", "out", "log_level"}
INT_KEYS = {"webcam", "rotation", "tflite_threads", "every", "max_frames"}
FLOAT_KEYS = {"conf", "stroke_width"}
BOOL_KEYS = {"show", "progress", "realtime"}


def load_run_config(path: Path) -> Dict[str, object]:
    """Read a live-run JSON file, e.g. {"video": "clip.mp4", "model": "models/x.tflite", "conf": 0.6}."""
    if not path.is_file():
        raise FileNotFoundError(f"Live run config file does not exist: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Live run config {path} is not valid JSON: {exc.msg} (line {exc.lineno})") from exc
    if not isinstance(payload, dict):
        raise ValueError(f"Live run config {path} must hold a JSON object, got {type(payload).__name__}")
    return payload


def collect_cli_dests(parser: argparse.ArgumentParser, argv: Sequence[str]) -> set[str]:
    """Argparse dests the user typed explicitly (`--conf 0.3` or `--conf=0.3`); these beat the file."""
    typed = {arg.split("=", 1)[0] for arg in argv if arg.startswith("-")}
    return {action.dest for opt, action in parser._option_string_actions.items() if opt in typed}


def _coerce_str_list(value: object, key: str) -> List[str]:
    # Accepts "CPUExecutionProvider" or ["CUDAExecutionProvider", "CPUExecutionProvider"].
    items = [value] if isinstance(value, str) else value
    if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
        raise ValueError(f"{key} must be a provider name or a list of provider names")
    cleaned = [item.strip() for item in items]
    if not cleaned or not all(cleaned):
        raise ValueError(f"{key} must not contain blank provider names")
    return cleaned


def apply_run_config(
    *,
    args: argparse.Namespace,
    payload: Dict[str, object],
    cli_dests: set[str],
    parser: argparse.ArgumentParser,
) -> None:
    """
    Fill `args` from a run config payload. Options given on the command line
    win; unknown keys and wrongly typed values are rejected.
    """

    allowed = {action.dest for action in parser._actions if action.dest != "help"}
    if "config" in payload:
        raise ValueError("run config must not include the 'config' key")
    unknown = sorted(k for k in payload.keys() if k not in allowed)
    if unknown:
        raise ValueError(f"Unknown run config keys: {unknown}")
    if payload.get("video") not in (None, "") and payload.get("webcam") is not None:
        raise ValueError("run config must set only one of video/webcam")

    for key, value in payload.items():
        if key in cli_dests or value is None:
            continue
        if key == "onnx_providers":
            setattr(args, key, ",".join(_coerce_str_list(value, key)))
            continue
        if key in STR_KEYS:
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{key} must be a non-empty string")
            setattr(args, key, value)
            continue
        if key in BOOL_KEYS:
            if not isinstance(value, bool):
                raise ValueError(f"{key} must be a boolean")
            setattr(args, key, value)
            continue
        if key in INT_KEYS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{key} must be an integer")
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(f"{key} must be an integer")
            setattr(args, key, int(value))
            continue
        if key in FLOAT_KEYS:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{key} must be a number")
            setattr(args, key, float(value))
            continue
        raise ValueError(f"Unsupported run config key: {key}")
