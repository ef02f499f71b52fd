from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from gridbox_kit.postprocess import GridPostConfig
from gridbox_kit.runtime import LetterboxConfig
from gridbox_kit.visualize import OverlayConfig


Color = Tuple[int, int, int]


@dataclass(frozen=True)
class DetectorProfile:
    schema_version: int = 1
    confidence_threshold: float = 0.5
    stroke_width: float = 8.0
    stroke_color: Color = (255, 0, 0)
    pad_color: Color = (0, 0, 0)
    max_detections: Optional[int] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        if self.schema_version != 1:
            raise ValueError("detector profile schema_version must be 1")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be within [0, 1]")
        if self.stroke_width <= 0:
            raise ValueError("stroke_width must be > 0")
        if self.max_detections is not None and self.max_detections < 0:
            raise ValueError("max_detections must be >= 0")

    def post_config(self) -> GridPostConfig:
        return GridPostConfig(conf_threshold=self.confidence_threshold, max_detections=self.max_detections)

    def letterbox_config(self) -> LetterboxConfig:
        return LetterboxConfig(color=self.pad_color)

    def overlay_config(self) -> OverlayConfig:
        return OverlayConfig(color=self.stroke_color, stroke_width=self.stroke_width)


def _optional_number(payload: Dict[str, Any], key: str, default: float) -> float:
    if key not in payload:
        return default
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _optional_color(payload: Dict[str, Any], key: str, default: Color) -> Color:
    if key not in payload:
        return default
    value = payload[key]
    if (
        not isinstance(value, list)
        or len(value) != 3
        or any(isinstance(c, bool) or not isinstance(c, int) or not 0 <= c <= 255 for c in value)
    ):
        raise ValueError(f"{key} must be a list of three integers in [0, 255] (RGB)")
    return int(value[0]), int(value[1]), int(value[2])


def load_detector_profile(path: Path) -> DetectorProfile:
    """
    Load a detector profile JSON. Missing keys keep their defaults:

        {"schema_version": 1, "confidence_threshold": 0.5, "stroke_width": 8.0,
         "stroke_color": [255, 0, 0], "pad_color": [0, 0, 0]}
    """

    if not path.exists():
        raise FileNotFoundError(f"Detector profile not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector profile JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector profile must be a JSON object")

    allowed = {
        "schema_version",
        "confidence_threshold",
        "stroke_width",
        "stroke_color",
        "pad_color",
        "max_detections",
        "notes",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector profile keys: {unknown}")

    if "schema_version" not in payload:
        raise ValueError("Missing required key: schema_version")
    schema_version = payload["schema_version"]
    if isinstance(schema_version, bool) or not isinstance(schema_version, int):
        raise ValueError("schema_version must be an integer")

    max_detections = payload.get("max_detections")
    if max_detections is not None and (isinstance(max_detections, bool) or not isinstance(max_detections, int)):
        raise ValueError("max_detections must be an integer if provided")
    notes = payload.get("notes")
    if notes is not None and not isinstance(notes, str):
        raise ValueError("notes must be a string if provided")

    return DetectorProfile(
        schema_version=schema_version,
        confidence_threshold=_optional_number(payload, "confidence_threshold", 0.5),
        stroke_width=_optional_number(payload, "stroke_width", 8.0),
        stroke_color=_optional_color(payload, "stroke_color", (255, 0, 0)),
        pad_color=_optional_color(payload, "pad_color", (0, 0, 0)),
        max_detections=max_detections,
        notes=notes,
    )
