"""
Real-time grid detector helpers.

Turns raw 4:2:0 camera frames into model tensors, decodes the detector's
[batch, a, b, c, attrs] output grid into boxes on the original image, and draws
them back. Core stages depend only on NumPy and OpenCV; inference runtimes are
optional backends.
"""

from .errors import ConfigurationError, EngineError, FrameDecodeError
from .types import BoundingBox, DetectionOutput, LetterboxResult, Plane, RawFrame
from .yuv import decode_frame, decode_frame_strict
from .letterbox import letterbox
from .tensor import encode_tensor
from .grid import DetectionGrid
from .postprocess import GridPostprocessor, GridPostConfig
from .runtime import DetectionPipeline, LetterboxConfig, load_pipeline, find_project_root, resolve_model_path
from .visualize import OverlayConfig, draw_boxes

__all__ = [
    "ConfigurationError",
    "EngineError",
    "FrameDecodeError",
    "BoundingBox",
    "DetectionOutput",
    "LetterboxResult",
    "Plane",
    "RawFrame",
    "decode_frame",
    "decode_frame_strict",
    "letterbox",
    "encode_tensor",
    "DetectionGrid",
    "GridPostprocessor",
    "GridPostConfig",
    "DetectionPipeline",
    "LetterboxConfig",
    "load_pipeline",
    "find_project_root",
    "resolve_model_path",
    "OverlayConfig",
    "draw_boxes",
]
