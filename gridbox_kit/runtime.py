from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from .backends.base import InferenceEngine
from .errors import ConfigurationError, EngineError
from .grid import DetectionGrid
from .letterbox import letterbox
from .postprocess import GridPostConfig, GridPostprocessor
from .tensor import encode_tensor, is_channels_first, to_engine_layout
from .types import DetectionOutput, LetterboxResult, RawFrame
from .visualize import OverlayConfig, draw_boxes
from .yuv import decode_frame


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_ROOT_MARKERS = ("pyproject.toml", ".git", "requirements.txt")


def find_project_root(start: Optional[PathLike] = None) -> Path:
    """
    Nearest directory (from `start` or cwd upwards) holding a project marker.

    Falls back to the start directory when none is found.
    """

    p = Path(start).resolve() if start is not None else Path.cwd().resolve()
    if p.is_file():
        p = p.parent
    for parent in (p, *p.parents):
        if any((parent / m).exists() for m in _ROOT_MARKERS):
            return parent
    return p


def resolve_model_path(path: PathLike, root: Optional[PathLike] = None) -> Path:
    """Absolute paths pass through; relative ones resolve against `root` or the project root."""

    p = Path(path)
    if p.is_absolute():
        return p
    base = Path(root).resolve() if root is not None else find_project_root()
    return (base / p).resolve()


@dataclass(frozen=True)
class LetterboxConfig:
    # Pad color, RGB.
    color: Tuple[int, int, int] = (0, 0, 0)

    def __post_init__(self) -> None:
        if len(self.color) != 3 or any(not 0 <= int(c) <= 255 for c in self.color):
            raise ConfigurationError(f"color must be three values in [0, 255], got {self.color!r}")


@dataclass(frozen=True)
class PreprocessResult:
    tensor: np.ndarray
    letterbox: LetterboxResult


def _check_shapes(input_shape: Sequence[int], output_shape: Sequence[int]) -> Tuple[Tuple[int, ...], Tuple[int, ...]]:
    in_shape = tuple(int(d) for d in input_shape)
    out_shape = tuple(int(d) for d in output_shape)
    if len(in_shape) != 4 or any(d <= 0 for d in in_shape):
        raise ConfigurationError(f"Model input shape must be positive 4-D, got {in_shape}")
    if len(out_shape) != 5 or any(d <= 0 for d in out_shape):
        raise ConfigurationError(f"Model output shape must be positive 5-D, got {out_shape}")
    if out_shape[4] < 5:
        raise ConfigurationError(f"Model output needs >= 5 attrs per cell, got {out_shape[4]}")
    if in_shape[0] != 1:
        raise ConfigurationError(f"Only batch size 1 is supported, model declares {in_shape[0]}")
    return in_shape, out_shape


class DetectionPipeline:
    """
    One-frame pipeline: decode -> letterbox -> encode -> inference -> decode grid -> render.

    Images are RGB `np.ndarray`s. Engine access is guarded by a lock, so a
    pipeline can be shared between worker threads; frames still run one at a
    time through the engine.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        *,
        backend_name: Optional[str] = None,
        letterbox_cfg: LetterboxConfig = LetterboxConfig(),
        post_cfg: GridPostConfig = GridPostConfig(),
        overlay_cfg: OverlayConfig = OverlayConfig(),
    ):
        self.engine = engine
        self.backend_name = backend_name
        self.letterbox_cfg = letterbox_cfg
        self.overlay_cfg = overlay_cfg
        self.post = GridPostprocessor(post_cfg)
        self.input_shape, self.output_shape = _check_shapes(engine.input_shape, engine.output_shape)
        self._engine_lock = threading.Lock()

    @property
    def input_size(self) -> Tuple[int, int]:
        """(width, height) of the model input canvas."""
        if is_channels_first(self.input_shape):
            return self.input_shape[3], self.input_shape[2]
        return self.input_shape[2], self.input_shape[1]

    def preprocess(self, image_rgb: np.ndarray) -> PreprocessResult:
        if image_rgb is None or not hasattr(image_rgb, "shape"):
            raise TypeError("image_rgb must be a NumPy array (RGB).")
        if image_rgb.ndim != 3 or image_rgb.shape[2] not in (3, 4):
            raise ValueError(f"Expected image shape (H, W, 3|4), got {getattr(image_rgb, 'shape', None)}")

        lb = letterbox(image_rgb, new_shape=self.input_size, color=self.letterbox_cfg.color)
        flat = encode_tensor(lb.image, self.input_shape)
        tensor = to_engine_layout(flat, self.input_shape)
        return PreprocessResult(tensor=tensor, letterbox=lb)

    def infer(self, tensor: np.ndarray) -> DetectionGrid:
        try:
            with self._engine_lock:
                raw = self.engine.run(tensor)
        except Exception as exc:
            raise EngineError(f"Inference failed: {exc}") from exc

        raw = np.asarray(raw, dtype=np.float32)
        if raw.size != int(np.prod(self.output_shape)):
            raise EngineError(f"Engine returned shape {raw.shape}, declared output shape is {self.output_shape}")
        return DetectionGrid(raw, self.output_shape)

    def __call__(self, image_rgb: np.ndarray) -> DetectionOutput:
        prep = self.preprocess(image_rgb)
        t0 = time.perf_counter()
        grid = self.infer(prep.tensor)
        inference_time = time.perf_counter() - t0

        lb = prep.letterbox
        boxes = self.post.process(grid, orig_size=lb.orig_size, padded_size=lb.canvas_size)
        logger.debug("Decoded %d boxes in %.3fs", len(boxes), inference_time)
        return DetectionOutput(image=image_rgb, boxes=tuple(boxes), letterbox=lb, inference_time_s=inference_time)

    def process_frame(self, frame: RawFrame) -> Optional[DetectionOutput]:
        """Run a camera frame end to end. Returns None when the frame cannot be decoded."""
        image = decode_frame(frame)
        if image is None:
            return None
        return self(image)

    def render(self, output: DetectionOutput) -> np.ndarray:
        return draw_boxes(output.image, output.boxes, self.overlay_cfg)


def load_pipeline(
    model_path: PathLike,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = None,
    letterbox_cfg: LetterboxConfig = LetterboxConfig(),
    post_cfg: GridPostConfig = GridPostConfig(),
    overlay_cfg: OverlayConfig = OverlayConfig(),
    tflite_threads: Optional[int] = None,
    onnx_providers: Optional[Sequence[str]] = None,
    torch_device: str = "cpu",
    torch_input_shape: Tuple[int, ...] = (1, 320, 320, 3),
    torch_output_shape: Tuple[int, ...] = (1, 10, 10, 3, 5),
) -> DetectionPipeline:
    """
    Create a pipeline for a model on disk.

        pipe = load_pipeline("models/people_detection.tflite")

    Args:
        model_path: model file; relative paths resolve against `root` or the project root
        backend: "tflite", "onnxruntime" or "torchscript"; None infers it from the extension
    """

    resolved = resolve_model_path(model_path, root=root)
    chosen = backend
    if chosen is None:
        suffix = resolved.suffix.lower()
        if suffix == ".tflite":
            chosen = "tflite"
        elif suffix == ".onnx":
            chosen = "onnxruntime"
        elif suffix in {".torchscript", ".ts", ".pt"}:
            chosen = "torchscript"
        else:
            raise ValueError(f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly.")

    chosen = chosen.lower()
    if chosen == "tflite":
        from .backends.tflite_backend import TFLiteBackend, TFLiteBackendConfig

        engine: InferenceEngine = TFLiteBackend(resolved, TFLiteBackendConfig(num_threads=tflite_threads))
    elif chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        ort_engine = OnnxRuntimeBackend(resolved, OnnxRuntimeBackendConfig(providers=onnx_providers))
        logger.info("ONNX Runtime providers: %s", list(ort_engine.providers_in_use))
        engine = ort_engine
    elif chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        engine = TorchScriptBackend(
            resolved,
            TorchScriptBackendConfig(
                input_shape=tuple(torch_input_shape),
                output_shape=tuple(torch_output_shape),
                device=torch_device,
            ),
        )
    else:
        raise ValueError(f"Unsupported backend: {backend!r}")

    logger.info("Loaded %s model %s (input=%s, output=%s)", chosen, resolved, engine.input_shape, engine.output_shape)
    return DetectionPipeline(
        engine,
        backend_name=chosen,
        letterbox_cfg=letterbox_cfg,
        post_cfg=post_cfg,
        overlay_cfg=overlay_cfg,
    )
