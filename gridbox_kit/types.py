from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .errors import ConfigurationError


VALID_ROTATIONS = (0, 90, 180, 270)


@dataclass(frozen=True)
class Plane:
    """
    One image plane as delivered by the camera.

    `row_stride` is the byte distance between rows, `pixel_stride` the byte
    distance between neighbouring samples in a row (1 for planar layouts,
    2 for semi-planar chroma planes).
    """

    data: bytes
    row_stride: int
    pixel_stride: int = 1

    def __post_init__(self) -> None:
        if self.row_stride <= 0:
            raise ConfigurationError("row_stride must be > 0")
        if self.pixel_stride <= 0:
            raise ConfigurationError("pixel_stride must be > 0")


@dataclass(frozen=True)
class RawFrame:
    """
    A 4:2:0 chroma-subsampled camera frame plus its rotation metadata.

    The frame is borrowed read-only for a single decode call.
    """

    width: int
    height: int
    rotation: int
    y: Plane
    u: Plane
    v: Plane

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(f"Frame size must be positive, got {self.width}x{self.height}")
        if self.width % 2 or self.height % 2:
            raise ConfigurationError(f"4:2:0 frames need even dimensions, got {self.width}x{self.height}")
        if self.rotation not in VALID_ROTATIONS:
            raise ConfigurationError(f"rotation must be one of {VALID_ROTATIONS}, got {self.rotation!r}")

    @property
    def rotated_size(self) -> Tuple[int, int]:
        """(width, height) of the decoded image once rotation is applied."""
        if self.rotation in (90, 270):
            return self.height, self.width
        return self.width, self.height


@dataclass
class BoundingBox:
    """
    Detection rectangle in original-image pixel coordinates.

    Values are kept exactly as decoded; the decoder's extent formula can yield
    right < left (or bottom < top), see `normalized()`.
    """

    left: float
    top: float
    right: float
    bottom: float
    score: Optional[float] = None

    def as_ltrb(self) -> Tuple[float, float, float, float]:
        return self.left, self.top, self.right, self.bottom

    def normalized(self) -> "BoundingBox":
        return BoundingBox(
            left=min(self.left, self.right),
            top=min(self.top, self.bottom),
            right=max(self.left, self.right),
            bottom=max(self.top, self.bottom),
            score=self.score,
        )

    @property
    def is_degenerate(self) -> bool:
        return self.left == self.right or self.top == self.bottom


@dataclass(frozen=True)
class LetterboxResult:
    """
    Padded canvas plus everything needed to map back to the source image.

    - scale: original -> padded factor (same on both axes)
    - scaled_size: (w, h) of the resized content
    - pad: (left, top) offset of the content on the canvas
    - canvas_size: (w, h) of the padded canvas
    - orig_size: (w, h) of the source image
    """

    image: np.ndarray
    scale: float
    scaled_size: Tuple[int, int]
    pad: Tuple[int, int]
    canvas_size: Tuple[int, int]
    orig_size: Tuple[int, int]


@dataclass(frozen=True)
class DetectionOutput:
    image: np.ndarray
    boxes: Tuple[BoundingBox, ...]
    letterbox: Optional[LetterboxResult] = None
    inference_time_s: float = 0.0
