from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import cv2
import numpy as np

from .errors import ConfigurationError
from .types import BoundingBox


@dataclass(frozen=True)
class OverlayConfig:
    """
    Box outline style. Colors are RGB since the pipeline works on RGB images.
    """

    color: Tuple[int, int, int] = (255, 0, 0)
    stroke_width: float = 8.0

    def __post_init__(self) -> None:
        if self.stroke_width <= 0:
            raise ConfigurationError("stroke_width must be > 0")
        if len(self.color) != 3 or any(not 0 <= int(c) <= 255 for c in self.color):
            raise ConfigurationError(f"color must be three values in [0, 255], got {self.color!r}")

    @property
    def thickness(self) -> int:
        return max(1, int(round(self.stroke_width)))


def draw_boxes(
    image: np.ndarray,
    boxes: Iterable[BoundingBox],
    cfg: OverlayConfig = OverlayConfig(),
) -> np.ndarray:
    """
    Draw unfilled box outlines on a copy of `image` and return it.

    Boxes are drawn in order, so later boxes paint over earlier ones. The input
    image is never modified.
    """

    if image is None or not hasattr(image, "shape"):
        raise TypeError("image must be a NumPy array (RGB).")
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Expected image shape (H, W, 3|4), got {getattr(image, 'shape', None)}")

    out = image.copy()
    h, w = out.shape[:2]
    color = tuple(int(c) for c in cfg.color)
    if out.shape[2] == 4:
        color = color + (255,)

    for box in boxes:
        left, top, right, bottom = box.as_ltrb()
        x1 = int(np.clip(round(left), 0, w - 1))
        y1 = int(np.clip(round(top), 0, h - 1))
        x2 = int(np.clip(round(right), 0, w - 1))
        y2 = int(np.clip(round(bottom), 0, h - 1))
        cv2.rectangle(out, (x1, y1), (x2, y2), color, thickness=cfg.thickness)

    return out
