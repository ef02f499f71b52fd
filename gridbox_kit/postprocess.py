import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import numpy as np

from .errors import ConfigurationError
from .grid import ATTR_CONF, ATTR_H, ATTR_W, ATTR_X, ATTR_Y, DetectionGrid
from .types import BoundingBox


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridPostConfig:
    """
    Configuration for grid detector post-processing.
    """

    # Cells are kept only when confidence is strictly greater than this.
    conf_threshold: float = 0.5
    # Optional cap on emitted boxes (scan order is kept). None keeps all.
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ConfigurationError("conf_threshold must be within [0, 1]")
        if self.max_detections is not None and self.max_detections < 0:
            raise ConfigurationError("max_detections must be >= 0")


def _check_size(size: Tuple[int, int], name: str) -> Tuple[int, int]:
    w, h = int(size[0]), int(size[1])
    if w <= 0 or h <= 0:
        raise ConfigurationError(f"{name} must be positive, got {w}x{h}")
    return w, h


class GridPostprocessor:
    """
    Turns a raw [batch, a, b, c, attrs] detector grid into boxes on the
    original image.

    Each cell holds normalized (x, y, w, h, conf) relative to the padded model
    input. Boxes are projected with the detector's center-relative convention:

        left   = x * padW * scaleX - cx
        top    = y * padH * scaleY - cy
        right  = (left + w * padW) * scaleX - cx
        bottom = (top + h * padH) * scaleY - cy

    with scale = orig / padded and (cx, cy) the integer image center, then
    clamped to [-cx, cx] x [-cy, cy] and shifted back by (cx, cy). The extent
    terms apply the scale a second time to an already scaled edge; this is
    the coordinate convention the deployed detector uses and is kept as-is.

    Arithmetic is float32. No NMS: overlapping boxes are all emitted.
    """

    def __init__(self, cfg: GridPostConfig = GridPostConfig()):
        self.cfg = cfg

    def process(
        self,
        grid: Union[DetectionGrid, np.ndarray],
        orig_size: Tuple[int, int],
        padded_size: Tuple[int, int],
    ) -> List[BoundingBox]:
        """
        Args:
            grid: raw model output (DetectionGrid or 5-D array)
            orig_size: (width, height) of the original image
            padded_size: (width, height) of the letterboxed model input
        """

        orig_w, orig_h = _check_size(orig_size, "orig_size")
        pad_w, pad_h = _check_size(padded_size, "padded_size")
        if not isinstance(grid, DetectionGrid):
            grid = DetectionGrid.from_array(grid)

        cells = grid.cells()
        if cells.shape[0] == 0:
            return []

        # float64 compare: float32(0.3) > 0.3 must hold.
        keep = cells[:, ATTR_CONF].astype(np.float64) > float(self.cfg.conf_threshold)
        cells = cells[keep]
        if self.cfg.max_detections is not None:
            cells = cells[: self.cfg.max_detections]
        if cells.shape[0] == 0:
            return []

        boxes = self._project(cells, (orig_w, orig_h), (pad_w, pad_h))

        out: List[BoundingBox] = []
        for (left, top, right, bottom), score in zip(boxes, cells[:, ATTR_CONF]):
            logger.debug("Clipped box left=%.1f top=%.1f right=%.1f bottom=%.1f conf=%.3f", left, top, right, bottom, score)
            out.append(
                BoundingBox(
                    left=float(left),
                    top=float(top),
                    right=float(right),
                    bottom=float(bottom),
                    score=float(score),
                )
            )
        return out

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _project(
        self,
        cells: np.ndarray,
        orig_size: Tuple[int, int],
        padded_size: Tuple[int, int],
    ) -> np.ndarray:
        """
        Map normalized padded-space cells to clipped (N, 4) ltrb boxes.
        """

        orig_w, orig_h = orig_size
        pad_w = np.float32(padded_size[0])
        pad_h = np.float32(padded_size[1])

        scale_x = np.float32(orig_w) / pad_w
        scale_y = np.float32(orig_h) / pad_h
        cx = np.float32(orig_w // 2)
        cy = np.float32(orig_h // 2)

        left = cells[:, ATTR_X] * pad_w * scale_x - cx
        top = cells[:, ATTR_Y] * pad_h * scale_y - cy
        right = (left + cells[:, ATTR_W] * pad_w) * scale_x - cx
        bottom = (top + cells[:, ATTR_H] * pad_h) * scale_y - cy

        left = np.clip(left, -cx, cx) + cx
        right = np.clip(right, -cx, cx) + cx
        top = np.clip(top, -cy, cy) + cy
        bottom = np.clip(bottom, -cy, cy) + cy

        return np.stack([left, top, right, bottom], axis=1).astype(np.float32)
