from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

from .errors import FrameDecodeError
from .types import Plane, RawFrame


logger = logging.getLogger(__name__)

_ROTATE_CODES = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def _sample_plane(plane: Plane, rows: int, cols: int, name: str) -> np.ndarray:
    """
    Gather a (rows, cols) uint8 grid from a strided plane.

    The last row of a camera plane is often shorter than `row_stride`, so only
    the bytes actually addressed are required.
    """

    row_bytes = (cols - 1) * plane.pixel_stride + 1
    if rows > 1 and plane.row_stride < row_bytes:
        raise FrameDecodeError(f"{name} plane row_stride {plane.row_stride} is shorter than a row ({row_bytes} bytes)")

    buf = np.frombuffer(plane.data, dtype=np.uint8)
    needed = (rows - 1) * plane.row_stride + row_bytes
    if buf.size < needed:
        raise FrameDecodeError(f"{name} plane too short: {buf.size} bytes, need {needed}")

    if plane.pixel_stride == 1 and plane.row_stride == cols and buf.size >= rows * cols:
        return buf[: rows * cols].reshape(rows, cols)

    idx = np.arange(rows)[:, None] * plane.row_stride + np.arange(cols)[None, :] * plane.pixel_stride
    return buf[idx]


def to_nv21(frame: RawFrame) -> np.ndarray:
    """
    Pack a RawFrame into a single NV21 buffer shaped (h * 3 / 2, w).

    NV21 stores chroma as interleaved V/U pairs, so the V plane goes in
    before the U plane even though cameras hand them over as Y, U, V.
    """

    w, h = frame.width, frame.height
    cw, ch = w // 2, h // 2

    luma = _sample_plane(frame.y, h, w, "Y")
    v = _sample_plane(frame.v, ch, cw, "V")
    u = _sample_plane(frame.u, ch, cw, "U")

    vu = np.empty((ch, cw * 2), dtype=np.uint8)
    vu[:, 0::2] = v
    vu[:, 1::2] = u

    return np.vstack([luma, vu.reshape(ch, w)])


def decode_frame_strict(frame: RawFrame) -> np.ndarray:
    """Decode a RawFrame to an RGB image, raising FrameDecodeError on bad input."""

    nv21 = to_nv21(frame)
    try:
        rgb = cv2.cvtColor(nv21, cv2.COLOR_YUV2RGB_NV21)
    except cv2.error as exc:
        raise FrameDecodeError(f"YUV -> RGB conversion failed: {exc}") from exc

    code = _ROTATE_CODES.get(frame.rotation)
    if code is not None:
        rgb = cv2.rotate(rgb, code)
    return rgb


def decode_frame(frame: RawFrame) -> Optional[np.ndarray]:
    """
    Decode a RawFrame to an RGB (H, W, 3) uint8 image rotated clockwise by
    `frame.rotation`.

    Returns None when the frame cannot be decoded; the caller skips it.
    """

    try:
        return decode_frame_strict(frame)
    except FrameDecodeError as exc:
        logger.warning("Dropping undecodable %dx%d frame: %s", frame.width, frame.height, exc)
        return None
