from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from gridbox_kit.types import Plane, RawFrame


@dataclass(frozen=True)
class CaptureInfo:
    fps: Optional[float]
    width: Optional[int]
    height: Optional[int]
    frame_count: Optional[int]


def open_capture(*, video: Optional[str] = None, webcam: Optional[int] = None) -> cv2.VideoCapture:
    if (video is None) == (webcam is None):
        raise ValueError("Exactly one of video/webcam must be provided.")

    cap = cv2.VideoCapture(video) if video is not None else cv2.VideoCapture(int(webcam))
    if not cap.isOpened():
        raise RuntimeError(f"Failed to open video source: {video if video is not None else webcam}")
    return cap


def get_capture_info(cap: cv2.VideoCapture) -> CaptureInfo:
    fps = cap.get(cv2.CAP_PROP_FPS)
    w = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
    h = cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
    n = cap.get(cv2.CAP_PROP_FRAME_COUNT)
    return CaptureInfo(
        fps=float(fps) if fps and fps > 0 else None,
        width=int(w) if w and w > 0 else None,
        height=int(h) if h and h > 0 else None,
        frame_count=int(n) if n and n > 0 else None,
    )


def bgr_to_raw_frame(frame_bgr: np.ndarray, rotation: int = 0) -> RawFrame:
    """
    Re-encode an OpenCV BGR frame as a planar I420 camera frame.

    Stands in for a real camera feed: the result carries Y, U, V planes plus
    rotation metadata, like frames from a mobile camera. Odd trailing
    rows/columns are cropped since 4:2:0 needs even dimensions.
    """

    h, w = frame_bgr.shape[:2]
    h2, w2 = h - h % 2, w - w % 2
    if (h2, w2) != (h, w):
        frame_bgr = frame_bgr[:h2, :w2]

    i420 = cv2.cvtColor(np.ascontiguousarray(frame_bgr), cv2.COLOR_BGR2YUV_I420).reshape(-1)
    y_size = w2 * h2
    c_size = y_size // 4

    return RawFrame(
        width=w2,
        height=h2,
        rotation=rotation,
        y=Plane(i420[:y_size].tobytes(), row_stride=w2),
        u=Plane(i420[y_size : y_size + c_size].tobytes(), row_stride=w2 // 2),
        v=Plane(i420[y_size + c_size :].tobytes(), row_stride=w2 // 2),
    )
