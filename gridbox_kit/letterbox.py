from typing import Tuple

import cv2
import numpy as np

from .errors import ConfigurationError
from .types import LetterboxResult


def fit_size(src_size: Tuple[int, int], new_shape: Tuple[int, int]) -> Tuple[int, int]:
    """
    Size (w, h) of the source once uniformly scaled into `new_shape`.

    Wide images take the full target width, others the full target height.
    If that overflows the other axis (non-square targets), the other axis is
    fitted instead.
    """

    src_w, src_h = src_size
    new_w, new_h = new_shape
    aspect = src_w / src_h

    if aspect > 1:
        resized_w, resized_h = new_w, int(round(new_w / aspect))
        if resized_h > new_h:
            resized_w, resized_h = int(round(new_h * aspect)), new_h
    else:
        resized_w, resized_h = int(round(new_h * aspect)), new_h
        if resized_w > new_w:
            resized_w, resized_h = new_w, int(round(new_w / aspect))

    return max(1, min(resized_w, new_w)), max(1, min(resized_h, new_h))


def letterbox(
    image: np.ndarray,
    new_shape: Tuple[int, int] = (320, 320),
    color: Tuple[int, int, int] = (0, 0, 0),
) -> LetterboxResult:
    """
    Resize keeping aspect ratio, then center on a `color` canvas of `new_shape` (w, h).

    The odd pixel of slack always lands on the right/bottom side.
    """

    if image is None or not hasattr(image, "shape") or image.ndim != 3:
        raise TypeError(f"Expected an (H, W, C) image, got {getattr(image, 'shape', None)}")
    if isinstance(new_shape, int):
        new_shape = (new_shape, new_shape)

    new_w, new_h = int(new_shape[0]), int(new_shape[1])
    if new_w <= 0 or new_h <= 0:
        raise ConfigurationError(f"Letterbox target must be positive, got {new_w}x{new_h}")

    h, w = image.shape[:2]
    if w <= 0 or h <= 0:
        raise ConfigurationError(f"Cannot letterbox an empty image ({w}x{h})")

    resized_w, resized_h = fit_size((w, h), (new_w, new_h))

    if (w, h) != (resized_w, resized_h):
        image = cv2.resize(image, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)

    dw, dh = new_w - resized_w, new_h - resized_h
    left, top = dw // 2, dh // 2
    right, bottom = dw - left, dh - top

    border = tuple(int(c) for c in color)
    if image.shape[2] == 4 and len(border) == 3:
        border = border + (255,)
    padded = cv2.copyMakeBorder(image, top, bottom, left, right, cv2.BORDER_CONSTANT, value=border)

    return LetterboxResult(
        image=padded,
        scale=resized_w / w,
        scaled_size=(resized_w, resized_h),
        pad=(left, top),
        canvas_size=(new_w, new_h),
        orig_size=(w, h),
    )
