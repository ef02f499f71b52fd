from __future__ import annotations

from typing import Sequence

import numpy as np

from .errors import ConfigurationError


def _check_input_shape(input_shape: Sequence[int]) -> None:
    if len(input_shape) != 4 or any(int(d) <= 0 for d in input_shape):
        raise ConfigurationError(f"Expected a positive 4-D input shape, got {tuple(input_shape)}")


def is_channels_first(input_shape: Sequence[int]) -> bool:
    """True for NCHW exports (e.g. ONNX), False for NHWC (TFLite)."""
    return int(input_shape[1]) == 3 and int(input_shape[3]) != 3


def encode_tensor(image: np.ndarray, input_shape: Sequence[int]) -> np.ndarray:
    """
    Pack an RGB(A) uint8 image into a flat float32 tensor.

    `input_shape` is the engine's declared [batch, height, width, channels];
    the image must already be letterboxed to that size. Values are
    byte / 255.0, ordered R, G, B per pixel, pixels row-major.
    """

    _check_input_shape(input_shape)
    if is_channels_first(input_shape):
        _, channels, height, width = (int(d) for d in input_shape)
    else:
        _, height, width, channels = (int(d) for d in input_shape)

    if channels != 3:
        raise ConfigurationError(f"Only 3-channel inputs are supported, model declares {channels}")
    if image is None or not hasattr(image, "shape") or image.ndim != 3 or image.shape[2] not in (3, 4):
        raise TypeError(f"Expected an (H, W, 3|4) image, got {getattr(image, 'shape', None)}")
    if image.shape[:2] != (height, width):
        raise ConfigurationError(
            f"Image is {image.shape[1]}x{image.shape[0]} but the model expects {width}x{height}"
        )

    rgb = image[:, :, :3]
    return (rgb.astype(np.float32) / 255.0).reshape(-1)


def to_engine_layout(flat: np.ndarray, input_shape: Sequence[int]) -> np.ndarray:
    """Reshape a flat HWC tensor to the declared input shape (transposing for NCHW)."""

    _check_input_shape(input_shape)
    shape = tuple(int(d) for d in input_shape)
    expected = int(np.prod(shape))
    if flat.size != expected:
        raise ConfigurationError(f"Tensor has {flat.size} values, model expects {expected} for {shape}")

    if is_channels_first(shape):
        n, c, h, w = shape
        return np.ascontiguousarray(flat.reshape(n, h, w, c).transpose(0, 3, 1, 2))
    return flat.reshape(shape)
