from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .errors import ConfigurationError


# attrs[0..4] of every cell: x, y, w, h, confidence
ATTR_X, ATTR_Y, ATTR_W, ATTR_H, ATTR_CONF = range(5)


class DetectionGrid:
    """
    Raw detector output: a flat float32 buffer viewed as
    [batch, grid_a, grid_b, grid_c, attrs].

    Only the first five attrs of a cell are interpreted.
    """

    def __init__(self, data: np.ndarray, shape: Sequence[int]):
        shape = tuple(int(d) for d in shape)
        if len(shape) != 5:
            raise ConfigurationError(f"Detection grid must be 5-D, got shape {shape}")
        if any(d < 0 for d in shape):
            raise ConfigurationError(f"Detection grid dims must be >= 0, got {shape}")
        if shape[4] < 5:
            raise ConfigurationError(f"Each cell needs at least 5 attrs (x, y, w, h, conf), got {shape[4]}")

        flat = np.asarray(data, dtype=np.float32).reshape(-1)
        if flat.size != int(np.prod(shape)):
            raise ConfigurationError(f"Grid buffer has {flat.size} values, shape {shape} needs {int(np.prod(shape))}")

        self.shape: Tuple[int, int, int, int, int] = shape  # type: ignore[assignment]
        self._data = flat

    @classmethod
    def from_array(cls, array: np.ndarray) -> "DetectionGrid":
        arr = np.asarray(array, dtype=np.float32)
        return cls(arr, arr.shape)

    @property
    def num_attrs(self) -> int:
        return self.shape[4]

    def offset(self, batch: int, a: int, b: int, c: int, attr: int) -> int:
        _, na, nb, nc, nattr = self.shape
        for value, dim in zip((batch, a, b, c, attr), self.shape):
            if not 0 <= value < dim:
                raise IndexError(f"Index {(batch, a, b, c, attr)} out of range for grid {self.shape}")
        return (((batch * na + a) * nb + b) * nc + c) * nattr + attr

    def get(self, batch: int, a: int, b: int, c: int, attr: int) -> float:
        return float(self._data[self.offset(batch, a, b, c, attr)])

    def cells(self) -> np.ndarray:
        """(N, attrs) read-only view in scan order: batch, then the three grid axes."""
        view = self._data.reshape(-1, self.num_attrs)
        view.flags.writeable = False
        return view

    def __len__(self) -> int:
        return int(np.prod(self.shape[:4]))
