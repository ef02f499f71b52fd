from __future__ import annotations

from typing import Any, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np


@runtime_checkable
class InferenceEngine(Protocol):
    """
    Capability interface the pipeline needs from a model runtime.

    - input_shape: declared 4-D input shape, [batch, height, width, channels]
    - output_shape: declared 5-D output shape, [batch, a, b, c, attrs]
    - run: blocking inference on one tensor shaped like `input_shape`
    """

    @property
    def input_shape(self) -> Tuple[int, ...]: ...

    @property
    def output_shape(self) -> Tuple[int, ...]: ...

    def run(self, tensor: np.ndarray) -> np.ndarray: ...


def static_shape(dims: Sequence[Any], dynamic: int = 1) -> Tuple[int, ...]:
    """
    Normalize a runtime-reported shape to ints.

    Symbolic or unknown dims (None, "batch", -1) become `dynamic`.
    """

    out = []
    for d in dims:
        try:
            value = int(d)
        except (TypeError, ValueError):
            value = dynamic
        out.append(value if value > 0 else dynamic)
    return tuple(out)
