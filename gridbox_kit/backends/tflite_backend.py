from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np


PathLike = Union[str, Path]


@dataclass(frozen=True)
class TFLiteBackendConfig:
    """
    Configuration for TensorFlow Lite inference.

    - num_threads: interpreter CPU threads (None keeps the runtime default)
    - input_index/output_index: which tensor of the model to feed/read
    """

    num_threads: Optional[int] = None
    input_index: int = 0
    output_index: int = 0


class TFLiteBackend:
    """
    TensorFlow Lite interpreter binding.

    The interpreter is not safe for concurrent `invoke()` calls; the pipeline
    serializes access to it.
    """

    def __init__(self, model_path: PathLike, cfg: TFLiteBackendConfig = TFLiteBackendConfig()):
        try:
            import tensorflow as tf  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("tensorflow is required for the TFLite backend. Install with `pip install tensorflow`.") from e

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        self.interpreter = tf.lite.Interpreter(model_path=str(self.model_path), num_threads=cfg.num_threads)
        self.interpreter.allocate_tensors()

        input_details = self.interpreter.get_input_details()
        output_details = self.interpreter.get_output_details()
        if not 0 <= cfg.input_index < len(input_details):
            raise IndexError(f"input_index {cfg.input_index} out of range (num inputs={len(input_details)}).")
        if not 0 <= cfg.output_index < len(output_details):
            raise IndexError(f"output_index {cfg.output_index} out of range (num outputs={len(output_details)}).")

        self._input = input_details[cfg.input_index]
        self._output = output_details[cfg.output_index]

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self._input["shape"])

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self._output["shape"])

    def run(self, tensor: np.ndarray) -> np.ndarray:
        self.interpreter.set_tensor(self._input["index"], tensor.astype(self._input["dtype"], copy=False))
        self.interpreter.invoke()
        # get_tensor copies, so the result survives the next invoke()
        return self.interpreter.get_tensor(self._output["index"])
