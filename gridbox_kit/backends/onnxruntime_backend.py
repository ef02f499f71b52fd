from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from .base import static_shape


PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - input_name/output_name: override auto-selected I/O names if needed
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None


class OnnxRuntimeBackend:
    """
    ONNX Runtime engine binding.

    Declared shapes come from the session metadata; symbolic dims (batch) are
    reported as 1.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=ort.SessionOptions(), providers=providers)

        inputs = {i.name: i for i in self.session.get_inputs()}
        outputs = {o.name: o for o in self.session.get_outputs()}
        self.input_name = cfg.input_name or self.session.get_inputs()[0].name
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name
        if self.input_name not in inputs:
            raise ValueError(f"Input name {self.input_name!r} not found. Available: {sorted(inputs)}")
        if self.output_name not in outputs:
            raise ValueError(f"Output name {self.output_name!r} not found. Available: {sorted(outputs)}")

        self._input_shape = static_shape(inputs[self.input_name].shape)
        self._output_shape = static_shape(outputs[self.output_name].shape)

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return self._input_shape

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return self._output_shape

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    def run(self, tensor: np.ndarray) -> np.ndarray:
        outputs = self.session.run([self.output_name], {self.input_name: tensor.astype(np.float32, copy=False)})
        return np.asarray(outputs[0])
