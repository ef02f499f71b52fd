from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

import numpy as np

from ..errors import ConfigurationError


PathLike = Union[str, Path]


@dataclass(frozen=True)
class TorchScriptBackendConfig:
    """
    Configuration for TorchScript inference.

    TorchScript modules do not declare tensor shapes, so both shapes must be
    given here.

    - device: "cpu" or "cuda" (if available)
    - output_index: if the model returns multiple outputs, select this index
    """

    input_shape: Tuple[int, ...] = (1, 320, 320, 3)
    output_shape: Tuple[int, ...] = (1, 10, 10, 3, 5)
    device: str = "cpu"
    output_index: int = 0

    def __post_init__(self) -> None:
        if len(self.input_shape) != 4:
            raise ConfigurationError(f"input_shape must be 4-D, got {self.input_shape}")
        if len(self.output_shape) != 5:
            raise ConfigurationError(f"output_shape must be 5-D, got {self.output_shape}")


class TorchScriptBackend:
    """
    TorchScript binding using `torch.jit.load`.
    """

    def __init__(self, model_path: PathLike, cfg: TorchScriptBackendConfig = TorchScriptBackendConfig()):
        try:
            import torch  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("torch is required for the TorchScript backend. Install with `pip install torch`.") from e

        self._torch = torch
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        self.cfg = cfg
        self.device = torch.device(cfg.device)

        model = torch.jit.load(str(self.model_path), map_location=self.device)
        model.eval()
        self.model = model

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self.cfg.input_shape)

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self.cfg.output_shape)

    def run(self, tensor: np.ndarray) -> np.ndarray:
        torch = self._torch
        x = torch.as_tensor(tensor, device=self.device).float().contiguous()

        with torch.no_grad():
            y = self.model(x)

        if isinstance(y, (tuple, list)):
            y = y[self.cfg.output_index]
        return y.detach().to("cpu").numpy()
