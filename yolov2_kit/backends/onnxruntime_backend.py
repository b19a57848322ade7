from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from ..errors import EngineError
from ..runtime import Model


PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    """

    providers: Optional[Sequence[str]] = None


class OnnxRuntimeModel(Model):
    """
    ONNX Runtime model with a fixed NCHW float32 input, typically (1, 3, S, S).
    """

    def __init__(
        self,
        model_path: PathLike,
        input_name: str,
        input_shape: Sequence[int],
        output_name: str,
        cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig(),
    ):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        super().__init__(input_name, input_shape, output_name)
        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

        inputs = [i.name for i in self.session.get_inputs()]
        outputs = [o.name for o in self.session.get_outputs()]
        if input_name not in inputs:
            raise EngineError(f"Input name {input_name!r} not found. Available: {inputs}")
        if output_name not in outputs:
            raise EngineError(f"Output name {output_name!r} not found. Available: {outputs}")

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    def _forward(self, blob: np.ndarray) -> np.ndarray:
        outputs = self.session.run([self.output_name], {self.input_name: blob})
        return outputs[0]
