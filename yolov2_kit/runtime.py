from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import ConfigError, EngineError, PreconditionViolation


PathLike = Union[str, Path]

LOGGER = logging.getLogger(__name__)


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git", "requirements.txt"),
) -> Path:
    """
    Best-effort project root discovery, used to resolve relative model paths.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    # If a file is provided, start from its directory.
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against `root` if provided, the project root otherwise.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


class Model:
    """
    Loaded single-image model with one named input and one named output tensor.

    The input buffer is allocated once and written in place through
    `get_mutable_view`; `run` replaces the output tensor. Views stay tied to
    this instance: hold `lease()` while using them so that two predictions
    never touch the same tensors at once. Subclasses implement `_forward`.
    """

    def __init__(self, input_name: str, input_shape: Sequence[int], output_name: str):
        self.input_name = input_name
        self.input_shape: Tuple[int, ...] = tuple(int(s) for s in input_shape)
        self.output_name = output_name
        self._input = np.zeros(self.input_shape, dtype=np.float32)
        self._outputs: Dict[str, np.ndarray] = {}
        self._lease = threading.Lock()

    @contextmanager
    def lease(self) -> Iterator["Model"]:
        if not self._lease.acquire(blocking=False):
            raise PreconditionViolation("Model is already in use by another prediction.")
        try:
            yield self
        finally:
            self._lease.release()

    def get_mutable_view(self, name: str) -> np.ndarray:
        if name != self.input_name:
            raise EngineError(f"No input tensor named {name!r} (available: {self.input_name!r})")
        return self._input

    def get_view(self, name: str) -> np.ndarray:
        if name == self.input_name:
            arr = self._input
        elif name in self._outputs:
            arr = self._outputs[name]
        elif name == self.output_name:
            raise EngineError(f"Output tensor {name!r} is not available before run()")
        else:
            raise EngineError(f"No tensor named {name!r}")
        view = arr.view()
        view.flags.writeable = False
        return view

    def run(self) -> None:
        try:
            out = self._forward(self._input)
        except EngineError:
            raise
        except Exception as exc:
            raise EngineError(f"Forward pass failed: {exc}") from exc
        self._outputs[self.output_name] = np.asarray(out)

    def _forward(self, blob: np.ndarray) -> np.ndarray:
        raise NotImplementedError


class FunctionModel(Model):
    """Model backed by a plain callable `blob -> output array`."""

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        input_name: str,
        input_shape: Sequence[int],
        output_name: str,
    ):
        super().__init__(input_name, input_shape, output_name)
        self._infer_fn = infer_fn

    def _forward(self, blob: np.ndarray) -> np.ndarray:
        return self._infer_fn(blob)


BACKENDS = ("onnxruntime", "torchscript")


def resolve_backend(model_path: PathLike, backend: Optional[str] = None) -> str:
    """Backend name for `model_path`: `backend` if given, else inferred from the extension."""

    if backend is None:
        suffix = Path(model_path).suffix.lower()
        if suffix == ".onnx":
            return "onnxruntime"
        if suffix in {".torchscript", ".ts", ".pt"}:
            return "torchscript"
        raise ConfigError(f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly.")

    chosen = backend.lower()
    if chosen not in BACKENDS:
        raise ConfigError(f"Unsupported backend: {backend!r} (available: {list(BACKENDS)})")
    return chosen


def load_model(
    model_path: PathLike,
    input_name: str,
    input_shape: Sequence[int],
    output_name: str,
    *,
    backend: Optional[str] = None,
    backend_config: Optional[Any] = None,
    root: Optional[PathLike] = "auto",
) -> Model:
    """
    Load a model file with the requested (or extension-inferred) backend.

    Args:
        model_path: relative paths resolve against the project root by default
        backend: "onnxruntime" or "torchscript"; None infers from the extension
        backend_config: the backend's config dataclass (OnnxRuntimeBackendConfig,
            TorchScriptBackendConfig); None uses its defaults
    """

    resolved = resolve_path(model_path, root=root)
    chosen = resolve_backend(resolved, backend)
    if not resolved.exists():
        raise FileNotFoundError(str(resolved))

    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackendConfig, OnnxRuntimeModel

        model_cls, config_cls = OnnxRuntimeModel, OnnxRuntimeBackendConfig
    elif chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackendConfig, TorchScriptModel

        model_cls, config_cls = TorchScriptModel, TorchScriptBackendConfig
    else:  # pragma: no cover
        raise ConfigError(f"Unsupported backend: {backend!r}")

    if backend_config is not None and not isinstance(backend_config, config_cls):
        raise ConfigError(
            f"{chosen} backend needs a {config_cls.__name__}, got {type(backend_config).__name__}"
        )

    LOGGER.info("Loading %s model from %s", chosen, resolved)
    try:
        return model_cls(
            resolved,
            input_name,
            input_shape,
            output_name,
            backend_config if backend_config is not None else config_cls(),
        )
    except (EngineError, ImportError):
        raise
    except Exception as exc:
        raise EngineError(f"Failed to load {chosen} model {resolved}: {exc}") from exc
