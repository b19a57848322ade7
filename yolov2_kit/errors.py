"""
Error kinds raised by yolov2_kit.

- EngineError: anything that goes wrong while loading or running a model.
- PreconditionViolation: programming errors (bad image/tensor shapes, a model
  used by two predictions at once).
- ConfigError: configuration errors, e.g. an anchor set that does not match the
  output channel depth.
"""

from __future__ import annotations


class EngineError(RuntimeError):
    """Failure reported by the inference engine (model load or forward pass)."""


class PreconditionViolation(ValueError):
    pass


class ConfigError(PreconditionViolation):
    pass
