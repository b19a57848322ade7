"""
YOLOv2 detection kit: letterbox preprocessing, grid/anchor decoding and
suppression around a pluggable inference engine.

Works on NumPy arrays; OpenCV is used for resizing and drawing. Inference
runtimes (ONNX Runtime, TorchScript) are optional and imported lazily.
"""

from .types import Box
from .geometry import area, intersection, iou
from .errors import ConfigError, EngineError, PreconditionViolation
from .letterbox import letterbox_into
from .decode import decode
from .nms import suppress
from .config import YoloV2Config, load_config
from .runtime import FunctionModel, Model, load_model, resolve_backend, find_project_root, resolve_path
from .detector import YoloV2, rescale_boxes
from .visualize import draw_boxes

__all__ = [
    "Box",
    "area",
    "intersection",
    "iou",
    "ConfigError",
    "EngineError",
    "PreconditionViolation",
    "letterbox_into",
    "decode",
    "suppress",
    "YoloV2Config",
    "load_config",
    "FunctionModel",
    "Model",
    "load_model",
    "resolve_backend",
    "find_project_root",
    "resolve_path",
    "YoloV2",
    "rescale_boxes",
    "draw_boxes",
]
