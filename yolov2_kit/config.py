from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

from .errors import ConfigError


PathLike = Union[str, Path]


@dataclass(frozen=True)
class YoloV2Config:
    """
    Model description shared read-only by every prediction.

    anchors are (height, width) pairs in grid-cell units, one per anchor slot.
    """

    input_tensor_name: str
    output_tensor_name: str
    input_size: int
    anchors: Tuple[Tuple[float, float], ...]
    label_names: Tuple[str, ...]
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45

    def __post_init__(self) -> None:
        if not self.input_tensor_name:
            raise ConfigError("input_tensor_name must not be empty")
        if not self.output_tensor_name:
            raise ConfigError("output_tensor_name must not be empty")
        if self.input_size <= 0:
            raise ConfigError("input_size must be > 0")
        if not self.anchors:
            raise ConfigError("anchors must contain at least one (height, width) pair")
        for anchor in self.anchors:
            if len(anchor) != 2 or anchor[0] <= 0 or anchor[1] <= 0:
                raise ConfigError(f"anchor must be a positive (height, width) pair, got {anchor!r}")
        if not self.label_names:
            raise ConfigError("label_names must not be empty")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ConfigError("conf_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ConfigError("iou_threshold must be in [0, 1]")

    @property
    def num_classes(self) -> int:
        return len(self.label_names)

    @property
    def num_anchors(self) -> int:
        return len(self.anchors)

    @property
    def output_channels(self) -> int:
        return self.num_anchors * (5 + self.num_classes)

    @property
    def input_shape(self) -> Tuple[int, int, int, int]:
        return (1, 3, self.input_size, self.input_size)

    def check_output_channels(self, channels: int) -> None:
        if channels != self.output_channels:
            raise ConfigError(
                f"Output tensor has {channels} channels but {self.num_anchors} anchors and "
                f"{self.num_classes} classes need {self.output_channels}"
            )


def _require_str(payload: Dict[str, Any], key: str) -> str:
    if key not in payload:
        raise ConfigError(f"Missing required key: {key}")
    value = payload[key]
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")
    return value


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise ConfigError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{key} must be an integer")
    return int(value)


def _optional_number(payload: Dict[str, Any], key: str, default: float) -> float:
    if key not in payload:
        return default
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number")
    return float(value)


def _parse_anchors(value: object) -> Tuple[Tuple[float, float], ...]:
    if not isinstance(value, list):
        raise ConfigError("anchors must be a list of [height, width] pairs")
    anchors: List[Tuple[float, float]] = []
    for item in value:
        if (
            not isinstance(item, list)
            or len(item) != 2
            or any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in item)
        ):
            raise ConfigError(f"anchor must be a [height, width] pair of numbers, got {item!r}")
        anchors.append((float(item[0]), float(item[1])))
    return tuple(anchors)


def read_label_file(path: Path) -> Tuple[str, ...]:
    """One label per line; blank lines and '#' comments are skipped."""

    if not path.exists():
        raise FileNotFoundError(f"Label file not found: {path}")
    names = []
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        names.append(line)
    return tuple(names)


def _parse_labels(payload: Dict[str, Any], base_dir: Path) -> Tuple[str, ...]:
    if "label_names" in payload and "label_file" in payload:
        raise ConfigError("Use either 'label_names' or 'label_file', not both.")
    if "label_file" in payload:
        label_path = Path(_require_str(payload, "label_file"))
        if not label_path.is_absolute():
            label_path = base_dir / label_path
        return read_label_file(label_path)

    value = payload.get("label_names")
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError("label_names must be a list of strings")
    return tuple(value)


def config_from_dict(payload: Dict[str, Any], base_dir: PathLike = ".") -> YoloV2Config:
    allowed = {
        "input_tensor_name",
        "output_tensor_name",
        "input_size",
        "anchors",
        "label_names",
        "label_file",
        "conf_threshold",
        "iou_threshold",
    }
    unknown = sorted(k for k in payload.keys() if k not in allowed)
    if unknown:
        raise ConfigError(f"Unknown config keys: {unknown}")
    if "anchors" not in payload:
        raise ConfigError("Missing required key: anchors")

    return YoloV2Config(
        input_tensor_name=_require_str(payload, "input_tensor_name"),
        output_tensor_name=_require_str(payload, "output_tensor_name"),
        input_size=_require_int(payload, "input_size"),
        anchors=_parse_anchors(payload["anchors"]),
        label_names=_parse_labels(payload, Path(base_dir)),
        conf_threshold=_optional_number(payload, "conf_threshold", 0.5),
        iou_threshold=_optional_number(payload, "iou_threshold", 0.45),
    )


def load_config(path: PathLike) -> YoloV2Config:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ConfigError("Config must be a JSON object")
    return config_from_dict(payload, base_dir=path.parent)
