from dataclasses import dataclass
from typing import Tuple

from .geometry import iou


@dataclass
class Box:
    """
    Labeled, scored rectangle.

    Coordinates are normalized grid space (0..1) right after decoding and
    original-image pixels once the detector has mapped them back.
    Degenerate boxes (top >= bottom or left >= right) are not filtered.
    """

    top: float
    left: float
    bottom: float
    right: float
    label: int
    score: float

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def width(self) -> float:
        return self.right - self.left

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.left, self.top, self.right, self.bottom

    def iou(self, other: "Box") -> float:
        return iou(self, other)
