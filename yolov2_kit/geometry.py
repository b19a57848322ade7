"""Overlap measures between axis-aligned boxes (anything with top/left/bottom/right)."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .types import Box


def area(box: "Box") -> float:
    # Inverted boxes count as empty.
    return max(0.0, box.bottom - box.top) * max(0.0, box.right - box.left)


def intersection(a: "Box", b: "Box") -> float:
    h = min(a.bottom, b.bottom) - max(a.top, b.top)
    w = min(a.right, b.right) - max(a.left, b.left)
    if h <= 0.0 or w <= 0.0:
        return 0.0
    return h * w


def iou(a: "Box", b: "Box") -> float:
    """
    Intersection over union of two boxes in the same coordinate space.

    Returns 0.0 for disjoint boxes and when the union is empty (both boxes
    degenerate), so zero-area inputs never divide by zero.
    """

    inter = intersection(a, b)
    union = area(a) + area(b) - inter
    if union <= 0.0:
        return 0.0
    return inter / union
