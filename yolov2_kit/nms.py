from functools import cmp_to_key
from typing import List

from .types import Box


def _compare(a: Box, b: Box) -> int:
    # Label ascending, then score descending. NaN scores compare equal to anything.
    if a.label != b.label:
        return -1 if a.label < b.label else 1
    if a.score > b.score:
        return -1
    if a.score < b.score:
        return 1
    return 0


def sort_boxes(boxes: List[Box]) -> None:
    """Sort in place by (label ascending, score descending); ties keep their order."""

    boxes.sort(key=cmp_to_key(_compare))


def suppress(boxes: List[Box], thresh: float) -> None:
    """
    Remove duplicate detections in place.

    After sorting, every box is compared with its immediate predecessor in the
    sorted order only, and dropped when both share a label and their IoU is
    above `thresh`. The predecessor is used even if it was dropped itself, so
    in a chain A > B > C where B overlaps A and C overlaps only A, C survives.
    This is weaker than greedy NMS against every kept box.
    """

    sort_boxes(boxes)
    if len(boxes) < 2:
        return

    kept = [boxes[0]]
    for prev, cur in zip(boxes, boxes[1:]):
        if cur.label == prev.label and cur.iou(prev) > thresh:
            continue
        kept.append(cur)
    boxes[:] = kept
