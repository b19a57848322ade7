from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from .types import Box


def color_for_label(label: int) -> Tuple[int, int, int]:
    """
    Deterministic, well-spread BGR color for a label index (OpenCV expects BGR).
    """

    # Golden-ratio hue walk keeps neighbouring labels visually apart.
    hue = (label * 0.618033988749895) % 1.0
    h6 = hue * 6.0
    sector = int(h6) % 6
    f = h6 - int(h6)
    v, p, q, t = 255, 64, int(255 - 191 * f), int(64 + 191 * f)
    r, g, b = [(v, t, p), (q, v, p), (p, v, t), (p, q, v), (t, p, v), (v, p, q)][sector]
    return b, g, r


def box_caption(box: Box, label_names: Optional[Sequence[str]] = None, show_score: bool = True) -> str:
    if label_names is not None and 0 <= box.label < len(label_names):
        caption = label_names[box.label]
    else:
        caption = str(box.label)
    if show_score:
        caption = f"{caption} {box.score:.2f}"
    return caption


def draw_boxes(
    image_bgr: np.ndarray,
    boxes: Iterable[Box],
    *,
    label_names: Optional[Sequence[str]] = None,
    show_score: bool = True,
    box_thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw boxes and captions on an OpenCV BGR image and return a copy.

    Args:
        image_bgr: input image in BGR (H, W, 3).
        boxes: boxes in original image coordinates; drawn clipped to the image.
        label_names: class names indexed by Box.label.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_boxes(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]

    for box in boxes:
        left, top, right, bottom = box.as_xyxy()
        x1 = int(np.clip(round(left), 0, w - 1))
        y1 = int(np.clip(round(top), 0, h - 1))
        x2 = int(np.clip(round(right), 0, w - 1))
        y2 = int(np.clip(round(bottom), 0, h - 1))

        color = color_for_label(box.label)
        cv2.rectangle(out, (x1, y1), (x2, y2), color, thickness=box_thickness)

        caption = box_caption(box, label_names, show_score)
        (tw, th), baseline = cv2.getTextSize(caption, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        # Caption sits above the box, or inside it at the top edge of the image.
        text_top = y1 - th - baseline if y1 - th - baseline >= 0 else y1
        cv2.rectangle(
            out,
            (x1, text_top),
            (min(x1 + tw, w - 1), min(text_top + th + baseline, h - 1)),
            color,
            thickness=-1,
        )
        cv2.putText(
            out,
            caption,
            (x1, min(text_top + th, h - 1)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (255, 255, 255),
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
