from typing import List, Sequence, Tuple

import numpy as np

from .errors import ConfigError
from .types import Box


def sigmoid(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


def decode(
    out: np.ndarray,
    anchors: Sequence[Tuple[float, float]],
    n_fg_class: int,
    thresh: float,
) -> List[Box]:
    """
    Decode a YOLOv2 output map into candidate boxes.

    Layout of `out` (batch axis already stripped): (A * (5 + C), H, W), where
    every anchor owns a block of channels [ty, tx, th, tw, obj, class logits...].

    Per cell (y, x) and anchor a:
        center = (y + sigmoid(ty), x + sigmoid(tx))
        size   = (anchor_h * exp(th), anchor_w * exp(tw))
        score  = softmax(class logits) * sigmoid(obj)

    One box is emitted for every class whose score reaches `thresh`, so a
    single anchor can yield several boxes. Coordinates are normalized by the
    grid size. Boxes come out ordered by (y, x, anchor, label).

    Exponentials are not clamped: extreme logits give inf/nan sizes and scores
    that flow through unchanged.
    """

    out = np.asarray(out)
    if out.ndim != 3:
        raise ValueError(f"Expected output shape (C, H, W), got {out.shape}")

    n_anchors = len(anchors)
    depth = 4 + 1 + n_fg_class
    channels, out_h, out_w = out.shape
    if channels != n_anchors * depth:
        raise ConfigError(
            f"Output has {channels} channels, expected {n_anchors} anchors * (5 + {n_fg_class}) = {n_anchors * depth}"
        )

    p = out.astype(np.float64).reshape(n_anchors, depth, out_h, out_w)
    anchor_hw = np.asarray(anchors, dtype=np.float64).reshape(n_anchors, 2)

    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        cy = np.arange(out_h, dtype=np.float64)[None, :, None] + sigmoid(p[:, 0])
        cx = np.arange(out_w, dtype=np.float64)[None, None, :] + sigmoid(p[:, 1])
        h = anchor_hw[:, 0, None, None] * np.exp(p[:, 2])
        w = anchor_hw[:, 1, None, None] * np.exp(p[:, 3])

        obj = sigmoid(p[:, 4])
        score = np.exp(p[:, 5:])  # (A, C, H, W)
        score *= (obj / score.sum(axis=1))[:, None]

        top = (cy - h / 2.0) / out_h
        left = (cx - w / 2.0) / out_w
        bottom = (cy + h / 2.0) / out_h
        right = (cx + w / 2.0) / out_w

        # (A, C, H, W) -> (H, W, A, C) so nonzero() walks cells, then anchors, then labels
        hits = np.transpose(score, (2, 3, 0, 1)) >= thresh

    boxes: List[Box] = []
    for y, x, a, lb in zip(*np.nonzero(hits)):
        boxes.append(
            Box(
                top=float(top[a, y, x]),
                left=float(left[a, y, x]),
                bottom=float(bottom[a, y, x]),
                right=float(right[a, y, x]),
                label=int(lb),
                score=float(score[a, lb, y, x]),
            )
        )
    return boxes
