import math
from typing import Tuple

import numpy as np

from .errors import PreconditionViolation

# Letterbox band colour, already in normalized [0, 1] units.
PAD_VALUE = 0.5


def fit_size(image_hw: Tuple[int, int], box_hw: Tuple[int, int]) -> Tuple[float, Tuple[int, int]]:
    """
    Largest aspect-preserving size of `image_hw` that fits inside `box_hw`.

    Returns:
        scale: min(box_h / img_h, box_w / img_w)
        size: (resized_h, resized_w), rounded half away from zero, at least 1 pixel each
    """

    h, w = image_hw
    box_h, box_w = box_hw
    scale = min(box_h / h, box_w / w)
    resized_h = max(int(math.floor(h * scale + 0.5)), 1)
    resized_w = max(int(math.floor(w * scale + 0.5)), 1)
    return scale, (resized_h, resized_w)


def letterbox_into(dst: np.ndarray, image: np.ndarray) -> float:
    """
    Letterbox `image` into the CHW tensor view `dst` in place.

    `dst` is filled with PAD_VALUE, then the nearest-neighbour resized image is
    copied in as [0, 1] floats, centered. When the padding is odd the extra
    row/column ends up at the bottom/right (integer division).

    Args:
        dst: writable float array shaped (3, H, W), usually the model input
            buffer with the batch axis stripped
        image: uint8 array shaped (h, w, 3); channels are copied in the order given

    Returns:
        scale: min(H / h, W / w), needed later to map boxes back to the image
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox_into(). Install with `pip install opencv-python`.") from e

    if dst.ndim != 3 or dst.shape[0] != 3:
        raise PreconditionViolation(f"Expected input tensor shape (3, H, W), got {dst.shape}")
    if image.ndim != 3 or image.shape[2] != 3:
        raise PreconditionViolation(f"Expected image shape (H, W, 3), got {image.shape}")

    in_h, in_w = dst.shape[1:]
    img_h, img_w = image.shape[:2]
    scale, (h, w) = fit_size((img_h, img_w), (in_h, in_w))

    if (h, w) != (img_h, img_w):
        image = cv2.resize(image, (w, h), interpolation=cv2.INTER_NEAREST)

    top = (in_h - h) // 2
    left = (in_w - w) // 2

    dst.fill(PAD_VALUE)
    # HWC -> CHW
    dst[:, top : top + h, left : left + w] = np.transpose(image, (2, 0, 1)).astype(np.float32) / 255.0

    return scale
