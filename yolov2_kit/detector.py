from __future__ import annotations

import logging
from typing import Any, List, Optional

import numpy as np

from .config import YoloV2Config
from .decode import decode
from .errors import ConfigError, PreconditionViolation
from .letterbox import letterbox_into
from .nms import suppress
from .runtime import Model, PathLike, load_model
from .types import Box


LOGGER = logging.getLogger(__name__)


def rescale_boxes(boxes: List[Box], scale: float, insize: int, img_h: int, img_w: int) -> None:
    """
    Map boxes from normalized letterboxed grid space back to image pixels, in place.

    Undoes the centering and resize done by `letterbox_into`:
        pixel = (normalized - 0.5) * (insize / scale) + image_side / 2
    Results are not clipped to the image.
    """

    factor = insize / scale
    for box in boxes:
        box.top = (box.top - 0.5) * factor + img_h / 2.0
        box.left = (box.left - 0.5) * factor + img_w / 2.0
        box.bottom = (box.bottom - 0.5) * factor + img_h / 2.0
        box.right = (box.right - 0.5) * factor + img_w / 2.0


class YoloV2:
    """
    YOLOv2 detector: letterbox -> forward pass -> decode -> suppress -> rescale.

    Expects BGR images (OpenCV-style) as `np.ndarray` and returns a list of
    `Box` in original image coordinates, sorted by (label, score descending).
    """

    def __init__(self, model: Model, config: YoloV2Config):
        if tuple(model.input_shape) != config.input_shape:
            raise ConfigError(
                f"Model input shape {tuple(model.input_shape)} does not match config input shape {config.input_shape}"
            )
        self.model = model
        self.config = config

    @classmethod
    def from_model_file(
        cls,
        model_path: PathLike,
        config: YoloV2Config,
        *,
        backend: Optional[str] = None,
        backend_config: Optional[Any] = None,
        root: Optional[PathLike] = "auto",
    ) -> "YoloV2":
        model = load_model(
            model_path,
            config.input_tensor_name,
            config.input_shape,
            config.output_tensor_name,
            backend=backend,
            backend_config=backend_config,
            root=root,
        )
        return cls(model, config)

    def predict(self, image_bgr: np.ndarray) -> List[Box]:
        if image_bgr is None or not hasattr(image_bgr, "shape"):
            raise TypeError("image_bgr must be a NumPy array (BGR).")
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            raise PreconditionViolation(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

        cfg = self.config
        img_h, img_w = image_bgr.shape[:2]

        with self.model.lease() as model:
            image_rgb = np.ascontiguousarray(image_bgr[:, :, ::-1])
            scale = letterbox_into(model.get_mutable_view(cfg.input_tensor_name)[0], image_rgb)

            model.run()

            out = model.get_view(cfg.output_tensor_name)[0]
            cfg.check_output_channels(out.shape[0])
            boxes = decode(out, cfg.anchors, cfg.num_classes, cfg.conf_threshold)

        n_candidates = len(boxes)
        suppress(boxes, cfg.iou_threshold)
        LOGGER.debug("Decoded %d candidates, %d after suppression", n_candidates, len(boxes))

        rescale_boxes(boxes, scale, cfg.input_size, img_h, img_w)
        return boxes
