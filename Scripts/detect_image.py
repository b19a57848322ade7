from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import cv2

from yolov2_kit import YoloV2, draw_boxes, load_config
from yolov2_kit.backends.onnxruntime_backend import OnnxRuntimeBackendConfig
from yolov2_kit.backends.torchscript_backend import TorchScriptBackendConfig
from yolov2_kit.errors import ConfigError, EngineError, PreconditionViolation
from yolov2_kit.runtime import resolve_backend
from yolov2_kit.visualize import box_caption


LOGGER = logging.getLogger("detect_image")


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def read_image(path: str):
    img = cv2.imread(path)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {path}")
    return img


def build_backend_config(backend: str, args: argparse.Namespace):
    if backend == "onnxruntime":
        providers = [p.strip() for p in args.providers.split(",")] if args.providers else None
        return OnnxRuntimeBackendConfig(providers=providers)
    if args.providers:
        LOGGER.warning("--providers only applies to the onnxruntime backend; ignoring it")
    return TorchScriptBackendConfig(device=args.device)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a YOLOv2 model on one image and print the detections.")
    parser.add_argument("--config", required=True, help="Model config JSON (tensor names, input size, anchors, labels).")
    parser.add_argument("--model", required=True, help="Model file (.onnx, .torchscript/.ts/.pt).")
    parser.add_argument("--image", required=True, help="Input image path.")
    parser.add_argument("--backend", default=None, choices=["onnxruntime", "torchscript"])
    parser.add_argument("--providers", default=None, help="Comma-separated ONNX Runtime execution providers.")
    parser.add_argument("--device", default="cpu", help="TorchScript device.")
    parser.add_argument("--output", default=None, help="Write an annotated copy of the image here.")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = load_config(Path(args.config))
        image = read_image(args.image)

        backend = resolve_backend(args.model, args.backend)

        detector = YoloV2.from_model_file(
            args.model,
            config,
            backend=backend,
            backend_config=build_backend_config(backend, args),
            root=Path.cwd(),
        )
        boxes = detector.predict(image)
    except (ConfigError, EngineError, PreconditionViolation, FileNotFoundError, ImportError) as exc:
        LOGGER.error("%s", exc)
        return 1

    LOGGER.info("%d detections", len(boxes))
    for box in boxes:
        print(
            f"{box_caption(box, config.label_names, show_score=False)} {box.score:.3f} "
            f"{box.top:.1f} {box.left:.1f} {box.bottom:.1f} {box.right:.1f}"
        )

    if args.output:
        vis = draw_boxes(image, boxes, label_names=config.label_names)
        if not cv2.imwrite(args.output, vis):
            LOGGER.error("Could not write %s", args.output)
            return 1
        LOGGER.info("Wrote %s", args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
