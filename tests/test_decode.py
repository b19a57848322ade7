import math
import unittest

import numpy as np

from yolov2_kit.decode import decode, sigmoid
from yolov2_kit.errors import ConfigError


def _output(n_anchors: int, n_classes: int, h: int, w: int, obj: float = -20.0) -> np.ndarray:
    # Every anchor starts out as confident background.
    out = np.zeros((n_anchors * (5 + n_classes), h, w), dtype=np.float32)
    for a in range(n_anchors):
        out[a * (5 + n_classes) + 4] = obj
    return out


class TestDecode(unittest.TestCase):
    def test_single_dominant_class(self) -> None:
        out = _output(1, 3, 1, 1)
        out[4, 0, 0] = 20.0
        out[5:, 0, 0] = [20.0, -20.0, -20.0]

        boxes = decode(out, [(1.0, 1.0)], 3, 0.5)
        self.assertEqual(len(boxes), 1)
        box = boxes[0]
        self.assertEqual(box.label, 0)
        self.assertAlmostEqual(box.score, float(sigmoid(20.0)), places=6)
        self.assertAlmostEqual(box.top, 0.0)
        self.assertAlmostEqual(box.left, 0.0)
        self.assertAlmostEqual(box.bottom, 1.0)
        self.assertAlmostEqual(box.right, 1.0)

    def test_background_yields_nothing(self) -> None:
        out = _output(2, 4, 3, 3)
        self.assertEqual(decode(out, [(1.0, 1.0), (2.0, 2.0)], 4, 0.5), [])

    def test_anchor_scaling_and_cell_offset(self) -> None:
        out = _output(1, 1, 4, 4)
        out[2, 1, 2] = math.log(2.0)  # height doubles the anchor
        out[4, 1, 2] = 20.0

        boxes = decode(out, [(2.0, 4.0)], 1, 0.5)
        self.assertEqual(len(boxes), 1)
        box = boxes[0]
        # center (1.5, 2.5), size (4, 4), grid 4x4
        self.assertAlmostEqual(box.top, -0.125, places=6)
        self.assertAlmostEqual(box.left, 0.125, places=6)
        self.assertAlmostEqual(box.bottom, 0.875, places=6)
        self.assertAlmostEqual(box.right, 1.125, places=6)

    def test_location_offsets_stay_inside_cell(self) -> None:
        out = _output(1, 1, 2, 2)
        out[0, 0, 0] = 50.0
        out[1, 0, 0] = -50.0
        out[4, 0, 0] = 20.0

        (box,) = decode(out, [(0.5, 0.5)], 1, 0.5)
        cy = (box.top + box.bottom) / 2 * 2
        cx = (box.left + box.right) / 2 * 2
        self.assertAlmostEqual(cy, 1.0, places=6)
        self.assertAlmostEqual(cx, 0.0, places=6)

    def test_scores_are_softmax_scaled_by_objectness(self) -> None:
        out = _output(1, 2, 1, 1)
        out[4, 0, 0] = 0.0  # objectness 0.5
        out[5:, 0, 0] = [math.log(3.0), 0.0]  # softmax -> [0.75, 0.25]

        boxes = decode(out, [(1.0, 1.0)], 2, 0.0)
        self.assertEqual([b.label for b in boxes], [0, 1])
        self.assertAlmostEqual(boxes[0].score, 0.375, places=6)
        self.assertAlmostEqual(boxes[1].score, 0.125, places=6)
        self.assertAlmostEqual(sum(b.score for b in boxes), 0.5, places=6)

    def test_one_anchor_can_emit_several_labels(self) -> None:
        out = _output(1, 2, 1, 1)
        out[4, 0, 0] = 20.0
        boxes = decode(out, [(1.0, 1.0)], 2, 0.4)
        self.assertEqual([b.label for b in boxes], [0, 1])
        self.assertEqual(boxes[0].as_xyxy(), boxes[1].as_xyxy())

    def test_order_is_cell_then_anchor(self) -> None:
        out = _output(2, 1, 2, 2)
        out[4, 0, 1] = 20.0  # anchor 0 at (0, 1)
        out[10, 1, 0] = 20.0  # anchor 1 at (1, 0)
        out[10, 0, 1] = 20.0  # anchor 1 at (0, 1)

        boxes = decode(out, [(1.0, 1.0), (2.0, 2.0)], 1, 0.5)
        heights = [round((b.bottom - b.top) * 2, 6) for b in boxes]
        centers = [(round(b.top + b.bottom, 6), round(b.left + b.right, 6)) for b in boxes]
        self.assertEqual(heights, [1.0, 2.0, 2.0])
        self.assertEqual(centers, [(0.5, 1.5), (0.5, 1.5), (1.5, 0.5)])

    def test_threshold_is_inclusive(self) -> None:
        out = _output(1, 1, 1, 1)
        out[4, 0, 0] = 0.0  # score exactly 0.5
        self.assertEqual(len(decode(out, [(1.0, 1.0)], 1, 0.5)), 1)

    def test_channel_mismatch_is_config_error(self) -> None:
        out = np.zeros((7, 2, 2), dtype=np.float32)
        with self.assertRaises(ConfigError):
            decode(out, [(1.0, 1.0), (2.0, 2.0)], 2, 0.5)

    def test_rejects_batched_output(self) -> None:
        with self.assertRaises(ValueError):
            decode(np.zeros((1, 6, 2, 2), dtype=np.float32), [(1.0, 1.0)], 1, 0.5)

    def test_read_only_view_is_accepted(self) -> None:
        out = _output(1, 1, 1, 1, obj=20.0)
        out.flags.writeable = False
        self.assertEqual(len(decode(out, [(1.0, 1.0)], 1, 0.5)), 1)

    def test_size_logits_are_not_clamped(self) -> None:
        out = _output(1, 1, 1, 1, obj=20.0)
        out[2, 0, 0] = 1000.0

        (box,) = decode(out, [(1.0, 1.0)], 1, 0.5)
        self.assertTrue(math.isinf(box.bottom))
        self.assertTrue(math.isinf(box.top))

    def test_overflowing_class_logits_produce_no_box(self) -> None:
        # exp overflows to inf, inf / inf is nan and nan never clears the threshold
        out = _output(1, 2, 1, 1, obj=20.0)
        out[5, 0, 0] = 1000.0
        self.assertEqual(decode(out, [(1.0, 1.0)], 2, 0.5), [])


if __name__ == "__main__":
    unittest.main()
