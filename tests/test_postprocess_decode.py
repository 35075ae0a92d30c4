import unittest

import numpy as np

from labeller_kit.errors import TooFewFeatures, UnsupportedShape
from labeller_kit.layout import resolve_layout
from labeller_kit.postprocess import DetectionConfig, DetectionPostprocessor, decode_candidates, detect
from labeller_kit.types import RawOutput


def _feature_major(num_classes: int, num_slots: int) -> np.ndarray:
    return np.zeros((4 + num_classes, num_slots), dtype=np.float32)


class TestDecodeCandidates(unittest.TestCase):
    def test_yolov8_single_detection(self) -> None:
        p = _feature_major(80, 8400)
        p[0:4, 1234] = [320, 320, 100, 50]
        p[4 + 3, 1234] = 0.9
        p[4 + 7, 99] = 0.3  # below threshold

        dets = detect(RawOutput.from_array(p[None]), [], confidence_threshold=0.5, iou_threshold=0.45)
        self.assertEqual(len(dets), 1)
        det = dets[0]
        self.assertEqual(det.class_id, 3)
        self.assertEqual(det.class_name, "3")
        self.assertAlmostEqual(det.confidence, 0.9, places=6)
        self.assertEqual(det.center_x, 0.5)
        self.assertEqual(det.center_y, 0.5)
        self.assertEqual(det.width, 0.15625)
        self.assertEqual(det.height, 0.078125)

    def test_anchors_layout_matches_transposed_layout(self) -> None:
        # 3 classes, 32 slots
        p = _feature_major(3, 32)
        p[0:4, :] = np.array([[50], [60], [10], [20]], dtype=np.float32)
        p[0:4, 1] = [55, 66, 12, 18]
        p[4:, 0] = [0.1, 0.9, 0.2]
        p[4:, 1] = [0.7, 0.1, 0.2]
        p[4:, 5] = [0.2, 0.6, 0.6]  # tie -> lowest class id

        feature_major = RawOutput.from_array(p[None])
        slot_major = RawOutput.from_array(p.T[None])

        a = decode_candidates(feature_major, resolve_layout(feature_major.shape), 0.5)
        b = decode_candidates(slot_major, resolve_layout(slot_major.shape), 0.5)
        self.assertEqual(a, b)
        self.assertEqual([c.class_id for c in a], [1, 0, 1])
        self.assertTrue(np.allclose([c.confidence for c in a], [0.9, 0.7, 0.6]))
        self.assertAlmostEqual(a[1].center_x, 55 / 640)
        self.assertAlmostEqual(a[1].height, 18 / 640)

    def test_threshold_is_inclusive(self) -> None:
        p = _feature_major(1, 8)
        p[4, 2] = 0.5
        raw = RawOutput.from_array(p[None])
        cands = decode_candidates(raw, resolve_layout(raw.shape), 0.5)
        self.assertEqual(len(cands), 1)

    def test_raising_threshold_never_adds_candidates(self) -> None:
        rng = np.random.default_rng(7)
        p = rng.random((4 + 5, 200), dtype=np.float32)
        p[0:4, :] *= 640
        raw = RawOutput.from_array(p[None])
        layout = resolve_layout(raw.shape)
        counts = [len(decode_candidates(raw, layout, t)) for t in np.linspace(0.05, 1.0, 20)]
        self.assertEqual(counts, sorted(counts, reverse=True))

    def test_output_is_deterministic(self) -> None:
        rng = np.random.default_rng(3)
        p = rng.random((200, 4 + 3), dtype=np.float32)
        raw = RawOutput.from_array(p[None])
        layout = resolve_layout(raw.shape)
        first = decode_candidates(raw, layout, 0.3)
        second = decode_candidates(raw, layout, 0.3)
        self.assertEqual(first, second)

    def test_truncated_slot_major_buffer_skips_missing_slots(self) -> None:
        p = np.zeros((10, 4 + 2), dtype=np.float32)
        p[:, 4] = 0.9
        flat = p.reshape(-1)[: 6 * 7 + 3]  # slot 7 is cut mid-way
        raw = RawOutput(shape=(1, 10, 6), values=flat)
        with self.assertLogs("labeller_kit.postprocess", level="WARNING"):
            cands = decode_candidates(raw, resolve_layout(raw.shape), 0.5)
        self.assertEqual(len(cands), 7)

    def test_nan_score_does_not_hide_best_class(self) -> None:
        p = np.zeros((8, 4 + 2), dtype=np.float32)
        p[0, 0:4] = [320, 320, 64, 64]
        p[0, 4:] = [0.9, np.nan]
        p[1, 4:] = [np.nan, np.nan]
        p[2, 4:] = [np.nan, 0.7]
        raw = RawOutput.from_array(p[None])
        cands = decode_candidates(raw, resolve_layout(raw.shape), 0.5)
        self.assertEqual([c.class_id for c in cands], [0, 1])
        self.assertAlmostEqual(cands[0].confidence, 0.9, places=6)

    def test_oversized_declared_shape_does_not_allocate_it(self) -> None:
        flat = np.zeros((5, 6), dtype=np.float32)
        flat[:, 4] = 0.9
        raw = RawOutput(shape=(1, 10**9, 6), values=flat.reshape(-1))
        with self.assertLogs("labeller_kit.postprocess", level="WARNING"):
            cands = decode_candidates(raw, resolve_layout(raw.shape), 0.5)
        self.assertEqual(len(cands), 5)

        raw = RawOutput(shape=(1, 5, 10**9), values=np.full(40, 0.9, dtype=np.float32))
        with self.assertLogs("labeller_kit.postprocess", level="WARNING"):
            self.assertEqual(decode_candidates(raw, resolve_layout(raw.shape), 0.5), [])

    def test_truncated_feature_major_buffer_skips_missing_slots(self) -> None:
        p = _feature_major(2, 10)
        p[5, :] = 0.8
        flat = p.reshape(-1)[:-4]  # last class row misses slots 6..9
        raw = RawOutput(shape=(1, 6, 10), values=flat)
        cands = decode_candidates(raw, resolve_layout(raw.shape), 0.5)
        self.assertEqual(len(cands), 6)
        self.assertTrue(all(c.class_id == 1 for c in cands))

    def test_max_slots_limits_scan(self) -> None:
        p = _feature_major(1, 20)
        p[4, :] = 0.9
        raw = RawOutput.from_array(p[None])
        cands = decode_candidates(raw, resolve_layout(raw.shape), 0.5, max_slots=5)
        self.assertEqual(len(cands), 5)


class TestDetect(unittest.TestCase):
    def test_nothing_above_threshold_is_empty_not_error(self) -> None:
        p = np.array([[[10, 20], [10, 20], [4, 4], [4, 4], [0.5, 0.2]]], dtype=np.float32)  # (1, 5, 2)
        self.assertEqual(detect(RawOutput.from_array(p), ["only"], confidence_threshold=0.99), [])

    def test_bad_shapes_raise_typed_errors(self) -> None:
        with self.assertRaises(TooFewFeatures):
            detect(RawOutput(shape=(1, 1, 100), values=np.zeros(100)), [])
        with self.assertRaises(UnsupportedShape):
            detect(RawOutput(shape=(2, 84, 10), values=np.zeros(2 * 84 * 10)), [])

    def test_class_names_and_fallback(self) -> None:
        p = np.zeros((10, 4 + 3), dtype=np.float32)
        p[0, 0:4] = [100, 100, 20, 20]
        p[0, 4 + 0] = 0.8
        p[1, 0:4] = [500, 500, 20, 20]
        p[1, 4 + 2] = 0.95
        dets = detect(p[None], ["cat", "dog"])
        self.assertEqual([(d.class_id, d.class_name) for d in dets], [(2, "2"), (0, "cat")])

    def test_cross_class_overlap_is_suppressed(self) -> None:
        p = np.zeros((8, 4 + 3), dtype=np.float32)
        p[0, 0:4] = [320, 320, 100, 100]
        p[0, 4 + 1] = 0.9
        p[1, 0:4] = [330, 320, 100, 100]
        p[1, 4 + 2] = 0.8
        dets = detect(p[None], ["a", "b", "c"], iou_threshold=0.45)
        self.assertEqual(len(dets), 1)
        self.assertEqual(dets[0].class_name, "b")

    def test_postprocessor_accepts_ndarray_and_respects_max_detections(self) -> None:
        p = _feature_major(1, 16)
        p[0, :] = np.arange(16) * 40 + 20
        p[1, :] = 320
        p[2:4, :] = 10
        p[4, :] = np.linspace(0.6, 0.9, 16)
        post = DetectionPostprocessor(DetectionConfig(max_detections=3))
        dets = post.process(p[None])
        self.assertEqual(len(dets), 3)
        self.assertTrue(dets[0].confidence >= dets[1].confidence >= dets[2].confidence)

    def test_threshold_above_one_gives_no_detections(self) -> None:
        p = _feature_major(2, 10)
        p[0:4, 3] = [100, 100, 20, 20]
        p[4, 3] = 0.9
        raw = RawOutput.from_array(p[None])
        self.assertEqual(detect(raw, [], confidence_threshold=1.5), [])
        self.assertEqual(len(detect(raw, [], confidence_threshold=0.85)), 1)

    def test_zero_threshold_keeps_only_positive_scores(self) -> None:
        p = _feature_major(2, 10)
        p[0:4, 3] = [100, 100, 20, 20]
        p[5, 3] = 0.2
        raw = RawOutput.from_array(p[None])
        dets = detect(raw, ["a", "b"], confidence_threshold=0.0)
        self.assertEqual([(d.class_name, d.confidence > 0) for d in dets], [("b", True)])
        self.assertEqual(len(decode_candidates(raw, resolve_layout(raw.shape), 0.0)), 1)

    def test_config_validation(self) -> None:
        DetectionConfig(conf_threshold=0.0)
        DetectionConfig(conf_threshold=2.0)
        with self.assertRaises(ValueError):
            DetectionConfig(iou_threshold=1.5)
        with self.assertRaises(ValueError):
            DetectionConfig(input_size=0)


if __name__ == "__main__":
    unittest.main()
