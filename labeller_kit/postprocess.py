import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from .layout import BOX_DIMS, Layout, LayoutKind, resolve_layout
from .nms import suppress
from .types import Candidate, Detection, RawOutput

LOGGER = logging.getLogger(__name__)

DEFAULT_INPUT_SIZE = 640


@dataclass(frozen=True)
class DetectionConfig:
    """
    Thresholds and model geometry for YOLO post-processing.
    """

    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    # Edge length of the square model input; box values are divided by it.
    input_size: int = DEFAULT_INPUT_SIZE
    # Cap on boxes kept after NMS; None keeps all.
    max_detections: Optional[int] = None
    # Cap on slots scanned per output; None scans all.
    max_slots: Optional[int] = None

    def __post_init__(self) -> None:
        # conf_threshold is not range-checked: above 1 nothing is kept.
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError(f"iou_threshold must be within [0, 1], got {self.iou_threshold}")
        if self.input_size <= 0:
            raise ValueError(f"input_size must be > 0, got {self.input_size}")
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError("max_detections must be >= 1 when set")
        if self.max_slots is not None and self.max_slots < 0:
            raise ValueError("max_slots must be >= 0 when set")


def _slot_table(values: np.ndarray, layout: Layout, count: int) -> np.ndarray:
    """
    The first `count` slots as a (count, 4 + num_classes) table. `count` must
    not exceed `layout.readable_slots(values.size)`.
    """

    if layout.kind is LayoutKind.FEATURE_MAJOR:
        stride = layout.num_slots
        return np.stack([values[f * stride : f * stride + count] for f in range(layout.num_features)], axis=1)
    return values[: count * layout.num_features].reshape(count, layout.num_features)


def decode_candidates(
    raw: RawOutput,
    layout: Layout,
    confidence_threshold: float,
    input_size: int = DEFAULT_INPUT_SIZE,
    max_slots: Optional[int] = None,
) -> List[Candidate]:
    """
    Decode every detection slot into at most one candidate.

    Per slot: read cx, cy, w, h and the class scores through the layout, keep the
    best class (lowest id on ties, NaN scores ignored) and emit it when its score
    is positive and reaches `confidence_threshold`. Box values are divided by
    `input_size`. Slots whose values run past the end of the buffer are skipped.
    """

    num_slots = layout.num_slots if max_slots is None else min(layout.num_slots, max_slots)
    if num_slots <= 0:
        return []

    values = raw.values
    readable = min(num_slots, layout.readable_slots(values.size))
    if readable < num_slots:
        LOGGER.warning(
            "Output buffer holds %d values but shape %s needs %d; skipping %d slot(s)",
            values.size,
            raw.shape,
            layout.size,
            num_slots - readable,
        )
    if readable == 0:
        return []

    table = _slot_table(values, layout, readable)
    boxes = table[:, :BOX_DIMS].astype(np.float64) / float(input_size)
    scores = table[:, BOX_DIMS:]
    scores = np.where(np.isnan(scores), -np.inf, scores)

    class_ids = np.argmax(scores, axis=1)
    best = scores[np.arange(readable), class_ids]
    keep = np.flatnonzero((best >= confidence_threshold) & (best > 0))

    return [
        Candidate(
            class_id=int(class_ids[i]),
            confidence=float(best[i]),
            center_x=float(boxes[i, 0]),
            center_y=float(boxes[i, 1]),
            width=float(boxes[i, 2]),
            height=float(boxes[i, 3]),
        )
        for i in keep
    ]


def class_name_for(class_id: int, class_names: Sequence[str]) -> str:
    if 0 <= class_id < len(class_names):
        return class_names[class_id]
    return str(class_id)


class DetectionPostprocessor:
    """
    Post-process for YOLO exports with a (1, 4 + C, slots) or (1, slots, 4 + C)
    output: [cx, cy, w, h, class_scores...] in model input pixels.

    Produces class-agnostic NMS-filtered detections, normalized to the square
    model input.
    """

    def __init__(self, cfg: DetectionConfig = DetectionConfig()):
        self.cfg = cfg

    def process(
        self,
        raw: Union[RawOutput, np.ndarray],
        class_names: Sequence[str] = (),
    ) -> List[Detection]:
        if not isinstance(raw, RawOutput):
            raw = RawOutput.from_array(raw)

        layout = resolve_layout(raw.shape)
        LOGGER.debug(
            "Output shape %s: %d slots, %d classes, layout=%s",
            raw.shape,
            layout.num_slots,
            layout.num_classes,
            layout.kind.value,
        )

        candidates = decode_candidates(
            raw,
            layout,
            self.cfg.conf_threshold,
            input_size=self.cfg.input_size,
            max_slots=self.cfg.max_slots,
        )
        if not candidates:
            return []

        kept = suppress(candidates, self.cfg.iou_threshold, max_detections=self.cfg.max_detections)
        LOGGER.debug("Kept %d of %d candidates after NMS", len(kept), len(candidates))

        return [Detection.from_candidate(c, class_name_for(c.class_id, class_names)) for c in kept]


def detect(
    raw: Union[RawOutput, np.ndarray],
    class_names: Sequence[str],
    confidence_threshold: float = 0.5,
    iou_threshold: float = 0.45,
    input_size: int = DEFAULT_INPUT_SIZE,
) -> List[Detection]:
    """
    Resolve layout, decode, suppress and label one model output.

    Raises `DecodeError` when the output shape is not a detection tensor. An
    output with nothing above threshold gives an empty list.
    """

    cfg = DetectionConfig(
        conf_threshold=confidence_threshold,
        iou_threshold=iou_threshold,
        input_size=input_size,
    )
    return DetectionPostprocessor(cfg).process(raw, class_names)
