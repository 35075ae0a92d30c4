"""
YOLO text annotations: one `class_id cx cy w h` line per box, coordinates
normalized to [0, 1] with 6 decimals. Each image keeps its boxes in a `.txt`
file with the same stem, which the sorting and label-check tools read back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from .types import Detection

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class YoloAnnotation:
    class_id: int
    center_x: float
    center_y: float
    width: float
    height: float

    def to_line(self) -> str:
        return f"{self.class_id} {self.center_x:.6f} {self.center_y:.6f} {self.width:.6f} {self.height:.6f}"

    @classmethod
    def parse(cls, line: str) -> Optional["YoloAnnotation"]:
        """Parse one line; returns None for anything that is not a valid record."""
        parts = line.strip().split(" ")
        if len(parts) < 5:
            return None
        try:
            class_id = int(parts[0])
            cx, cy, w, h = (float(p) for p in parts[1:5])
        except ValueError:
            return None
        return cls(class_id=class_id, center_x=cx, center_y=cy, width=w, height=h)


def annotation_path_for(image_path: PathLike) -> Path:
    return Path(image_path).with_suffix(".txt")


def read_annotations(path: PathLike) -> List[YoloAnnotation]:
    p = Path(path)
    if not p.exists():
        return []
    annotations: List[YoloAnnotation] = []
    for lineno, raw in enumerate(p.read_text(encoding="utf-8").splitlines(), start=1):
        if not raw.strip():
            continue
        ann = YoloAnnotation.parse(raw)
        if ann is None:
            LOGGER.debug("Skipping malformed annotation %s:%d: %r", p, lineno, raw)
            continue
        annotations.append(ann)
    return annotations


def write_annotations(path: PathLike, annotations: Iterable[YoloAnnotation]) -> Path:
    p = Path(path)
    lines = [a.to_line() for a in annotations]
    p.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")
    return p


def annotation_from_detection(det: Detection) -> YoloAnnotation:
    return YoloAnnotation(
        class_id=det.class_id,
        center_x=det.center_x,
        center_y=det.center_y,
        width=det.width,
        height=det.height,
    )


def best_detection(detections: Sequence[Detection]) -> Optional[Detection]:
    # max() keeps the first of equal confidences
    if not detections:
        return None
    return max(detections, key=lambda d: d.confidence)


def save_best_detection(
    image_path: PathLike,
    detections: Sequence[Detection],
    *,
    append: bool = False,
) -> Optional[YoloAnnotation]:
    """
    Persist the highest-confidence detection as the image's annotation.

    With `append=True` the record is added to the existing annotations instead
    of replacing them, unless an identical line is already there. Nothing is
    written when there are no detections.
    """

    best = best_detection(detections)
    if best is None:
        return None

    ann = annotation_from_detection(best)
    path = annotation_path_for(image_path)
    existing = read_annotations(path) if append else []
    if any(a.to_line() == ann.to_line() for a in existing):
        LOGGER.debug("%s already holds %s", path, ann.to_line())
        return ann
    write_annotations(path, [*existing, ann])
    LOGGER.info("Saved %s (%.2f) to %s", best.class_name, best.confidence, path)
    return ann
