from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .types import Candidate


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.45
    max_detections: Optional[int] = None


def _xyxy(candidates: Sequence[Candidate]) -> np.ndarray:
    boxes = np.array(
        [(c.center_x, c.center_y, c.width, c.height) for c in candidates],
        dtype=np.float64,
    ).reshape(-1, 4)
    cx, cy, w, h = boxes.T
    return np.stack([cx - w / 2, cy - h / 2, cx + w / 2, cy + h / 2], axis=1)


def _iou_one_to_many(box: np.ndarray, others: np.ndarray) -> np.ndarray:
    """
    IoU of one xyxy box against an (N, 4) array. A non-positive union yields 0,
    so zero-area boxes never suppress each other.
    """

    xx1 = np.maximum(box[0], others[:, 0])
    yy1 = np.maximum(box[1], others[:, 1])
    xx2 = np.minimum(box[2], others[:, 2])
    yy2 = np.minimum(box[3], others[:, 3])

    inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
    area = (box[2] - box[0]) * (box[3] - box[1])
    areas = (others[:, 2] - others[:, 0]) * (others[:, 3] - others[:, 1])
    union = area + areas - inter

    out = np.zeros_like(inter)
    np.divide(inter, union, out=out, where=union > 0)
    return out


def iou(a: Candidate, b: Candidate) -> float:
    boxes = _xyxy([a, b])
    return float(_iou_one_to_many(boxes[0], boxes[1:])[0])


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of kept boxes in selection order (score descending, equal
    scores by original index).
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    order = np.argsort(-np.asarray(scores, dtype=np.float64), kind="stable")
    keep: List[int] = []

    while order.size > 0:
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break
        i = order[0]
        keep.append(int(i))

        overlap = _iou_one_to_many(boxes[i], boxes[order[1:]])
        order = order[1:][overlap <= cfg.iou_threshold]

    return np.array(keep, dtype=np.int64)


def suppress(
    candidates: Sequence[Candidate],
    iou_threshold: float = 0.45,
    max_detections: Optional[int] = None,
) -> List[Candidate]:
    """
    Class-agnostic greedy NMS over candidates: a confident box of one class
    also removes overlapping boxes of other classes.
    """

    if not candidates:
        return []
    if not 0.0 <= iou_threshold <= 1.0:
        raise ValueError(f"iou_threshold must be within [0, 1], got {iou_threshold}")

    scores = np.array([c.confidence for c in candidates], dtype=np.float64)
    keep = nms(_xyxy(candidates), scores, NMSConfig(iou_threshold=iou_threshold, max_detections=max_detections))
    return [candidates[i] for i in keep]
