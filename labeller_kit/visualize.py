from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from .types import Detection

# Lime boxes, as in the labelling views
BOX_COLOR: Tuple[int, int, int] = (0, 255, 0)


def format_label(det: Detection, show_score: bool = True) -> str:
    if not show_score:
        return det.class_name
    return f"{det.class_name} ==> {det.confidence:.0%}"


def _label_rect(
    anchor: Tuple[int, int],
    text_size: Tuple[int, int],
    baseline: int,
    image_size: Tuple[int, int],
) -> Tuple[int, int, int, int]:
    """
    Label background (left, top, right, bottom) for a box whose top-left corner
    is `anchor`: sitting on the box edge, or just inside the box when the
    image has no room above it.
    """
    x, y = anchor
    text_w, text_h = text_size
    img_w, img_h = image_size
    height = text_h + baseline
    top = y - height if y >= height else y
    return x, top, min(x + text_w, img_w - 1), min(top + height, img_h - 1)


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    show_score: bool = True,
    color: Tuple[int, int, int] = BOX_COLOR,
    box_thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw normalized detections + labels on an OpenCV BGR image and return a copy.

    Boxes are scaled by the image's own width and height.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_detections(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]

    for det in detections:
        x1, y1, x2, y2 = det.to_pixels(w, h)
        x1i = int(np.clip(round(x1), 0, w - 1))
        y1i = int(np.clip(round(y1), 0, h - 1))
        x2i = int(np.clip(round(x2), 0, w - 1))
        y2i = int(np.clip(round(y2), 0, h - 1))

        cv2.rectangle(out, (x1i, y1i), (x2i, y2i), color, thickness=box_thickness)

        label = format_label(det, show_score)
        text_size, baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        left, top, right, bottom = _label_rect((x1i, y1i), text_size, baseline, (w, h))
        cv2.rectangle(out, (left, top), (right, bottom), color, thickness=-1)
        cv2.putText(
            out,
            label,
            (left, min(top + text_size[1], h - 1)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (255, 255, 255),
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
