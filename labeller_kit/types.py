from dataclasses import dataclass, field
from typing import Tuple

import numpy as np


@dataclass(frozen=True, eq=False)
class RawOutput:
    """
    Raw result of one inference call: the declared output shape and a flat
    float32 buffer laid out row-major in that shape.
    """

    shape: Tuple[int, ...]
    values: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "shape", tuple(int(d) for d in self.shape))
        values = np.ascontiguousarray(self.values, dtype=np.float32).reshape(-1).view()
        values.setflags(write=False)
        object.__setattr__(self, "values", values)

    @classmethod
    def from_array(cls, preds: np.ndarray) -> "RawOutput":
        arr = np.asarray(preds, dtype=np.float32)
        return cls(shape=arr.shape, values=arr.reshape(-1))


@dataclass(frozen=True)
class Candidate:
    """
    One thresholded detection before suppression. Box values are center/size,
    normalized to the square model input.
    """

    class_id: int
    confidence: float
    center_x: float
    center_y: float
    width: float
    height: float


@dataclass(frozen=True)
class Detection:
    """
    A surviving candidate labelled with a human-readable class name.
    """

    class_id: int
    class_name: str
    confidence: float
    center_x: float
    center_y: float
    width: float
    height: float

    @classmethod
    def from_candidate(cls, cand: Candidate, class_name: str) -> "Detection":
        return cls(
            class_id=cand.class_id,
            class_name=class_name,
            confidence=cand.confidence,
            center_x=cand.center_x,
            center_y=cand.center_y,
            width=cand.width,
            height=cand.height,
        )

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        half_w = self.width / 2
        half_h = self.height / 2
        return (
            self.center_x - half_w,
            self.center_y - half_h,
            self.center_x + half_w,
            self.center_y + half_h,
        )

    def to_pixels(self, width: int, height: int) -> Tuple[float, float, float, float]:
        """Corners in pixel coordinates of an image of the given size."""
        x1, y1, x2, y2 = self.as_xyxy()
        return x1 * width, y1 * height, x2 * width, y2 * height
