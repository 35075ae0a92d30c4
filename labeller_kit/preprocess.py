from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    # (width, height) of the source image, before resizing
    orig_size: Tuple[int, int]


def to_input_tensor(image_bgr: np.ndarray, input_size: int = 640) -> PreprocessResult:
    """
    Stretch an OpenCV BGR image to the square model input and build the NCHW blob.

    No letterbox padding: the aspect ratio is not preserved, and boxes decoded
    from the model stay normalized to this square input.

    Returns:
        blob: float32 (1, 3, input_size, input_size), RGB, values in [0, 1]
        orig_size: (width, height) of `image_bgr`
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for to_input_tensor(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")
    if input_size <= 0:
        raise ValueError(f"input_size must be > 0, got {input_size}")

    h, w = image_bgr.shape[:2]
    if (w, h) != (input_size, input_size):
        image_bgr = cv2.resize(image_bgr, (input_size, input_size), interpolation=cv2.INTER_LINEAR)

    # BGR -> RGB, normalize, HWC -> CHW, add batch
    blob = image_bgr[:, :, ::-1].astype(np.float32) / 255.0
    blob = np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])

    return PreprocessResult(blob=blob, orig_size=(w, h))
