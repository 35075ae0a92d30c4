from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

import numpy as np

from .postprocess import DetectionConfig, DetectionPostprocessor
from .preprocess import to_input_tensor
from .types import Detection, RawOutput

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]
InferFn = Callable[[np.ndarray], Union[RawOutput, np.ndarray]]


class Pipeline:
    """
    Plug-and-play pipeline: stretch to model input -> inference -> decode + NMS.

    The pipeline expects BGR images (OpenCV-style) as `np.ndarray` and returns
    `Detection`s normalized to the square model input.
    """

    def __init__(
        self,
        infer_fn: InferFn,
        *,
        class_names: Sequence[str] = (),
        config: DetectionConfig = DetectionConfig(),
        backend: Optional[object] = None,
    ):
        self._infer_fn = infer_fn
        self.class_names = list(class_names)
        self.config = config
        self.backend = backend
        self.post = DetectionPostprocessor(config)

    def __call__(self, image_bgr: np.ndarray) -> List[Detection]:
        prep = to_input_tensor(image_bgr, self.config.input_size)
        raw = self._infer_fn(prep.blob)
        # TODO: rescale boxes with prep.orig_size once callers want aspect-correct output.
        return self.post.process(raw, self.class_names)


def load_pipeline(
    model_path: PathLike,
    *,
    class_names: Sequence[str] = (),
    config: DetectionConfig = DetectionConfig(),
    input_name: Optional[str] = None,
    output_name: Optional[str] = None,
) -> Pipeline:
    """
    Create a pipeline for an ONNX model on disk.

    Typical usage:
        pipe = load_pipeline("models/best.onnx", class_names=load_class_names("models/classes.txt"))
    """

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    resolved = Path(model_path).expanduser().resolve()
    if resolved.suffix.lower() != ".onnx":
        raise ValueError(f"Only .onnx models are supported, got '{resolved.suffix}'.")

    backend = OnnxRuntimeBackend(
        resolved,
        OnnxRuntimeBackendConfig(input_name=input_name, output_name=output_name),
    )
    return Pipeline(backend.infer, class_names=class_names, config=config, backend=backend)
