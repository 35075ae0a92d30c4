from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np

from ..types import RawOutput

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - input_name/output_name: override auto-selected I/O names if needed
    - intra_op_num_threads: 0 lets ORT decide
    """

    input_name: Optional[str] = None
    output_name: Optional[str] = None
    intra_op_num_threads: int = 0


class OnnxRuntimeBackend:
    """
    Minimal ONNX Runtime backend on the default (CPU) provider.

    Expects an NCHW float32 blob shaped (1, 3, S, S) and returns the primary
    output as a `RawOutput`.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime`."
            ) from e

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        sess_opts.intra_op_num_threads = int(cfg.intra_op_num_threads)
        LOGGER.info("Loading ONNX model from %s", self.model_path)
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts)

        self.input_name = cfg.input_name or self.session.get_inputs()[0].name
        # If output_name not provided, pick first output.
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name

    @property
    def input_shape(self) -> tuple:
        for inp in self.session.get_inputs():
            if inp.name == self.input_name:
                return tuple(inp.shape)
        return ()

    def infer(self, blob: np.ndarray, extra_inputs: Optional[Dict[str, Any]] = None) -> RawOutput:
        inputs: Dict[str, Any] = {self.input_name: blob}
        if extra_inputs:
            inputs.update(extra_inputs)
        outputs = self.session.run([self.output_name], inputs)
        return RawOutput.from_array(outputs[0])
