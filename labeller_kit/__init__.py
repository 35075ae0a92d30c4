"""
Detection core for the image labelling tool.

Turns the raw output tensor of a YOLO-family detector into labelled,
non-overlapping boxes normalized to the model input, and reads/writes the YOLO
text annotations the labelling tools exchange. The decode/NMS core needs only
NumPy; OpenCV and ONNX Runtime are imported where they are used.
"""

from .types import Candidate, Detection, RawOutput
from .errors import DecodeError, TooFewFeatures, UnsupportedShape
from .layout import Layout, LayoutKind, resolve_layout
from .nms import iou, nms, suppress
from .postprocess import DetectionConfig, DetectionPostprocessor, decode_candidates, detect
from .annotation import (
    YoloAnnotation,
    annotation_from_detection,
    annotation_path_for,
    read_annotations,
    save_best_detection,
    write_annotations,
)
from .metadata import load_class_names
from .config import LabellerSettings, load_settings
from .preprocess import to_input_tensor
from .runtime import Pipeline, load_pipeline
from .visualize import draw_detections

__all__ = [
    "Candidate",
    "Detection",
    "RawOutput",
    "DecodeError",
    "TooFewFeatures",
    "UnsupportedShape",
    "Layout",
    "LayoutKind",
    "resolve_layout",
    "iou",
    "nms",
    "suppress",
    "DetectionConfig",
    "DetectionPostprocessor",
    "decode_candidates",
    "detect",
    "YoloAnnotation",
    "annotation_from_detection",
    "annotation_path_for",
    "read_annotations",
    "save_best_detection",
    "write_annotations",
    "load_class_names",
    "LabellerSettings",
    "load_settings",
    "to_input_tensor",
    "Pipeline",
    "load_pipeline",
    "draw_detections",
]
