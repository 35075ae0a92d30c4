from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .postprocess import DEFAULT_INPUT_SIZE, DetectionConfig


@dataclass(frozen=True)
class LabellerSettings:
    model_path: Path
    classes_path: Optional[Path] = None
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    input_size: int = DEFAULT_INPUT_SIZE

    def detection_config(self) -> DetectionConfig:
        return DetectionConfig(
            conf_threshold=self.conf_threshold,
            iou_threshold=self.iou_threshold,
            input_size=self.input_size,
        )


def _require_str(payload: Dict[str, Any], key: str) -> str:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    return value


def _optional_number(payload: Dict[str, Any], key: str, default: float) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _optional_int(payload: Dict[str, Any], key: str, default: int) -> int:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def load_settings(path: Path) -> LabellerSettings:
    """
    Load detector settings from JSON. Relative paths resolve against the
    settings file's directory.

        {"model_path": "models/best.onnx", "classes_path": "models/classes.txt",
         "conf_threshold": 0.5, "iou_threshold": 0.45, "input_size": 640}
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid settings JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Settings must be a JSON object")

    allowed = {"model_path", "classes_path", "conf_threshold", "iou_threshold", "input_size"}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown settings keys: {unknown}")

    base = path.resolve().parent
    model_path = base / Path(_require_str(payload, "model_path")).expanduser()
    classes_path = None
    if payload.get("classes_path") is not None:
        classes_path = base / Path(_require_str(payload, "classes_path")).expanduser()

    settings = LabellerSettings(
        model_path=model_path,
        classes_path=classes_path,
        conf_threshold=_optional_number(payload, "conf_threshold", 0.5),
        iou_threshold=_optional_number(payload, "iou_threshold", 0.45),
        input_size=_optional_int(payload, "input_size", DEFAULT_INPUT_SIZE),
    )
    if not 0.0 < settings.conf_threshold <= 1.0:
        raise ValueError("conf_threshold must be within (0, 1]")
    # Surface threshold errors at load time rather than at first inference.
    settings.detection_config()
    return settings
