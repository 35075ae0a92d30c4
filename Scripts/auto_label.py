from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import cv2
from tqdm import tqdm

from labeller_kit import DetectionConfig, load_class_names, load_pipeline, save_best_detection
from labeller_kit.annotation import annotation_path_for

LOGGER = logging.getLogger("auto_label")


@dataclass(frozen=True)
class AutoLabelConfig:
    images_dir: Path
    model: Path
    classes: Optional[Path]
    imgsz: int
    conf: float
    iou: float
    overwrite: bool
    append: bool
    recursive: bool
    exts: Tuple[str, ...]
    max_images: int


def _iter_image_paths(images_dir: Path, *, recursive: bool, exts: Sequence[str]) -> List[Path]:
    wanted = {e.lstrip(".").lower() for e in exts}
    candidates = images_dir.rglob("*") if recursive else images_dir.glob("*")
    return sorted(p.resolve() for p in candidates if p.is_file() and p.suffix.lower().lstrip(".") in wanted)


def _parse_args() -> AutoLabelConfig:
    parser = argparse.ArgumentParser(
        description=(
            "Pre-label a folder of images: run a YOLO model on each image and write its best detection "
            "as a YOLO .txt annotation next to the image, ready for manual review."
        )
    )
    parser.add_argument("--images-dir", required=True, help="Directory containing images to label.")
    parser.add_argument("--model", default="models/best.onnx", help="Path to an ONNX YOLO model.")
    parser.add_argument("--classes", default=None, help="classes.txt or dataset yaml with a names: block.")
    parser.add_argument("--imgsz", type=int, default=640, help="Square model input size (e.g., 640).")
    parser.add_argument("--conf", type=float, default=0.5, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="IoU threshold for NMS.")
    parser.add_argument("--overwrite", action="store_true", help="Relabel images that already have annotations.")
    parser.add_argument(
        "--append",
        action="store_true",
        help="Append to existing annotations instead of replacing; identical records are not repeated.",
    )
    parser.add_argument("--recursive", action="store_true", help="Recursively search for images under --images-dir.")
    parser.add_argument(
        "--ext",
        action="append",
        default=None,
        help="Image extension to include (repeatable). Default: jpg, jpeg, png, bmp.",
    )
    parser.add_argument("--max-images", type=int, default=0, help="Stop after N images (0 = no limit).")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, ...).")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if args.max_images < 0:
        raise ValueError("--max-images must be >= 0")

    return AutoLabelConfig(
        images_dir=Path(args.images_dir),
        model=Path(args.model),
        classes=Path(args.classes) if args.classes else None,
        imgsz=int(args.imgsz),
        conf=float(args.conf),
        iou=float(args.iou),
        overwrite=bool(args.overwrite),
        append=bool(args.append),
        recursive=bool(args.recursive),
        exts=tuple(args.ext or ("jpg", "jpeg", "png", "bmp")),
        max_images=int(args.max_images),
    )


def main() -> int:
    cfg = _parse_args()
    if not cfg.images_dir.is_dir():
        raise FileNotFoundError(f"Images directory not found: {cfg.images_dir}")

    class_names = load_class_names(cfg.classes) if cfg.classes else []
    pipeline = load_pipeline(
        cfg.model,
        class_names=class_names,
        config=DetectionConfig(conf_threshold=cfg.conf, iou_threshold=cfg.iou, input_size=cfg.imgsz),
    )

    paths = _iter_image_paths(cfg.images_dir, recursive=cfg.recursive, exts=cfg.exts)
    if cfg.max_images:
        paths = paths[: cfg.max_images]

    labelled = skipped = empty = 0
    for path in tqdm(paths, desc="auto-label", unit="img"):
        if not cfg.overwrite and not cfg.append and annotation_path_for(path).exists():
            skipped += 1
            continue
        img = cv2.imread(str(path))
        if img is None:
            LOGGER.warning("Could not read image %s", path)
            skipped += 1
            continue
        if save_best_detection(path, pipeline(img), append=cfg.append) is None:
            empty += 1
        else:
            labelled += 1

    print(f"Images: {len(paths)}  labelled: {labelled}  no detections: {empty}  skipped: {skipped}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
