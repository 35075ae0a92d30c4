import argparse
import logging

import cv2

from labeller_kit import DetectionConfig, draw_detections, load_class_names, load_pipeline, load_settings


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a YOLO model on one image and visualize boxes + labels.")
    parser.add_argument("--image", required=True, help="Path to an input image.")
    parser.add_argument("--settings", default=None, help="Optional settings JSON (model, classes, thresholds).")
    parser.add_argument("--model", default="models/best.onnx", help="Path to an ONNX YOLO model.")
    parser.add_argument("--classes", default=None, help="classes.txt or dataset yaml with a names: block.")
    parser.add_argument("--imgsz", type=int, default=640, help="Square model input size (e.g., 640).")
    parser.add_argument("--conf", type=float, default=0.5, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="IoU threshold for NMS.")
    parser.add_argument("--show", action="store_true", help="Show a window with visualized detections.")
    parser.add_argument("--out", default=None, help="Optional output image path for the visualization.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, ...).")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if args.settings:
        settings = load_settings(args.settings)
        model_path = settings.model_path
        classes_path = settings.classes_path
        config = settings.detection_config()
    else:
        model_path = args.model
        classes_path = args.classes
        config = DetectionConfig(conf_threshold=args.conf, iou_threshold=args.iou, input_size=int(args.imgsz))

    class_names = load_class_names(classes_path) if classes_path else []
    pipeline = load_pipeline(model_path, class_names=class_names, config=config)

    img = cv2.imread(args.image)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {args.image}")

    detections = pipeline(img)
    vis = draw_detections(img, detections, show_score=True)
    if args.out:
        ok = cv2.imwrite(args.out, vis)
        if not ok:
            raise RuntimeError(f"Failed to write output image: {args.out}")

    if args.show:
        cv2.imshow("detections", vis)
        cv2.waitKey(0)
        cv2.destroyAllWindows()

    for det in detections:
        print(det.class_name, f"{det.confidence:.3f}", det.center_x, det.center_y, det.width, det.height)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
