import argparse
import logging

import cv2

from gridbox_kit import GridPostConfig, OverlayConfig, draw_boxes, load_pipeline


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the grid detector on one image and draw the boxes.")
    parser.add_argument("--image", required=True, help="Path to an input image.")
    parser.add_argument("--model", default="models/people_detection.tflite", help="Model file (.tflite/.onnx/.pt).")
    parser.add_argument("--backend", default=None, help="Force backend: tflite / onnxruntime / torchscript.")
    parser.add_argument("--conf", type=float, default=0.5, help="Confidence threshold (strictly greater passes).")
    parser.add_argument("--stroke-width", type=float, default=8.0, help="Box outline width.")
    parser.add_argument("--out", default=None, help="Optional output path for the annotated image.")
    parser.add_argument("--show", action="store_true", help="Show a window with the annotated image.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG logs every box).")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    )

    img_bgr = cv2.imread(args.image)
    if img_bgr is None:
        raise FileNotFoundError(f"Could not read image at path: {args.image}")
    img_rgb = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)

    overlay_cfg = OverlayConfig(stroke_width=args.stroke_width)
    pipeline = load_pipeline(
        args.model,
        backend=args.backend,
        post_cfg=GridPostConfig(conf_threshold=args.conf),
        overlay_cfg=overlay_cfg,
    )

    output = pipeline(img_rgb)
    for box in output.boxes:
        print(box.score, box.as_ltrb())

    vis = cv2.cvtColor(draw_boxes(img_rgb, output.boxes, overlay_cfg), cv2.COLOR_RGB2BGR)
    if args.out:
        ok = cv2.imwrite(args.out, vis)
        if not ok:
            raise RuntimeError(f"Failed to write output image: {args.out}")
        print(f"Wrote annotated image: {args.out}")

    if args.show:
        cv2.imshow("detections", vis)
        cv2.waitKey(0)
        cv2.destroyAllWindows()

    print(f"Boxes: {len(output.boxes)} inference_s={output.inference_time_s:.3f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
