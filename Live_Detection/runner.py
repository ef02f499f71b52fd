from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence

import cv2
from tqdm import tqdm

from gridbox_kit import load_pipeline
from gridbox_kit.types import VALID_ROTATIONS

from .analyzer import AnalysisResult, FrameAnalyzer
from .config import DetectorProfile, load_detector_profile
from .ingest import bgr_to_raw_frame, get_capture_info, open_capture
from .mailbox import LatestSlot
from .run_config import apply_run_config, collect_cli_dests, load_run_config


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the grid detector on a live or recorded camera feed.")
    parser.add_argument("--config", default=None, help="Optional JSON run config; CLI flags override it.")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--video", default=None, help="Path to an input video file.")
    src.add_argument("--webcam", type=int, default=None, help="Webcam index (e.g., 0).")
    parser.add_argument("--model", default="models/people_detection.tflite", help="Model file (.tflite/.onnx/.pt).")
    parser.add_argument("--backend", default=None, help="Force backend: tflite / onnxruntime / torchscript.")
    parser.add_argument("--profile", default=None, help="Detector profile JSON (threshold, stroke, colors).")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold (overrides profile).")
    parser.add_argument("--stroke-width", type=float, default=None, help="Box stroke width (overrides profile).")
    parser.add_argument("--rotation", type=int, default=0, help="Camera rotation metadata in degrees (0/90/180/270).")
    parser.add_argument("--tflite-threads", type=int, default=None, help="TFLite interpreter threads.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--every", type=int, default=1, help="Submit every Nth captured frame.")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N submitted frames (0 = no limit).")
    parser.add_argument("--realtime", action="store_true", help="Pace video files at their native FPS.")
    parser.add_argument("--show", action="store_true", help="Show a window with the latest rendered frame.")
    parser.add_argument("--out", default=None, help="Optional output video path for rendered frames.")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG logs every box).")
    return parser


def _resolve_profile(args: argparse.Namespace) -> DetectorProfile:
    profile = load_detector_profile(Path(args.profile)) if args.profile else DetectorProfile()
    if args.conf is not None:
        profile = replace(profile, confidence_threshold=float(args.conf))
    if args.stroke_width is not None:
        profile = replace(profile, stroke_width=float(args.stroke_width))
    return profile


class _Presenter:
    """Display side of the hand-off: polls the display slot and shows/writes new results."""

    def __init__(self, *, show: bool, out: Optional[str], fps: float):
        self.show = show
        self.out = out
        self.fps = fps
        self.writer: Optional[cv2.VideoWriter] = None
        self.presented = 0
        self._version = 0

    def poll(self, slot: LatestSlot[AnalysisResult]) -> bool:
        """Present the latest result if it is new. Returns False if the user asked to quit."""
        version, result = slot.snapshot()
        if result is None or version == self._version:
            return True
        self._version = version
        self.presented += 1

        vis = cv2.cvtColor(result.rendered, cv2.COLOR_RGB2BGR)
        if self.out:
            if self.writer is None:
                h, w = vis.shape[:2]
                fourcc = cv2.VideoWriter_fourcc(*"mp4v")
                self.writer = cv2.VideoWriter(self.out, fourcc, self.fps, (w, h))
                if not self.writer.isOpened():
                    raise RuntimeError(f"Failed to open video writer: {self.out}")
            self.writer.write(vis)

        if self.show:
            cv2.imshow("detections", vis)
            key = cv2.waitKey(1) & 0xFF
            if key in (27, ord("q")):
                return False
        return True

    def close(self) -> None:
        if self.writer is not None:
            self.writer.release()
            self.writer = None
        if self.show:
            cv2.destroyAllWindows()


def run_live(args: argparse.Namespace) -> int:
    if (args.video is None) == (args.webcam is None):
        raise ValueError("Exactly one source must be set: --video or --webcam (or via --config).")
    if args.rotation not in VALID_ROTATIONS:
        raise ValueError(f"--rotation must be one of {VALID_ROTATIONS}")
    if args.every < 1:
        raise ValueError("--every must be >= 1")
    if args.max_frames < 0:
        raise ValueError("--max-frames must be >= 0")

    profile = _resolve_profile(args)
    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    pipeline = load_pipeline(
        args.model,
        backend=args.backend,
        letterbox_cfg=profile.letterbox_config(),
        post_cfg=profile.post_config(),
        overlay_cfg=profile.overlay_config(),
        tflite_threads=args.tflite_threads,
        onnx_providers=onnx_providers,
    )

    cap = open_capture(video=args.video, webcam=args.webcam)
    info = get_capture_info(cap)
    fps = info.fps or 30.0
    logger.info("Capture opened: %sx%s @ %.1f fps, rotation=%d", info.width, info.height, fps, args.rotation)

    analyzer = FrameAnalyzer(pipeline)
    presenter = _Presenter(show=bool(args.show), out=args.out, fps=fps / args.every)
    total = info.frame_count if args.video else None
    pbar = tqdm(total=total, unit="frame", desc="detect", disable=not args.progress)

    frame_idx = 0
    submitted = 0
    start_wall = time.monotonic()
    analyzer.start()
    try:
        while True:
            ok, frame = cap.read()
            if not ok or frame is None:
                break
            frame_idx += 1
            pbar.update(1)

            if args.realtime and args.video:
                target = start_wall + frame_idx / fps
                now = time.monotonic()
                if target > now:
                    time.sleep(target - now)

            if (frame_idx - 1) % args.every == 0:
                analyzer.submit(bgr_to_raw_frame(frame, rotation=args.rotation))
                submitted += 1

            if not presenter.poll(analyzer.display):
                break
            if args.max_frames and submitted >= args.max_frames:
                break
    finally:
        analyzer.stop()
        presenter.poll(analyzer.display)
        cap.release()
        pbar.close()
        presenter.close()

    stats = analyzer.stats
    elapsed = time.monotonic() - start_wall
    print(
        f"frames_read={frame_idx} submitted={stats.submitted} dropped={stats.dropped} "
        f"processed={stats.processed} decode_failures={stats.decode_failures} "
        f"engine_failures={stats.engine_failures} presented={presenter.presented} elapsed_s={elapsed:.1f}"
    )
    if args.out:
        print(f"Wrote rendered video: {args.out}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    argv_list: List[str] = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(argv_list)
    if args.config:
        payload = load_run_config(Path(args.config))
        apply_run_config(args=args, payload=payload, cli_dests=collect_cli_dests(parser, argv_list), parser=parser)

    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.INFO), format=LOG_FORMAT)
    return run_live(args)
