from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from gridbox_kit.errors import EngineError
from gridbox_kit.runtime import DetectionPipeline
from gridbox_kit.types import DetectionOutput, RawFrame

from .mailbox import LatestSlot


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    frame_idx: int
    output: DetectionOutput
    rendered: np.ndarray
    elapsed_s: float


@dataclass
class AnalyzerStats:
    submitted: int = 0
    dropped: int = 0
    processed: int = 0
    decode_failures: int = 0
    engine_failures: int = 0


class FrameAnalyzer:
    """
    Single-worker frame analyzer.

    Frames go into a one-slot inbox; a newer frame replaces one the worker has
    not started yet, so nothing queues up under frame-rate pressure. The
    worker runs the whole pipeline synchronously per frame and publishes the
    rendered result to `display` (last write wins).

    A failing frame never stops the worker: undecodable frames are counted and
    skipped, engine errors are counted, logged and passed to `on_error`.
    """

    def __init__(
        self,
        pipeline: DetectionPipeline,
        *,
        display: Optional[LatestSlot[AnalysisResult]] = None,
        on_error: Optional[Callable[[int, EngineError], None]] = None,
        name: str = "frame-analyzer",
    ) -> None:
        self.pipeline = pipeline
        self.display: LatestSlot[AnalysisResult] = display if display is not None else LatestSlot()
        self.on_error = on_error
        self.name = name
        self._inbox: LatestSlot[tuple] = LatestSlot()
        self._stats = AnalyzerStats()
        self._stats_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._next_idx = 0

    @property
    def stats(self) -> AnalyzerStats:
        with self._stats_lock:
            return AnalyzerStats(**vars(self._stats))

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        if self._inbox.closed:
            raise RuntimeError("FrameAnalyzer cannot be restarted after stop()")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = 2.0) -> None:
        """Close the inbox and wait for the in-flight frame (if any) to finish."""
        self._inbox.close()
        t = self._thread
        if t is not None and t.is_alive():
            t.join(timeout=timeout)
            if t.is_alive():
                logger.warning("Analyzer worker did not stop within %.1fs", timeout)
        self._thread = None

    def submit(self, frame: RawFrame) -> bool:
        """
        Hand a frame to the worker without blocking.

        Returns False when it replaced a frame that was still waiting (that
        older frame is dropped).
        """
        idx = self._next_idx
        self._next_idx += 1
        accepted = self._inbox.put((idx, frame))
        with self._stats_lock:
            self._stats.submitted += 1
            if not accepted:
                self._stats.dropped += 1
        return accepted

    def analyze(self, frame: RawFrame, frame_idx: int = 0) -> Optional[AnalysisResult]:
        """Run one frame synchronously and publish the result. None if the frame was skipped."""
        t0 = time.perf_counter()
        try:
            output = self.pipeline.process_frame(frame)
        except EngineError as exc:
            with self._stats_lock:
                self._stats.engine_failures += 1
            logger.error("Frame %d failed in the inference engine: %s", frame_idx, exc)
            if self.on_error is not None:
                self.on_error(frame_idx, exc)
            return None

        if output is None:
            with self._stats_lock:
                self._stats.decode_failures += 1
            return None

        rendered = self.pipeline.render(output)
        result = AnalysisResult(
            frame_idx=frame_idx,
            output=output,
            rendered=rendered,
            elapsed_s=time.perf_counter() - t0,
        )
        with self._stats_lock:
            self._stats.processed += 1
        self.display.put(result)
        return result

    def _run(self) -> None:
        logger.debug("Analyzer worker %s started", self.name)
        while True:
            item = self._inbox.take(timeout=None)
            if item is None:
                break
            idx, frame = item
            try:
                self.analyze(frame, frame_idx=idx)
            except Exception:
                # Keep the worker alive for the next frame.
                logger.exception("Unexpected error while analyzing frame %d", idx)
        logger.debug("Analyzer worker %s stopped", self.name)
