import threading
import unittest

import numpy as np

from gridbox_kit.runtime import DetectionPipeline
from gridbox_kit.types import Plane, RawFrame
from Live_Detection.analyzer import FrameAnalyzer
from Live_Detection.ingest import bgr_to_raw_frame

from fakes import FakeEngine, grid_output


def _frame(width: int = 64, height: int = 48) -> RawFrame:
    return bgr_to_raw_frame(np.full((height, width, 3), 120, dtype=np.uint8))


def _short_frame() -> RawFrame:
    good = _frame()
    return RawFrame(width=64, height=48, rotation=0, y=Plane(b"\x00" * 10, row_stride=64), u=good.u, v=good.v)


class TestFrameAnalyzer(unittest.TestCase):
    def test_analyze_publishes_rendered_result(self) -> None:
        pipe = DetectionPipeline(FakeEngine(grid_output([[0.5, 0.5, 0.1, 0.1, 0.9]])))
        analyzer = FrameAnalyzer(pipe)
        result = analyzer.analyze(_frame(), frame_idx=3)

        self.assertIsNotNone(result)
        self.assertEqual(result.frame_idx, 3)
        self.assertEqual(len(result.output.boxes), 1)
        self.assertEqual(result.rendered.shape, (48, 64, 3))
        self.assertIs(analyzer.display.peek(), result)
        self.assertEqual(analyzer.stats.processed, 1)

    def test_decode_failure_is_counted(self) -> None:
        analyzer = FrameAnalyzer(DetectionPipeline(FakeEngine()))
        self.assertIsNone(analyzer.analyze(_short_frame()))
        self.assertEqual(analyzer.stats.decode_failures, 1)
        self.assertIsNone(analyzer.display.peek())

    def test_engine_failure_is_isolated(self) -> None:
        errors = []
        analyzer = FrameAnalyzer(
            DetectionPipeline(FakeEngine(fail=True)),
            on_error=lambda idx, exc: errors.append(idx),
        )
        self.assertIsNone(analyzer.analyze(_frame(), frame_idx=5))
        self.assertEqual(errors, [5])
        self.assertEqual(analyzer.stats.engine_failures, 1)

    def test_submit_drops_stale_frames(self) -> None:
        analyzer = FrameAnalyzer(DetectionPipeline(FakeEngine()))
        self.assertTrue(analyzer.submit(_frame()))
        self.assertFalse(analyzer.submit(_frame()))
        stats = analyzer.stats
        self.assertEqual(stats.submitted, 2)
        self.assertEqual(stats.dropped, 1)

    def test_worker_processes_frames(self) -> None:
        engine = FakeEngine(grid_output([[0.5, 0.5, 0.1, 0.1, 0.9]]))
        analyzer = FrameAnalyzer(DetectionPipeline(engine))
        analyzer.start()
        self.addCleanup(analyzer.stop)
        self.assertTrue(analyzer.running)

        # Bad frame first; the worker must survive it.
        analyzer.submit(_short_frame())
        analyzer.submit(_frame())

        deadline = threading.Event()
        for _ in range(200):
            if analyzer.display.peek() is not None:
                break
            deadline.wait(0.01)
        result = analyzer.display.peek()
        self.assertIsNotNone(result)
        self.assertEqual(len(result.output.boxes), 1)

        analyzer.stop()
        self.assertFalse(analyzer.running)
        with self.assertRaises(RuntimeError):
            analyzer.start()

    def test_stats_are_a_copy(self) -> None:
        analyzer = FrameAnalyzer(DetectionPipeline(FakeEngine()))
        stats = analyzer.stats
        stats.processed = 99
        self.assertEqual(analyzer.stats.processed, 0)


if __name__ == "__main__":
    unittest.main()
