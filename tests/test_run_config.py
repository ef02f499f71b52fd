import json
import tempfile
import unittest
from pathlib import Path

from Live_Detection.run_config import apply_run_config, collect_cli_dests, load_run_config
from Live_Detection.runner import build_parser


class TestRunConfig(unittest.TestCase):
    def _write(self, payload) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "run.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def _apply(self, payload, argv):
        parser = build_parser()
        args = parser.parse_args(argv)
        apply_run_config(args=args, payload=payload, cli_dests=collect_cli_dests(parser, argv), parser=parser)
        return args

    def test_config_fills_unset_options(self) -> None:
        args = self._apply(
            {
                "video": "clip.mp4",
                "model": "models/detector.onnx",
                "conf": 0.7,
                "rotation": 90,
                "show": True,
                "onnx_providers": ["CUDAExecutionProvider", "CPUExecutionProvider"],
            },
            [],
        )
        self.assertEqual(args.video, "clip.mp4")
        self.assertEqual(args.model, "models/detector.onnx")
        self.assertEqual(args.conf, 0.7)
        self.assertEqual(args.rotation, 90)
        self.assertTrue(args.show)
        self.assertEqual(args.onnx_providers, "CUDAExecutionProvider,CPUExecutionProvider")

    def test_cli_wins(self) -> None:
        args = self._apply({"conf": 0.7, "every": 3}, ["--conf", "0.2", "--every=2"])
        self.assertEqual(args.conf, 0.2)
        self.assertEqual(args.every, 2)

    def test_rejections(self) -> None:
        bad = [
            {"config": "other.json"},
            {"nms": 0.5},
            {"video": "clip.mp4", "webcam": 0},
            {"rotation": 90.5},
            {"show": 1},
            {"conf": "high"},
            {"model": ""},
            {"onnx_providers": ["CPUExecutionProvider", " "]},
        ]
        for payload in bad:
            with self.subTest(payload=payload):
                with self.assertRaises(ValueError):
                    self._apply(payload, [])

    def test_single_provider_string_and_typed_flags(self) -> None:
        args = self._apply({"onnx_providers": " CPUExecutionProvider "}, [])
        self.assertEqual(args.onnx_providers, "CPUExecutionProvider")
        with self.assertRaises(ValueError):
            self._apply({"onnx_providers": "   "}, [])

        parser = build_parser()
        dests = collect_cli_dests(parser, ["--conf=0.3", "--show", "--webcam", "0"])
        self.assertEqual(dests, {"conf", "show", "webcam"})

    def test_load_run_config(self) -> None:
        self.assertEqual(load_run_config(self._write({"webcam": 0})), {"webcam": 0})
        with self.assertRaises(ValueError):
            load_run_config(self._write([1]))
        with self.assertRaises(FileNotFoundError):
            load_run_config(Path("missing/run.json"))


if __name__ == "__main__":
    unittest.main()
