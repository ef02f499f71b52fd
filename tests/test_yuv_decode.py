import unittest

import numpy as np

from gridbox_kit.errors import ConfigurationError, FrameDecodeError
from gridbox_kit.types import Plane, RawFrame
from gridbox_kit.yuv import decode_frame, decode_frame_strict
from Live_Detection.ingest import bgr_to_raw_frame


def _gray_frame(luma: np.ndarray, rotation: int = 0) -> RawFrame:
    # Neutral chroma (128) so RGB == gray level after conversion.
    h, w = luma.shape
    chroma = np.full((h // 2) * (w // 2), 128, dtype=np.uint8).tobytes()
    return RawFrame(
        width=w,
        height=h,
        rotation=rotation,
        y=Plane(luma.astype(np.uint8).tobytes(), row_stride=w),
        u=Plane(chroma, row_stride=w // 2),
        v=Plane(chroma, row_stride=w // 2),
    )


def _top_bright(w: int = 8, h: int = 4) -> np.ndarray:
    luma = np.full((h, w), 16, dtype=np.uint8)
    luma[: h // 2, :] = 235
    return luma


class TestFrameDecoder(unittest.TestCase):
    def test_output_dimensions_follow_rotation(self) -> None:
        luma = np.full((640, 480), 128, dtype=np.uint8)  # 480 wide, 640 tall
        expected = {0: (640, 480), 90: (480, 640), 180: (640, 480), 270: (480, 640)}
        for rotation, hw in expected.items():
            img = decode_frame(_gray_frame(luma, rotation=rotation))
            self.assertIsNotNone(img)
            self.assertEqual(img.shape, hw + (3,), msg=f"rotation={rotation}")
            self.assertEqual(img.dtype, np.uint8)

    def test_rotation_is_clockwise(self) -> None:
        luma = _top_bright()

        upright = decode_frame(_gray_frame(luma, rotation=0))
        self.assertTrue((upright[:2] > 200).all())
        self.assertTrue((upright[2:] < 50).all())

        cw90 = decode_frame(_gray_frame(luma, rotation=90))
        self.assertEqual(cw90.shape[:2], (8, 4))
        self.assertTrue((cw90[:, 2:] > 200).all())
        self.assertTrue((cw90[:, :2] < 50).all())

        cw180 = decode_frame(_gray_frame(luma, rotation=180))
        self.assertTrue((cw180[2:] > 200).all())
        self.assertTrue((cw180[:2] < 50).all())

        cw270 = decode_frame(_gray_frame(luma, rotation=270))
        self.assertTrue((cw270[:, :2] > 200).all())
        self.assertTrue((cw270[:, 2:] < 50).all())

    def test_color_survives_planar_round_trip(self) -> None:
        bgr = np.zeros((16, 24, 3), dtype=np.uint8)
        bgr[:, :] = (40, 120, 200)
        img = decode_frame(bgr_to_raw_frame(bgr))
        self.assertEqual(img.shape, (16, 24, 3))
        # Output is RGB.
        diff = np.abs(img.astype(int) - np.array([200, 120, 40])).max()
        self.assertLessEqual(diff, 6)

    def test_semi_planar_chroma_matches_planar(self) -> None:
        bgr = np.random.default_rng(0).integers(0, 256, size=(8, 12, 3), dtype=np.uint8)
        planar = bgr_to_raw_frame(bgr)
        w, h = planar.width, planar.height

        u = np.frombuffer(planar.u.data, dtype=np.uint8)
        v = np.frombuffer(planar.v.data, dtype=np.uint8)
        vu = np.empty(u.size * 2, dtype=np.uint8)
        vu[0::2] = v
        vu[1::2] = u
        # Android-style NV21: the U plane is the interleaved buffer shifted by one byte.
        semi = RawFrame(
            width=w,
            height=h,
            rotation=0,
            y=planar.y,
            u=Plane(vu[1:].tobytes(), row_stride=w, pixel_stride=2),
            v=Plane(vu[:-1].tobytes(), row_stride=w, pixel_stride=2),
        )
        self.assertTrue(np.array_equal(decode_frame(semi), decode_frame(planar)))

    def test_row_stride_padding_is_ignored(self) -> None:
        bgr = np.random.default_rng(1).integers(0, 256, size=(8, 12, 3), dtype=np.uint8)
        planar = bgr_to_raw_frame(bgr)
        w, h = planar.width, planar.height
        stride = w + 4

        luma = np.frombuffer(planar.y.data, dtype=np.uint8).reshape(h, w)
        padded = np.full((h, stride), 7, dtype=np.uint8)
        padded[:, :w] = luma
        strided = RawFrame(
            width=w,
            height=h,
            rotation=0,
            y=Plane(padded.tobytes(), row_stride=stride),
            u=planar.u,
            v=planar.v,
        )
        self.assertTrue(np.array_equal(decode_frame(strided), decode_frame(planar)))

    def test_short_buffer_is_skipped(self) -> None:
        frame = _gray_frame(np.full((4, 8), 100, dtype=np.uint8))
        short = RawFrame(
            width=frame.width,
            height=frame.height,
            rotation=0,
            y=Plane(frame.y.data[:10], row_stride=frame.width),
            u=frame.u,
            v=frame.v,
        )
        self.assertIsNone(decode_frame(short))
        with self.assertRaises(FrameDecodeError):
            decode_frame_strict(short)

    def test_overlapping_row_stride_is_skipped(self) -> None:
        frame = _gray_frame(np.full((4, 8), 100, dtype=np.uint8))
        overlapping = RawFrame(
            width=frame.width,
            height=frame.height,
            rotation=0,
            y=Plane(frame.y.data, row_stride=2),
            u=frame.u,
            v=frame.v,
        )
        self.assertIsNone(decode_frame(overlapping))
        with self.assertRaises(FrameDecodeError):
            decode_frame_strict(overlapping)

    def test_invalid_frames_rejected(self) -> None:
        plane = Plane(b"\x00" * 64, row_stride=8)
        with self.assertRaises(ConfigurationError):
            RawFrame(width=7, height=4, rotation=0, y=plane, u=plane, v=plane)
        with self.assertRaises(ConfigurationError):
            RawFrame(width=8, height=4, rotation=45, y=plane, u=plane, v=plane)
        with self.assertRaises(ConfigurationError):
            RawFrame(width=0, height=4, rotation=0, y=plane, u=plane, v=plane)


if __name__ == "__main__":
    unittest.main()
