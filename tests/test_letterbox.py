import unittest

import numpy as np

from gridbox_kit.errors import ConfigurationError
from gridbox_kit.letterbox import fit_size, letterbox


def _solid(w: int, h: int, value: int = 255, channels: int = 3) -> np.ndarray:
    return np.full((h, w, channels), value, dtype=np.uint8)


class TestLetterbox(unittest.TestCase):
    def test_landscape_pads_top_and_bottom(self) -> None:
        lb = letterbox(_solid(640, 480), new_shape=(320, 320), color=(10, 20, 30))
        self.assertEqual(lb.image.shape, (320, 320, 3))
        self.assertEqual(lb.scaled_size, (320, 240))
        self.assertEqual(lb.pad, (0, 40))
        self.assertEqual(lb.canvas_size, (320, 320))
        self.assertEqual(lb.orig_size, (640, 480))
        self.assertAlmostEqual(lb.scale, 0.5)

        self.assertTrue((lb.image[:40] == (10, 20, 30)).all())
        self.assertTrue((lb.image[280:] == (10, 20, 30)).all())
        self.assertTrue((lb.image[40:280] == 255).all())

    def test_portrait_pads_left_and_right(self) -> None:
        lb = letterbox(_solid(480, 640), new_shape=(320, 320))
        self.assertEqual(lb.scaled_size, (240, 320))
        self.assertEqual(lb.pad, (40, 0))
        self.assertTrue((lb.image[:, :40] == 0).all())
        self.assertTrue((lb.image[:, 280:] == 0).all())
        self.assertTrue((lb.image[:, 40:280] == 255).all())

    def test_odd_slack_goes_to_bottom(self) -> None:
        lb = letterbox(_solid(100, 33), new_shape=(64, 64))
        self.assertEqual(lb.scaled_size, (64, 21))
        self.assertEqual(lb.pad, (0, 21))
        # 21 rows on top, 22 at the bottom.
        self.assertTrue((lb.image[:21] == 0).all())
        self.assertTrue((lb.image[21:42] == 255).all())
        self.assertTrue((lb.image[42:] == 0).all())

    def test_square_source_fills_canvas(self) -> None:
        lb = letterbox(_solid(50, 50), new_shape=(320, 320))
        self.assertEqual(lb.scaled_size, (320, 320))
        self.assertEqual(lb.pad, (0, 0))

    def test_same_size_is_passthrough(self) -> None:
        img = np.random.default_rng(0).integers(0, 256, size=(320, 320, 3), dtype=np.uint8)
        lb = letterbox(img, new_shape=(320, 320))
        self.assertTrue(np.array_equal(lb.image, img))

    def test_non_square_target_never_overflows(self) -> None:
        lb = letterbox(_solid(640, 480), new_shape=(320, 100))
        self.assertEqual(lb.scaled_size, (133, 100))
        self.assertEqual(lb.pad, (93, 0))
        self.assertEqual(lb.image.shape, (100, 320, 3))

    def test_rgba_border_is_opaque(self) -> None:
        lb = letterbox(_solid(64, 32, channels=4), new_shape=(64, 64), color=(1, 2, 3))
        self.assertEqual(lb.image.shape, (64, 64, 4))
        self.assertTrue((lb.image[0, 0] == (1, 2, 3, 255)).all())

    def test_fit_size(self) -> None:
        self.assertEqual(fit_size((640, 480), (320, 320)), (320, 240))
        self.assertEqual(fit_size((480, 640), (320, 320)), (240, 320))
        self.assertEqual(fit_size((1000, 1), (10, 10)), (10, 1))

    def test_invalid_inputs(self) -> None:
        with self.assertRaises(ConfigurationError):
            letterbox(_solid(10, 10), new_shape=(0, 10))
        with self.assertRaises(TypeError):
            letterbox(np.zeros((10, 10), dtype=np.uint8), new_shape=(8, 8))


if __name__ == "__main__":
    unittest.main()
