import sys
import unittest
from pathlib import Path

import numpy as np
from PIL import Image

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "compositor"))

from backdrop_compositor.errors import DecodeFailure, EncodeFailure, InvalidInput, TransformFailure
from backdrop_compositor.imaging import (
    blur,
    crop,
    decode_image,
    encode_image,
    format_for_path,
    overwrite_composite,
    resample,
)
from backdrop_compositor.models import CropRect, Dimensions, Offset, PixelBuffer


def _gradient(width: int, height: int) -> PixelBuffer:
    xs = np.linspace(0, 255, width, dtype=np.uint8)
    ys = np.linspace(0, 255, height, dtype=np.uint8)
    pixels = np.zeros((height, width, 3), dtype=np.uint8)
    pixels[:, :, 0] = xs[np.newaxis, :]
    pixels[:, :, 1] = ys[:, np.newaxis]
    pixels[:, :, 2] = 128
    return PixelBuffer(width=width, height=height, mode="RGB", pixels=pixels)


def _solid(width: int, height: int, color: tuple[int, ...], mode: str = "RGB") -> PixelBuffer:
    return PixelBuffer.from_image(Image.new(mode, (width, height), color))


class PixelBufferTests(unittest.TestCase):
    def test_pixels_are_read_only(self):
        buf = _gradient(4, 3)
        with self.assertRaises(ValueError):
            buf.pixels[0, 0, 0] = 1

    def test_caller_array_is_copied(self):
        pixels = np.zeros((2, 3, 3), dtype=np.uint8)
        buf = PixelBuffer(width=3, height=2, mode="RGB", pixels=pixels)
        self.assertTrue(pixels.flags.writeable)
        pixels[0, 0, 0] = 255
        self.assertEqual(buf.pixels[0, 0, 0], 0)

    def test_view_over_writable_base_is_detached(self):
        base = np.zeros((4, 3, 3), dtype=np.uint8)
        buf = PixelBuffer(width=3, height=2, mode="RGB", pixels=base[:2])
        base[0, 0, 0] = 255
        self.assertEqual(buf.pixels[0, 0, 0], 0)

    def test_zero_dimension_rejected(self):
        with self.assertRaises(InvalidInput):
            PixelBuffer(width=0, height=3, mode="RGB", pixels=np.zeros((3, 0, 3), dtype=np.uint8))

    def test_shape_mismatch_rejected(self):
        with self.assertRaises(InvalidInput):
            PixelBuffer(width=4, height=4, mode="RGBA", pixels=np.zeros((4, 4, 3), dtype=np.uint8))

    def test_palette_image_converts_to_rgb(self):
        buf = PixelBuffer.from_image(Image.new("P", (5, 2)))
        self.assertEqual(buf.mode, "RGB")
        self.assertEqual(buf.pixels.shape, (2, 5, 3))


class ResampleTests(unittest.TestCase):
    def test_exact_size(self):
        out = resample(_gradient(40, 20), Dimensions(17, 9))
        self.assertEqual(out.size, (17, 9))
        self.assertEqual(out.mode, "RGB")

    def test_same_size_is_identical_copy(self):
        src = _gradient(12, 8)
        out = resample(src, Dimensions(12, 8))
        self.assertTrue(out.same_pixels(src))
        self.assertIsNot(out.pixels, src.pixels)


class CropTests(unittest.TestCase):
    def test_crop_extracts_region(self):
        src = _gradient(10, 6)
        out = crop(src, CropRect(x=2, y=1, width=5, height=4))
        self.assertEqual(out.size, (5, 4))
        self.assertTrue(np.array_equal(out.pixels, src.pixels[1:5, 2:7]))

    def test_crop_outside_buffer_fails(self):
        with self.assertRaises(TransformFailure):
            crop(_gradient(10, 6), CropRect(x=6, y=0, width=5, height=6))


class BlurTests(unittest.TestCase):
    def test_zero_radius_is_unblurred_copy(self):
        src = _gradient(8, 8)
        out = blur(src, 0)
        self.assertTrue(out.same_pixels(src))

    def test_blur_smooths_edges(self):
        pixels = np.zeros((16, 16, 3), dtype=np.uint8)
        pixels[:, 8:] = 255
        src = PixelBuffer(width=16, height=16, mode="RGB", pixels=pixels)
        out = blur(src, 2)
        self.assertEqual(out.size, (16, 16))
        self.assertGreater(int(out.pixels[8, 7, 0]), 0)
        self.assertLess(int(out.pixels[8, 8, 0]), 255)

    def test_negative_radius_fails(self):
        with self.assertRaises(TransformFailure):
            blur(_gradient(4, 4), -1)


class CompositeTests(unittest.TestCase):
    def test_overlay_overwrites_region(self):
        background = _solid(10, 10, (255, 0, 0))
        overlay = _solid(4, 2, (0, 255, 0))
        out = overwrite_composite(background, overlay, Offset(x=3, y=4))
        self.assertTrue((out.pixels[4:6, 3:7] == (0, 255, 0)).all())
        self.assertTrue((out.pixels[0:4] == (255, 0, 0)).all())
        self.assertTrue((background.pixels == (255, 0, 0)).all())

    def test_transparent_overlay_is_not_blended(self):
        background = _solid(6, 6, (255, 0, 0))
        overlay = _solid(2, 2, (0, 0, 255, 0), mode="RGBA")
        out = overwrite_composite(background, overlay, Offset(x=0, y=0))
        self.assertEqual(out.mode, "RGB")
        self.assertEqual(tuple(out.pixels[0, 0]), (0, 0, 255))

    def test_overlay_past_edge_fails(self):
        with self.assertRaises(TransformFailure):
            overwrite_composite(_solid(6, 6, (0, 0, 0)), _solid(4, 4, (1, 1, 1)), Offset(x=3, y=0))


class CodecTests(unittest.TestCase):
    def test_png_preserves_pixels(self):
        src = _gradient(9, 7)
        out = decode_image(encode_image(src, fmt="PNG"))
        self.assertTrue(out.same_pixels(src))

    def test_jpeg_flattens_alpha(self):
        src = _solid(8, 8, (10, 20, 30, 128), mode="RGBA")
        out = decode_image(encode_image(src, fmt="JPEG"))
        self.assertEqual(out.mode, "RGB")
        self.assertEqual(out.size, (8, 8))

    def test_garbage_bytes_fail_to_decode(self):
        with self.assertRaises(DecodeFailure):
            decode_image(b"definitely not an image")

    def test_unknown_format_fails_to_encode(self):
        with self.assertRaises(EncodeFailure):
            encode_image(_gradient(2, 2), fmt="NOPE")

    def test_format_for_path(self):
        self.assertEqual(format_for_path(Path("a/b.PNG")), "PNG")
        self.assertEqual(format_for_path(Path("a/b.jpeg")), "JPEG")
        self.assertEqual(format_for_path(Path("a/b")), "JPEG")


if __name__ == "__main__":
    unittest.main()
