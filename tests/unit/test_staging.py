import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "compositor"))
sys.path.insert(0, str(ROOT / "packages" / "displays"))

from backdrop_core.staging import SourceError, resolve_source, stage_output, target_filename


class TargetNameTests(unittest.TestCase):
    def test_default_template(self):
        self.assertEqual(target_filename(2, 1700000000), "2_1700000000.jpg")
        self.assertEqual(target_filename(1, 5, fmt="PNG"), "1_5.png")

    def test_custom_template(self):
        self.assertEqual(target_filename(3, 9, template="wall-{display}.{ext}", fmt="WEBP"), "wall-3.webp")


class ResolveSourceTests(unittest.TestCase):
    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(SourceError):
                resolve_source(Path(tmp) / "nope.jpg")

    def test_directory_is_not_a_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(SourceError) as ctx:
                resolve_source(tmp)
            self.assertIn("is not a file", str(ctx.exception))

    def test_returns_absolute_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "photo.jpg"
            src.write_bytes(b"x")
            self.assertTrue(resolve_source(src).is_absolute())


class StageOutputTests(unittest.TestCase):
    def test_refuses_source_named_like_target(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "1_100.jpg"
            src.write_bytes(b"x")
            with self.assertRaises(SourceError) as ctx:
                stage_output(src, 1, Path(tmp), timestamp=100)
            self.assertIn("target filename for monitor 1", str(ctx.exception))
            self.assertTrue(src.exists())

    def test_removes_stale_output(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "photo.jpg"
            src.write_bytes(b"x")
            out_dir = Path(tmp) / "out"
            out_dir.mkdir()
            stale = out_dir / "2_100.jpg"
            stale.write_bytes(b"old")

            target = stage_output(src, 2, out_dir, timestamp=100)
            self.assertEqual(target, stale.resolve())
            self.assertTrue(target.is_absolute())
            self.assertFalse(stale.exists())

    def test_creates_output_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = Path(tmp) / "photo.jpg"
            src.write_bytes(b"x")
            target = stage_output(src, 1, Path(tmp) / "nested" / "dir", timestamp=7)
            self.assertTrue(target.parent.is_dir())
            self.assertEqual(target.name, "1_7.jpg")


if __name__ == "__main__":
    unittest.main()
