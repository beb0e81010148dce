import sys
import unittest
from pathlib import Path
from subprocess import CompletedProcess
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "displays"))

from backdrop_displays.models import WallpaperSetError
from backdrop_displays.wallpaper import macos_script, set_wallpaper

IMAGE = Path("/tmp/backdrop/2_1700000000.jpg")


def _ok(*_args, **_kwargs):
    return CompletedProcess(args=[], returncode=0, stdout="", stderr="")


class MacWallpaperTests(unittest.TestCase):
    def test_script_targets_desktop_number(self):
        script = macos_script(IMAGE, 2)
        self.assertIn('set picture of desktop 2 to "/tmp/backdrop/2_1700000000.jpg"', script)
        self.assertTrue(script.startswith('tell application "System Events"'))

    def test_script_escapes_quotes(self):
        script = macos_script(Path('/tmp/a "b".jpg'), 1)
        self.assertIn('\\"b\\"', script)

    def test_runs_osascript(self):
        with patch("backdrop_displays.wallpaper.platform.system", return_value="Darwin"), patch(
            "backdrop_displays.wallpaper.subprocess.run", side_effect=_ok
        ) as run:
            set_wallpaper(IMAGE, 2)
        cmd = run.call_args.args[0]
        self.assertEqual(cmd[:2], ["osascript", "-e"])

    def test_osascript_failure_raises(self):
        failed = CompletedProcess(args=[], returncode=1, stdout="", stderr="not allowed")
        with patch("backdrop_displays.wallpaper.platform.system", return_value="Darwin"), patch(
            "backdrop_displays.wallpaper.subprocess.run", return_value=failed
        ):
            with self.assertRaises(WallpaperSetError) as ctx:
                set_wallpaper(IMAGE, 1)
        self.assertIn("not allowed", str(ctx.exception))

    def test_missing_binary_raises(self):
        with patch("backdrop_displays.wallpaper.platform.system", return_value="Darwin"), patch(
            "backdrop_displays.wallpaper.subprocess.run", side_effect=FileNotFoundError("osascript")
        ):
            with self.assertRaises(WallpaperSetError):
                set_wallpaper(IMAGE, 1)


class LinuxWallpaperTests(unittest.TestCase):
    def test_gsettings_keys(self):
        with patch("backdrop_displays.wallpaper.platform.system", return_value="Linux"), patch(
            "backdrop_displays.wallpaper.subprocess.run", side_effect=_ok
        ) as run:
            set_wallpaper(IMAGE, 1)
        keys = [call.args[0][4] for call in run.call_args_list]
        self.assertEqual(keys, ["picture-uri", "picture-uri-dark", "picture-options"])
        self.assertEqual(run.call_args_list[0].args[0][5], IMAGE.as_uri())


class PathTests(unittest.TestCase):
    def test_relative_path_rejected(self):
        with self.assertRaises(WallpaperSetError):
            set_wallpaper(Path("relative.jpg"), 1)


if __name__ == "__main__":
    unittest.main()
