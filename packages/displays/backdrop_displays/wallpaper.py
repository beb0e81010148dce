"""Cross-platform desktop wallpaper assignment."""

from __future__ import annotations

import logging
import platform
import subprocess
from pathlib import Path

from .models import WallpaperSetError

_LOGGER = logging.getLogger("backdrop.displays")

SPI_SETDESKWALLPAPER = 0x14
SPIF_UPDATEINIFILE = 0x01
SPIF_SENDWININICHANGE = 0x02


def _run(cmd: list[str], what: str) -> None:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise WallpaperSetError(f"Failed to execute {what}: {exc}") from exc
    if proc.returncode != 0:
        raise WallpaperSetError(f"{what} exited with {proc.returncode}: {proc.stderr.strip()}")


def macos_script(path: Path, display_number: int) -> str:
    escaped = str(path).replace("\\", "\\\\").replace('"', '\\"')
    return f'tell application "System Events"\n    set picture of desktop {display_number} to "{escaped}"\nend tell'


def _set_macos(path: Path, display_number: int) -> None:
    _run(["osascript", "-e", macos_script(path, display_number)], "osascript")


def _set_windows(path: Path, display_number: int) -> None:
    import ctypes

    if display_number != 1:
        _LOGGER.warning(
            "per-display wallpaper is not supported on Windows; applying to the whole desktop",
            extra={"event": "wallpaper_whole_desktop", "display": display_number},
        )
    ok = ctypes.windll.user32.SystemParametersInfoW(  # type: ignore[attr-defined]
        SPI_SETDESKWALLPAPER,
        0,
        str(path),
        SPIF_UPDATEINIFILE | SPIF_SENDWININICHANGE,
    )
    if not ok:
        raise WallpaperSetError(f"SystemParametersInfoW rejected {path}")


def _set_linux(path: Path, display_number: int) -> None:
    if display_number != 1:
        _LOGGER.warning(
            "per-display wallpaper is not supported by gsettings; applying to every display",
            extra={"event": "wallpaper_whole_desktop", "display": display_number},
        )
    uri = path.as_uri()
    for key in ("picture-uri", "picture-uri-dark"):
        _run(["gsettings", "set", "org.gnome.desktop.background", key, uri], "gsettings")
    _run(["gsettings", "set", "org.gnome.desktop.background", "picture-options", "zoom"], "gsettings")


def set_wallpaper(path: Path, display_number: int) -> None:
    path = Path(path)
    if not path.is_absolute():
        raise WallpaperSetError(f"Wallpaper path must be absolute: {path}")
    system = platform.system()

    if system == "Darwin":
        _set_macos(path, display_number)
    elif system == "Windows":
        _set_windows(path, display_number)
    else:
        _set_linux(path, display_number)
    _LOGGER.info(
        "Monitor %s - background set", display_number, extra={"event": "wallpaper_set", "display": display_number}
    )
