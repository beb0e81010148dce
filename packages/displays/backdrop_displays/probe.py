"""Attached display enumeration.

macOS numbers desktops in the order ``system_profiler`` lists displays, so the
profiler output is parsed there. Other platforms go through ``screeninfo``.
"""

from __future__ import annotations

import logging
import platform
import re
import subprocess

from screeninfo import ScreenInfoError, get_monitors

from .models import DisplayProbeError, MonitorInfo

_LOGGER = logging.getLogger("backdrop.displays")
_RESOLUTION_RE = re.compile(r"^\s*(\d+)\s*[x×]\s*(\d+)", re.IGNORECASE)


def parse_system_profiler(text: str) -> list[MonitorInfo]:
    lines = iter(text.splitlines())
    for line in lines:
        if line.strip() == "Displays:":
            break

    sections: list[dict[str, str]] = []
    current: dict[str, str] | None = None
    for raw in lines:
        trimmed = raw.strip()
        if not trimmed:
            continue
        if trimmed.endswith(":"):
            if current is not None:
                sections.append(current)
            current = {"name": trimmed[:-1].strip()}
            continue
        key, sep, value = raw.partition(":")
        if not sep:
            continue
        if current is None:
            current = {}
        current[key.strip()] = value.strip()
    if current is not None:
        sections.append(current)

    monitors: list[MonitorInfo] = []
    for section in sections:
        resolution = section.get("Resolution")
        if resolution is None:
            continue
        match = _RESOLUTION_RE.match(resolution)
        if not match:
            _LOGGER.warning("unparsed display resolution: %s", resolution, extra={"event": "resolution_unparsed"})
            continue
        monitors.append(
            MonitorInfo(
                id=len(monitors) + 1,
                name=section.get("name", "Unknown"),
                width=int(match.group(1)),
                height=int(match.group(2)),
            )
        )
    return monitors


def _macos_monitors() -> list[MonitorInfo]:
    try:
        proc = subprocess.run(
            ["system_profiler", "SPDisplaysDataType"],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise DisplayProbeError(f"Failed to execute system_profiler: {exc}") from exc
    if proc.returncode != 0:
        raise DisplayProbeError(proc.stderr.strip() or f"system_profiler exited with {proc.returncode}")
    return parse_system_profiler(proc.stdout)


def _screeninfo_monitors() -> list[MonitorInfo]:
    try:
        found = get_monitors()
    except ScreenInfoError as exc:
        raise DisplayProbeError(f"Display enumeration failed: {exc}") from exc
    ordered = sorted(found, key=lambda m: (not bool(m.is_primary), m.x, m.y))
    return [
        MonitorInfo(id=idx, name=m.name or f"Display {idx}", width=int(m.width), height=int(m.height))
        for idx, m in enumerate(ordered, start=1)
    ]


def list_monitors() -> list[MonitorInfo]:
    if platform.system() == "Darwin":
        return _macos_monitors()
    return _screeninfo_monitors()


def monitor_count() -> int:
    return len(list_monitors())


def monitor_size(number: int, monitors: list[MonitorInfo] | None = None) -> tuple[int, int]:
    monitors = list_monitors() if monitors is None else monitors
    if number < 1 or number > len(monitors):
        raise DisplayProbeError(f"Monitor number {number} is out of range (1-{len(monitors)})")
    info = monitors[number - 1]
    return (info.width, info.height)
