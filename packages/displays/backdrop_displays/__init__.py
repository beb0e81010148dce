"""Display enumeration and wallpaper assignment for desktop platforms."""

from .models import DisplayError, DisplayProbeError, MonitorInfo, WallpaperSetError
from .probe import list_monitors, monitor_count, monitor_size, parse_system_profiler
from .wallpaper import set_wallpaper

__all__ = [
    "DisplayError",
    "DisplayProbeError",
    "MonitorInfo",
    "WallpaperSetError",
    "list_monitors",
    "monitor_count",
    "monitor_size",
    "parse_system_profiler",
    "set_wallpaper",
]
