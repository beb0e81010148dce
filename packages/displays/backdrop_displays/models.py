"""Typed models for attached displays."""

from __future__ import annotations

from dataclasses import dataclass


class DisplayError(RuntimeError):
    pass


class DisplayProbeError(DisplayError):
    pass


class WallpaperSetError(DisplayError):
    pass


@dataclass(frozen=True)
class MonitorInfo:
    id: int
    name: str
    width: int
    height: int
