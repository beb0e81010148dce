"""Scale, crop, paste and blur geometry for fit-over-fill wallpapers.

Every function here is pure. Ratios are exact fractions, so the constraining
axis lands on the target size. Results are already clamped in bounds.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from fractions import Fraction

from .errors import InvalidDimensions
from .models import CropRect, Offset, ScalePlan

DEFAULT_BLUR_DIVISOR = 40


def _check_positive(**values: int) -> None:
    for name, value in values.items():
        if not isinstance(value, numbers.Integral) or isinstance(value, bool):
            raise InvalidDimensions(f"{name} must be an integer, got {value!r}")
        if value <= 0:
            raise InvalidDimensions(f"{name} must be positive, got {value}")


def _ratios(src_w: int, src_h: int, target_w: int, target_h: int) -> tuple[Fraction, Fraction]:
    _check_positive(src_w=src_w, src_h=src_h, target_w=target_w, target_h=target_h)
    return Fraction(target_w, src_w), Fraction(target_h, src_h)


def plan_fit(src_w: int, src_h: int, target_w: int, target_h: int) -> ScalePlan:
    """Largest uniform scale that keeps the whole source inside the target."""
    scale = min(_ratios(src_w, src_h, target_w, target_h))
    # Extreme aspect ratios can floor an axis to zero.
    width = max(1, math.floor(src_w * scale))
    height = max(1, math.floor(src_h * scale))
    return ScalePlan(target_width=width, target_height=height, scale_factor=float(scale))


def plan_fill(src_w: int, src_h: int, target_w: int, target_h: int) -> ScalePlan:
    """Smallest uniform scale that covers the target on both axes."""
    scale = max(_ratios(src_w, src_h, target_w, target_h))
    width = max(target_w, math.floor(src_w * scale))
    height = max(target_h, math.floor(src_h * scale))
    return ScalePlan(target_width=width, target_height=height, scale_factor=float(scale))


def plan_centered_crop(buffer_w: int, buffer_h: int, target_w: int, target_h: int) -> CropRect:
    _check_positive(buffer_w=buffer_w, buffer_h=buffer_h, target_w=target_w, target_h=target_h)
    # An undersized buffer is clamped, not rejected: origin 0, size shrinks to fit.
    width = min(target_w, buffer_w)
    height = min(target_h, buffer_h)

    x = buffer_w // 2 - target_w // 2
    y = buffer_h // 2 - target_h // 2
    x = max(0, min(x, buffer_w - width))
    y = max(0, min(y, buffer_h - height))
    return CropRect(x=x, y=y, width=width, height=height)


def plan_paste_offset(background_w: int, background_h: int, fit_w: int, fit_h: int) -> Offset:
    _check_positive(background_w=background_w, background_h=background_h, fit_w=fit_w, fit_h=fit_h)
    return Offset(x=max(0, (background_w - fit_w) // 2), y=max(0, (background_h - fit_h) // 2))


def plan_blur_radius(target_w: int, target_h: int, divisor: int = DEFAULT_BLUR_DIVISOR) -> int:
    """Gaussian radius (standard deviation, in pixels) for the fill background."""
    _check_positive(target_w=target_w, target_h=target_h, divisor=divisor)
    return max(target_w, target_h) // divisor


@dataclass(frozen=True)
class WallpaperPlan:
    fit: ScalePlan
    fill: ScalePlan
    crop: CropRect
    blur_radius: int
    paste: Offset


def plan_wallpaper(
    src_w: int,
    src_h: int,
    target_w: int,
    target_h: int,
    blur_divisor: int = DEFAULT_BLUR_DIVISOR,
) -> WallpaperPlan:
    fit = plan_fit(src_w, src_h, target_w, target_h)
    fill = plan_fill(src_w, src_h, target_w, target_h)
    crop = plan_centered_crop(fill.target_width, fill.target_height, target_w, target_h)
    return WallpaperPlan(
        fit=fit,
        fill=fill,
        crop=crop,
        blur_radius=plan_blur_radius(target_w, target_h, blur_divisor),
        paste=plan_paste_offset(crop.width, crop.height, fit.target_width, fit.target_height),
    )
