"""Per-display fit-over-fill compose run."""

from __future__ import annotations

import logging

from .errors import InvalidInput, PipelineError, TransformFailure
from .geometry import DEFAULT_BLUR_DIVISOR, plan_wallpaper
from .imaging import blur, crop, overwrite_composite, resample
from .models import DisplayTarget, PixelBuffer

_LOGGER = logging.getLogger("backdrop.compositor")


def _validate(source: PixelBuffer, target: DisplayTarget) -> None:
    if not isinstance(source, PixelBuffer):
        raise InvalidInput(f"source must be a PixelBuffer, got {type(source).__name__}")
    if not isinstance(target, DisplayTarget):
        raise InvalidInput(f"target must be a DisplayTarget, got {type(target).__name__}")
    if source.width <= 0 or source.height <= 0:
        raise InvalidInput(f"source size {source.width}x{source.height} is not positive")
    if target.width <= 0 or target.height <= 0:
        raise InvalidInput(f"target size {target.width}x{target.height} is not positive")


def compose_wallpaper(
    source: PixelBuffer,
    target: DisplayTarget,
    blur_divisor: int = DEFAULT_BLUR_DIVISOR,
) -> PixelBuffer:
    """Layer a sharp fit rendition of ``source`` over a blurred, cropped fill rendition.

    The returned buffer always matches ``target`` exactly. Any stage failure
    raises the originating :class:`PipelineError`; nothing partial is returned.
    """
    _validate(source, target)
    plan = plan_wallpaper(source.width, source.height, target.width, target.height, blur_divisor)
    display = target.index
    _LOGGER.debug(
        "compose plan fit=%sx%s fill=%sx%s crop=%s blur=%s paste=%s",
        plan.fit.target_width,
        plan.fit.target_height,
        plan.fill.target_width,
        plan.fill.target_height,
        plan.crop,
        plan.blur_radius,
        plan.paste,
        extra={"event": "compose_plan", "display": display},
    )

    try:
        fit_image = resample(source, plan.fit.dimensions)
        fill_image = resample(source, plan.fill.dimensions)
        fill_image = crop(fill_image, plan.crop)
        if fill_image.size != (target.width, target.height):
            raise TransformFailure(
                f"cropped fill is {fill_image.width}x{fill_image.height}, expected {target.width}x{target.height}"
            )
        fill_image = blur(fill_image, plan.blur_radius)
        result = overwrite_composite(fill_image, fit_image, plan.paste)
    except PipelineError as exc:
        _LOGGER.warning("compose failed: %s", exc, extra={"event": "compose_failed", "display": display})
        raise

    if result.size != (target.width, target.height):
        raise TransformFailure(f"composed image is {result.width}x{result.height}, expected {target.width}x{target.height}")
    _LOGGER.debug("compose done %sx%s", result.width, result.height, extra={"event": "compose_done", "display": display})
    return result
