"""Display-aware fit-over-fill wallpaper compositor."""

from .errors import DecodeFailure, EncodeFailure, InvalidDimensions, InvalidInput, PipelineError, TransformFailure
from .geometry import (
    DEFAULT_BLUR_DIVISOR,
    WallpaperPlan,
    plan_blur_radius,
    plan_centered_crop,
    plan_fill,
    plan_fit,
    plan_paste_offset,
    plan_wallpaper,
)
from .imaging import blur, crop, decode_image, encode_image, load_image, overwrite_composite, resample, save_image
from .models import CropRect, Dimensions, DisplayTarget, Offset, PixelBuffer, ScalePlan
from .pipeline import compose_wallpaper

__all__ = [
    "CropRect",
    "DEFAULT_BLUR_DIVISOR",
    "DecodeFailure",
    "Dimensions",
    "DisplayTarget",
    "EncodeFailure",
    "InvalidDimensions",
    "InvalidInput",
    "Offset",
    "PipelineError",
    "PixelBuffer",
    "ScalePlan",
    "TransformFailure",
    "WallpaperPlan",
    "blur",
    "compose_wallpaper",
    "crop",
    "decode_image",
    "encode_image",
    "load_image",
    "overwrite_composite",
    "plan_blur_radius",
    "plan_centered_crop",
    "plan_fill",
    "plan_fit",
    "plan_paste_offset",
    "plan_wallpaper",
    "resample",
    "save_image",
]
