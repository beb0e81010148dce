"""Pillow/numpy backed primitives: decode, encode, resample, crop, blur, composite."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

import numpy as np
from PIL import Image, ImageFilter, ImageOps, UnidentifiedImageError

from .errors import DecodeFailure, EncodeFailure, TransformFailure
from .models import CropRect, Dimensions, Offset, PixelBuffer

_NO_ALPHA_FORMATS = {"JPEG", "BMP"}
_SUFFIX_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".bmp": "BMP",
    ".webp": "WEBP",
}

# Errors the imaging libraries raise for bad sizes, modes or exhausted memory.
_LIBRARY_ERRORS = (OSError, ValueError, MemoryError)


def _to_buffer(image: Image.Image) -> PixelBuffer:
    # Only the first frame of multi-frame files is used.
    image.seek(0)
    image = ImageOps.exif_transpose(image)
    return PixelBuffer.from_image(image)


def decode_image(data: bytes) -> PixelBuffer:
    try:
        with Image.open(BytesIO(data)) as image:
            image.load()
            return _to_buffer(image)
    except (UnidentifiedImageError, *_LIBRARY_ERRORS) as exc:
        raise DecodeFailure(f"Could not decode image: {exc}") from exc


def load_image(path: Path) -> PixelBuffer:
    try:
        with Image.open(path) as image:
            image.load()
            return _to_buffer(image)
    except (UnidentifiedImageError, *_LIBRARY_ERRORS) as exc:
        raise DecodeFailure(f"Could not decode image {path}: {exc}") from exc


def format_for_path(path: Path, default: str = "JPEG") -> str:
    return _SUFFIX_FORMATS.get(Path(path).suffix.lower(), default)


def _prepare_for_format(buffer: PixelBuffer, fmt: str) -> Image.Image:
    image = buffer.to_image()
    if fmt.upper() in _NO_ALPHA_FORMATS and image.mode == "RGBA":
        image = image.convert("RGB")
    return image


def encode_image(buffer: PixelBuffer, fmt: str = "JPEG", quality: int = 92) -> bytes:
    out = BytesIO()
    try:
        _prepare_for_format(buffer, fmt).save(out, format=fmt.upper(), quality=quality)
    except (KeyError, *_LIBRARY_ERRORS) as exc:
        raise EncodeFailure(f"Could not encode {buffer.width}x{buffer.height} image as {fmt}: {exc}") from exc
    return out.getvalue()


def save_image(buffer: PixelBuffer, path: Path, fmt: str | None = None, quality: int = 92) -> Path:
    path = Path(path)
    fmt = (fmt or format_for_path(path)).upper()
    data = encode_image(buffer, fmt=fmt, quality=quality)
    try:
        path.write_bytes(data)
    except OSError as exc:
        raise EncodeFailure(f"Could not write {path}: {exc}") from exc
    return path


def resample(buffer: PixelBuffer, dims: Dimensions) -> PixelBuffer:
    """Lanczos-3 resize to exactly ``dims``."""
    try:
        image = buffer.to_image().resize(dims.as_tuple(), Image.Resampling.LANCZOS)
        return PixelBuffer.from_image(image)
    except _LIBRARY_ERRORS as exc:
        raise TransformFailure(f"resample {buffer.size} -> {dims.as_tuple()} failed: {exc}") from exc


def crop(buffer: PixelBuffer, rect: CropRect) -> PixelBuffer:
    if (
        rect.x < 0
        or rect.y < 0
        or rect.width <= 0
        or rect.height <= 0
        or rect.x + rect.width > buffer.width
        or rect.y + rect.height > buffer.height
    ):
        raise TransformFailure(f"crop {rect} lies outside {buffer.width}x{buffer.height} buffer")
    try:
        region = buffer.pixels[rect.y : rect.y + rect.height, rect.x : rect.x + rect.width].copy()
    except MemoryError as exc:
        raise TransformFailure(f"crop {rect} failed: {exc}") from exc
    return PixelBuffer(width=rect.width, height=rect.height, mode=buffer.mode, pixels=region)


def blur(buffer: PixelBuffer, radius: int) -> PixelBuffer:
    if radius < 0:
        raise TransformFailure(f"blur radius must be >= 0, got {radius}")
    if radius == 0:
        return PixelBuffer(width=buffer.width, height=buffer.height, mode=buffer.mode, pixels=buffer.pixels.copy())
    try:
        image = buffer.to_image().filter(ImageFilter.GaussianBlur(radius=radius))
        return PixelBuffer.from_image(image)
    except _LIBRARY_ERRORS as exc:
        raise TransformFailure(f"blur radius={radius} failed: {exc}") from exc


def overwrite_composite(background: PixelBuffer, overlay: PixelBuffer, offset: Offset) -> PixelBuffer:
    """Replace background pixels under ``overlay`` outright; alpha is never blended."""
    if (
        offset.x < 0
        or offset.y < 0
        or offset.x + overlay.width > background.width
        or offset.y + overlay.height > background.height
    ):
        raise TransformFailure(
            f"overlay {overlay.width}x{overlay.height} at ({offset.x}, {offset.y}) "
            f"exceeds background {background.width}x{background.height}"
        )
    try:
        if overlay.mode != background.mode:
            overlay = PixelBuffer.from_image(overlay.to_image().convert(background.mode))
        out = np.array(background.pixels, copy=True)
        out[offset.y : offset.y + overlay.height, offset.x : offset.x + overlay.width] = overlay.pixels
    except _LIBRARY_ERRORS as exc:
        raise TransformFailure(f"composite failed: {exc}") from exc
    return PixelBuffer(width=background.width, height=background.height, mode=background.mode, pixels=out)
