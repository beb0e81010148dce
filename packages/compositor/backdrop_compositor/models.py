"""Typed value models for compositor geometry and pixel buffers."""

from __future__ import annotations

import numbers
from dataclasses import dataclass

import numpy as np
from PIL import Image

from .errors import InvalidDimensions, InvalidInput

_CHANNELS = {"RGB": 3, "RGBA": 4}


def _require_positive(**values: int) -> None:
    for name, value in values.items():
        if not isinstance(value, numbers.Integral) or isinstance(value, bool):
            raise InvalidDimensions(f"{name} must be an integer, got {value!r}")
        if value <= 0:
            raise InvalidDimensions(f"{name} must be positive, got {value}")


@dataclass(frozen=True)
class Dimensions:
    width: int
    height: int

    def __post_init__(self) -> None:
        _require_positive(width=self.width, height=self.height)

    def as_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True)
class ScalePlan:
    target_width: int
    target_height: int
    scale_factor: float

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions(self.target_width, self.target_height)


@dataclass(frozen=True)
class CropRect:
    x: int
    y: int
    width: int
    height: int

    @property
    def box(self) -> tuple[int, int, int, int]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True)
class Offset:
    x: int
    y: int


@dataclass(frozen=True)
class DisplayTarget:
    width: int
    height: int
    index: int | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        try:
            _require_positive(width=self.width, height=self.height)
        except InvalidDimensions as exc:
            raise InvalidInput(f"display target {self.width}x{self.height}: {exc}") from exc

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions(self.width, self.height)


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Row-major pixels of shape (height, width, channels), read-only once built."""

    width: int
    height: int
    mode: str
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.mode not in _CHANNELS:
            raise InvalidInput(f"Unsupported pixel mode: {self.mode}")
        try:
            _require_positive(width=self.width, height=self.height)
        except InvalidDimensions as exc:
            raise InvalidInput(f"pixel buffer {self.width}x{self.height}: {exc}") from exc
        expected = (self.height, self.width, _CHANNELS[self.mode])
        if self.pixels.shape != expected or self.pixels.dtype != np.uint8:
            raise InvalidInput(f"Pixel array {self.pixels.shape}/{self.pixels.dtype} does not match {expected}/uint8")
        # Own the array so no outside view or base can mutate it.
        pixels = np.array(self.pixels, dtype=np.uint8, copy=True)
        pixels.setflags(write=False)
        object.__setattr__(self, "pixels", pixels)

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)

    @property
    def channels(self) -> int:
        return _CHANNELS[self.mode]

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        if image.mode not in _CHANNELS:
            has_alpha = "A" in image.getbands() or "transparency" in image.info
            image = image.convert("RGBA" if has_alpha else "RGB")
        pixels = np.array(image, dtype=np.uint8)
        return cls(width=image.width, height=image.height, mode=image.mode, pixels=pixels)

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels.copy())

    def same_pixels(self, other: "PixelBuffer") -> bool:
        return self.mode == other.mode and self.size == other.size and bool(np.array_equal(self.pixels, other.pixels))
