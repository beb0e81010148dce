"""Error taxonomy for the wallpaper compositor."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for every failure surfaced by a compose run."""


class InvalidInput(PipelineError, ValueError):
    """Source or target carries a non-positive dimension or malformed pixels."""


class InvalidDimensions(InvalidInput):
    pass


class DecodeFailure(PipelineError):
    pass


class EncodeFailure(PipelineError):
    pass


class TransformFailure(PipelineError):
    """A resample/crop/blur/composite stage could not produce its output."""
