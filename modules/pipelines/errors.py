"""Exceptions raised by the image transformation pipeline."""

from __future__ import annotations

from typing import Optional


class ImagePipelineError(Exception):
    """Base class for pipeline errors."""


class DecodeFailure(ImagePipelineError, ValueError):
    """Source bytes could not be decoded into a raster."""

    def __init__(self, message: str, source_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.source_name = source_name


class InvalidDimensions(ImagePipelineError, ValueError):
    """Target or source dimensions are zero or negative."""


class EncodeFailure(ImagePipelineError, RuntimeError):
    """The underlying encoder rejected the raster."""
