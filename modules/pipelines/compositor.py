"""Geometric compositing of source rasters into fixed-size target frames."""

from __future__ import annotations

from typing import Tuple

from PIL import Image, ImageFilter
from PIL.Image import Resampling

from modules.pipelines.errors import InvalidDimensions
from modules.pipelines.models import CompositeStrategy, TargetSpec

Box = Tuple[float, float, float, float]


def cover_crop_box(source_w: int, source_h: int, target_w: int, target_h: int) -> Box:
    """Return the centered source region whose aspect ratio matches the target.

    A relatively wider source keeps its full height and is cropped
    horizontally; otherwise the full width is kept and the height is cropped.
    """
    target_aspect = target_w / target_h
    source_aspect = source_w / source_h

    if source_aspect > target_aspect:
        crop_w = source_h * target_aspect
        left = (source_w - crop_w) / 2
        return (left, 0.0, left + crop_w, float(source_h))

    crop_h = source_w / target_aspect
    top = (source_h - crop_h) / 2
    return (0.0, top, float(source_w), top + crop_h)


def fit_size(source_w: int, source_h: int, target_w: int, target_h: int, *, cover: bool) -> Tuple[int, int]:
    """Scale source dimensions with a cover (max) or contain (min) fit."""
    ratios = (target_w / source_w, target_h / source_h)
    scale = max(ratios) if cover else min(ratios)
    return (max(1, round(source_w * scale)), max(1, round(source_h * scale)))


class Compositor:
    """Produce rasters of exactly the requested target size."""

    def __init__(self, blur_radius: float = 24.0, resample: Resampling = Resampling.LANCZOS) -> None:
        self.blur_radius = blur_radius
        self.resample = resample

    def composite(self, source: Image.Image, spec: TargetSpec) -> Image.Image:
        """Fit ``source`` into ``spec`` using the spec's compositing strategy."""
        width, height = spec.width, spec.height
        if width <= 0 or height <= 0:
            raise InvalidDimensions(f"Target size must be positive, got {width}x{height}")
        if source.width <= 0 or source.height <= 0:
            raise InvalidDimensions(f"Source size must be positive, got {source.width}x{source.height}")

        if spec.strategy is CompositeStrategy.COVER_CROP:
            return self.cover_crop(source, width, height)
        return self.blur_pad(source, width, height)

    def cover_crop(self, source: Image.Image, width: int, height: int) -> Image.Image:
        box = cover_crop_box(source.width, source.height, width, height)
        return source.resize((width, height), self.resample, box=box)

    def blur_pad(self, source: Image.Image, width: int, height: int) -> Image.Image:
        # Background: cover fit, centered, blurred across the whole frame.
        # Only the visible source region is resampled, never the full cover size.
        box = cover_crop_box(source.width, source.height, width, height)
        canvas = source.resize((width, height), self.resample, box=box)
        if self.blur_radius > 0:
            canvas = canvas.filter(ImageFilter.GaussianBlur(self.blur_radius))

        # Foreground: contain fit, centered, sharp.
        fg_w, fg_h = fit_size(source.width, source.height, width, height, cover=False)
        foreground = source.resize((fg_w, fg_h), self.resample)
        offset = ((width - fg_w) // 2, (height - fg_h) // 2)
        if foreground.mode == "RGBA":
            canvas.alpha_composite(foreground, offset)
        else:
            canvas.paste(foreground, offset)
        return canvas
