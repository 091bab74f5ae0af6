"""Compact previews for submission to an external analysis service."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from PIL.Image import Resampling

from modules.pipelines.encoder import SizeConstrainedEncoder
from modules.pipelines.errors import InvalidDimensions
from modules.pipelines.models import CompactPreview, SourceImage


def preview_size(width: int, height: int, max_longest_edge: int) -> Tuple[int, int]:
    """Scale so the longest edge is at most ``max_longest_edge``; never upscale."""
    scale = min(1.0, max_longest_edge / max(width, height))
    return (max(1, round(width * scale)), max(1, round(height * scale)))


class PreviewDownsampler:
    """Downscale and encode previews at a fixed quality, with no size search."""

    def __init__(
        self,
        encoder: SizeConstrainedEncoder,
        max_longest_edge: int = 512,
        quality: float = 0.85,
    ) -> None:
        self.encoder = encoder
        self.max_longest_edge = max_longest_edge
        self.quality = quality

    def downsample(
        self,
        sources: Sequence[SourceImage],
        max_longest_edge: Optional[int] = None,
    ) -> List[CompactPreview]:
        """Return one preview per source, in input order."""
        edge = max_longest_edge if max_longest_edge is not None else self.max_longest_edge
        if edge <= 0:
            raise InvalidDimensions(f"Preview edge must be positive, got {edge}")

        previews: List[CompactPreview] = []
        for source in sources:
            size = preview_size(source.width, source.height, edge)
            raster = source.image if size == source.image.size else source.image.resize(size, Resampling.LANCZOS)
            previews.append(
                CompactPreview(source_index=source.index, encoded=self.encoder.encode_at(raster, self.quality))
            )
        return previews
