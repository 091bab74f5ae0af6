"""Size-constrained encoding of composited rasters."""

from __future__ import annotations

import io
import logging
from typing import List, Optional

from PIL import Image

from modules.pipelines.errors import EncodeFailure
from modules.pipelines.models import EncodedImage
from modules.utils.image_utils import has_alpha

LOGGER = logging.getLogger(__name__)

JPEG_MATTE = (255, 255, 255)


def _to_percent(quality: float) -> int:
    return max(1, min(100, int(round(quality * 100))))


class SizeConstrainedEncoder:
    """Encode rasters under a byte budget by stepping lossy quality down.

    Budgets are advisory: when the quality floor is reached the floor-quality
    encoding is returned as-is, even if it is still above budget.
    """

    def __init__(
        self,
        initial_quality: float = 0.95,
        quality_floor: float = 0.10,
        quality_step: float = 0.05,
    ) -> None:
        if not 0.0 < quality_floor <= initial_quality <= 1.0:
            raise ValueError("Expected 0 < quality_floor <= initial_quality <= 1")
        if quality_step <= 0:
            raise ValueError("quality_step must be positive")
        self.initial_quality = initial_quality
        self.quality_floor = quality_floor
        self.quality_step = quality_step

    def encode(self, raster: Image.Image, byte_budget: int) -> EncodedImage:
        """Return the smallest candidate that meets ``byte_budget``.

        Candidates are evaluated once, in order: the lossy quality search and,
        for rasters with alpha, a lossless PNG. When no candidate meets the
        budget the smallest one wins, so a lossy result that beats the
        lossless one is kept even when it is over budget.
        """
        candidates: List[EncodedImage] = [self._search_quality(raster, byte_budget)]
        if has_alpha(raster):
            candidates.append(self.encode_lossless(raster))

        within = [candidate for candidate in candidates if candidate.size_bytes <= byte_budget]
        chosen = min(within or candidates, key=lambda candidate: candidate.size_bytes)
        if chosen.size_bytes > byte_budget:
            LOGGER.debug(
                "Budget of %d bytes not met for %dx%d raster; best is %d bytes (%s)",
                byte_budget,
                raster.width,
                raster.height,
                chosen.size_bytes,
                chosen.format,
            )
        return chosen

    def encode_at(self, raster: Image.Image, quality: float) -> EncodedImage:
        """Encode once as JPEG at a fixed quality on the 0.0-1.0 scale."""
        return self._encode_jpeg(raster, _to_percent(quality))

    def encode_lossless(self, raster: Image.Image) -> EncodedImage:
        return self._save(raster, "PNG", {"optimize": True})

    def _search_quality(self, raster: Image.Image, byte_budget: int) -> EncodedImage:
        # Integer percentages keep the floor exact and the loop bounded.
        quality = _to_percent(self.initial_quality)
        floor = _to_percent(self.quality_floor)
        step = max(1, _to_percent(self.quality_step))

        flattened = self._flatten(raster)
        encoded = self._encode_jpeg(flattened, quality)
        while encoded.size_bytes > byte_budget and quality > floor:
            quality = max(floor, quality - step)
            encoded = self._encode_jpeg(flattened, quality)
        return encoded

    def _encode_jpeg(self, raster: Image.Image, quality: int) -> EncodedImage:
        return self._save(self._flatten(raster), "JPEG", {"quality": quality}, quality)

    @staticmethod
    def _flatten(raster: Image.Image) -> Image.Image:
        if raster.mode == "RGB":
            return raster
        if has_alpha(raster):
            rgba = raster.convert("RGBA")
            matte = Image.new("RGB", rgba.size, JPEG_MATTE)
            matte.paste(rgba, mask=rgba.getchannel("A"))
            return matte
        return raster.convert("RGB")

    @staticmethod
    def _save(raster: Image.Image, fmt: str, params: dict, quality: Optional[int] = None) -> EncodedImage:
        buffer = io.BytesIO()
        try:
            raster.save(buffer, format=fmt, **params)
        except (OSError, ValueError, KeyError) as exc:
            raise EncodeFailure(f"{fmt} encoding failed: {exc}") from exc
        return EncodedImage(
            data=buffer.getvalue(),
            format=fmt,
            width=raster.width,
            height=raster.height,
            quality=quality / 100 if quality is not None else None,
        )
