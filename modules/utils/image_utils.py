"""Utility helpers for image decoding and data URI handling."""

from __future__ import annotations

import io
import re

from PIL import Image, ImageOps, UnidentifiedImageError

from modules.pipelines.errors import DecodeFailure
from modules.pipelines.models import SourceFile, SourceImage

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_EXTENSION = re.compile(r"\.[^/.]+$")


def has_alpha(image: Image.Image) -> bool:
    """Return True when the image carries transparency information."""
    if image.mode in ("RGBA", "LA", "PA"):
        return True
    return image.mode == "P" and "transparency" in image.info


def normalize_mode(image: Image.Image) -> Image.Image:
    """Convert to RGBA when transparent, RGB otherwise."""
    target = "RGBA" if has_alpha(image) else "RGB"
    if image.mode == target:
        return image
    return image.convert(target)


def decode_image(data: bytes, name: str = "") -> Image.Image:
    """Decode raw bytes into an upright RGB/RGBA raster."""
    try:
        with Image.open(io.BytesIO(data)) as opened:
            opened.load()
            image = ImageOps.exif_transpose(opened)
            image = normalize_mode(image)
            # exif_transpose and convert may hand back the lazily opened file
            if image is opened:
                image = image.copy()
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
        EOFError,
        SyntaxError,
    ) as exc:
        raise DecodeFailure(f"Cannot decode image '{name}': {exc}", source_name=name) from exc

    if image.width <= 0 or image.height <= 0:
        raise DecodeFailure(f"Image '{name}' has no pixels", source_name=name)
    return image


def load_source(file: SourceFile, index: int) -> SourceImage:
    """Decode a caller-supplied file into a SourceImage."""
    return SourceImage(name=file.name, index=index, image=decode_image(file.data, file.name))


def sanitize_stem(filename: str) -> str:
    """Strip directories and the last extension, keeping filesystem-safe characters."""
    name = re.split(r"[\\/]", filename)[-1]
    stem = _EXTENSION.sub("", name)
    stem = _UNSAFE_CHARS.sub("_", stem).strip("._")
    return stem or "image"


def data_uri_payload_size(data_uri: str) -> int:
    """Return the decoded byte length of a base64 data URI without decoding it."""
    _, sep, payload = data_uri.partition(",")
    if not sep or not payload:
        return 0
    padding = len(payload) - len(payload.rstrip("="))
    return len(payload) * 3 // 4 - padding
