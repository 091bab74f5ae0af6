"""Data types shared by the compositor, encoder and orchestrator."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image


class CompositeStrategy(str, Enum):
    """How a source raster is fitted into a target frame."""

    COVER_CROP = "cover_crop"
    BLUR_PAD = "blur_pad"


@dataclass(frozen=True, slots=True)
class TargetSpec:
    """Requested output size and the compositing strategy used to reach it."""

    width: int
    height: int
    strategy: CompositeStrategy = CompositeStrategy.BLUR_PAD

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def label(self) -> str:
        return f"{self.width}x{self.height}"

    @classmethod
    def parse(cls, text: str) -> "TargetSpec":
        """Parse ``WIDTHxHEIGHT:strategy`` (e.g. ``1300x2000:cover_crop``)."""
        dims, sep, strategy_name = text.strip().partition(":")
        if not sep:
            raise ValueError(f"Target spec '{text}' is missing a strategy")
        width_text, x, height_text = dims.lower().partition("x")
        if not x:
            raise ValueError(f"Target spec '{text}' must look like WIDTHxHEIGHT:strategy")
        try:
            width, height = int(width_text), int(height_text)
        except ValueError as exc:
            raise ValueError(f"Target spec '{text}' has non-integer dimensions") from exc
        try:
            strategy = CompositeStrategy(strategy_name.strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown compositing strategy '{strategy_name}'") from exc
        return cls(width=width, height=height, strategy=strategy)


@dataclass(frozen=True, slots=True)
class SourceFile:
    """Raw caller-supplied image file."""

    name: str
    data: bytes

    @classmethod
    def from_path(cls, path: Path | str) -> "SourceFile":
        path = Path(path)
        return cls(name=path.name, data=path.read_bytes())


@dataclass(frozen=True, slots=True)
class SourceImage:
    """Decoded raster plus its identity within the originating batch."""

    name: str
    index: int
    image: Image.Image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


@dataclass(frozen=True, slots=True)
class EncodedImage:
    """Encoded byte buffer produced by the size-constrained encoder."""

    data: bytes
    format: str
    width: int
    height: int
    quality: Optional[float] = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def mime_type(self) -> str:
        return f"image/{self.format.lower()}"

    @property
    def extension(self) -> str:
        return "jpg" if self.format.upper() == "JPEG" else self.format.lower()

    @property
    def data_uri(self) -> str:
        payload = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{payload}"


@dataclass(frozen=True, slots=True)
class Artifact:
    """One named, size-bounded output image."""

    filename: str
    encoded: EncodedImage
    spec: TargetSpec
    source_index: int

    @property
    def width(self) -> int:
        return self.encoded.width

    @property
    def height(self) -> int:
        return self.encoded.height

    @property
    def size_bytes(self) -> int:
        return self.encoded.size_bytes

    @property
    def data(self) -> bytes:
        return self.encoded.data

    @property
    def data_uri(self) -> str:
        return self.encoded.data_uri


@dataclass(frozen=True, slots=True)
class UnitFailure:
    """Explicit record of a (source, spec) unit that produced no artifact."""

    source_index: int
    source_name: str
    spec: Optional[TargetSpec]
    kind: str
    message: str


@dataclass(frozen=True, slots=True)
class ArtifactSet:
    """Artifacts derived from one source, or aggregated across several."""

    name: str
    source_index: Optional[int]
    artifacts: Tuple[Artifact, ...] = ()
    failures: Tuple[UnitFailure, ...] = ()
    source_indices: Tuple[int, ...] = field(default=())

    @property
    def ok(self) -> bool:
        return not self.failures

    def find(self, width: int, height: int) -> Optional[Artifact]:
        """Return the first artifact with the given dimensions."""
        for artifact in self.artifacts:
            if artifact.width == width and artifact.height == height:
                return artifact
        return None


@dataclass(frozen=True, slots=True)
class CompactPreview:
    """Low-resolution preview destined for an external analysis service."""

    source_index: int
    encoded: EncodedImage

    @property
    def width(self) -> int:
        return self.encoded.width

    @property
    def height(self) -> int:
        return self.encoded.height

    @property
    def data_uri(self) -> str:
        return self.encoded.data_uri
