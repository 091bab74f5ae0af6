"""Entry point used by the surrounding application to produce catalog images."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from config.settings import AppConfig
from modules.pipelines.batch import BatchOrchestrator
from modules.pipelines.compositor import Compositor
from modules.pipelines.encoder import SizeConstrainedEncoder
from modules.pipelines.errors import DecodeFailure
from modules.pipelines.models import ArtifactSet, SourceFile, SourceImage, UnitFailure
from modules.pipelines.preview import PreviewDownsampler
from modules.services.grouping import build_group_set
from modules.utils.image_utils import load_source

LOGGER = logging.getLogger(__name__)


class ProcessingMode(str, Enum):
    """Whether uploaded files describe one product or one product each."""

    INDIVIDUAL = "individual"
    GROUP = "group"


class CatalogImageService:
    """Facade wiring the pipeline components from configuration."""

    def __init__(
        self,
        config: AppConfig,
        orchestrator: Optional[BatchOrchestrator] = None,
        downsampler: Optional[PreviewDownsampler] = None,
    ) -> None:
        self.config = config
        encoder = SizeConstrainedEncoder(
            initial_quality=config.initial_quality,
            quality_floor=config.quality_floor,
            quality_step=config.quality_step,
        )
        self.orchestrator = orchestrator or BatchOrchestrator(
            Compositor(blur_radius=config.blur_radius),
            encoder,
            byte_budget=config.byte_budget_bytes,
            max_workers=config.max_workers,
        )
        self.downsampler = downsampler or PreviewDownsampler(
            encoder,
            max_longest_edge=config.preview_max_edge,
            quality=config.preview_quality,
        )

    def load_sources(self, files: Sequence[SourceFile]) -> Tuple[List[SourceImage], List[ArtifactSet]]:
        """Decode every file once; undecodable files become failure-only sets."""
        sources: List[SourceImage] = []
        failed: List[ArtifactSet] = []
        for index, file in enumerate(files):
            try:
                sources.append(load_source(file, index))
            except DecodeFailure as exc:
                LOGGER.warning("Skipping undecodable file %s: %s", file.name, exc)
                failure = UnitFailure(
                    source_index=index,
                    source_name=file.name,
                    spec=None,
                    kind=type(exc).__name__,
                    message=str(exc),
                )
                failed.append(
                    ArtifactSet(name=file.name, source_index=index, failures=(failure,), source_indices=(index,))
                )
        return sources, failed

    def process(
        self,
        files: Sequence[SourceFile],
        mode: ProcessingMode = ProcessingMode.GROUP,
        favorites: Optional[Mapping[Tuple[int, int], int]] = None,
    ) -> List[ArtifactSet]:
        """Produce artifact sets for ``files`` with the configured target specs.

        In individual mode there is one set per file, in file order. In group
        mode those sets are merged into a single set once all units finished;
        ``favorites`` selects which source backs a given output size.
        """
        sources, failed = self.load_sources(files)
        processed = self.orchestrator.process(sources, self.config.target_specs)
        sets = sorted(processed + failed, key=lambda item: item.source_index)

        if ProcessingMode(mode) is ProcessingMode.GROUP:
            return [build_group_set(sets, favorites)]
        return sets

    def previews(self, files: Sequence[SourceFile]) -> List[Union[str, UnitFailure]]:
        """Return compact preview data URIs, in file order.

        An undecodable file yields a UnitFailure at its position instead of a URI.
        """
        sources, failed = self.load_sources(files)
        results: Dict[int, Union[str, UnitFailure]] = {
            item.source_index: item.failures[0] for item in failed
        }
        for preview in self.downsampler.downsample(sources):
            results[preview.source_index] = preview.data_uri
        return [results[index] for index in range(len(files))]

    @staticmethod
    def preview_files(
        mode: ProcessingMode,
        files: Sequence[SourceFile],
        index: Optional[int] = None,
    ) -> List[SourceFile]:
        """Files whose previews accompany an analysis request for a set."""
        if ProcessingMode(mode) is ProcessingMode.GROUP:
            return list(files)
        if index is None:
            raise ValueError("An index is required in individual mode")
        return [files[index]]
