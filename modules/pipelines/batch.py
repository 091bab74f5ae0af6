"""Fan-out of every (source, target) pair through compositing and encoding."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence, Tuple

from modules.pipelines.compositor import Compositor
from modules.pipelines.encoder import SizeConstrainedEncoder
from modules.pipelines.errors import ImagePipelineError, InvalidDimensions
from modules.pipelines.models import Artifact, ArtifactSet, SourceImage, TargetSpec, UnitFailure
from modules.utils.image_utils import sanitize_stem

LOGGER = logging.getLogger(__name__)


def artifact_filename(source_name: str, spec: TargetSpec, extension: str) -> str:
    """Deterministic name encoding target dimensions and the source file stem."""
    return f"processed_{spec.label}_{sanitize_stem(source_name)}.{extension}"


def validate_specs(specs: Sequence[TargetSpec]) -> None:
    for spec in specs:
        if spec.width <= 0 or spec.height <= 0:
            raise InvalidDimensions(f"Invalid target size {spec.width}x{spec.height}")


class BatchOrchestrator:
    """Run Compositor then Encoder for the full sources x specs cross product.

    Units run concurrently on a thread pool (Pillow releases the GIL while
    resampling and encoding). Results are keyed by (source position, spec
    position), so output order never depends on completion order.
    """

    def __init__(
        self,
        compositor: Compositor,
        encoder: SizeConstrainedEncoder,
        byte_budget: int,
        max_workers: Optional[int] = None,
    ) -> None:
        self.compositor = compositor
        self.encoder = encoder
        self.byte_budget = byte_budget
        self.max_workers = max_workers

    def process_unit(self, source: SourceImage, spec: TargetSpec) -> Artifact:
        """Produce a fresh artifact for one (source, spec) pair."""
        raster = self.compositor.composite(source.image, spec)
        encoded = self.encoder.encode(raster, self.byte_budget)
        return Artifact(
            filename=artifact_filename(source.name, spec, encoded.extension),
            encoded=encoded,
            spec=spec,
            source_index=source.index,
        )

    def process(self, sources: Sequence[SourceImage], specs: Sequence[TargetSpec]) -> List[ArtifactSet]:
        """Return one ArtifactSet per source, artifacts in spec order.

        Invalid specs abort the whole call. Any other error is recorded as a
        UnitFailure on the owning set and the remaining units still run.
        """
        validate_specs(specs)
        if not sources or not specs:
            return [self._assemble(source, specs, {}) for source in sources]

        futures: Dict[Tuple[int, int], Future] = {}
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="image-unit") as pool:
            for source_pos, source in enumerate(sources):
                for spec_pos, spec in enumerate(specs):
                    futures[(source_pos, spec_pos)] = pool.submit(self.process_unit, source, spec)

        sets = []
        for source_pos, source in enumerate(sources):
            outcomes = {spec_pos: futures[(source_pos, spec_pos)] for spec_pos in range(len(specs))}
            sets.append(self._assemble(source, specs, outcomes))

        produced = sum(len(item.artifacts) for item in sets)
        failed = sum(len(item.failures) for item in sets)
        LOGGER.info(
            "Processed %d source(s) x %d spec(s): %d artifact(s), %d failure(s)",
            len(sources),
            len(specs),
            produced,
            failed,
        )
        return sets

    def _assemble(
        self,
        source: SourceImage,
        specs: Sequence[TargetSpec],
        outcomes: Dict[int, Future],
    ) -> ArtifactSet:
        artifacts: List[Artifact] = []
        failures: List[UnitFailure] = []
        for spec_pos, future in sorted(outcomes.items()):
            spec = specs[spec_pos]
            try:
                artifact = future.result()
            except Exception as exc:  # noqa: BLE001
                if isinstance(exc, ImagePipelineError):
                    LOGGER.warning("Unit %s / %s failed: %s", source.name, spec.label, exc)
                else:
                    LOGGER.exception("Unit %s / %s raised unexpectedly", source.name, spec.label)
                failures.append(
                    UnitFailure(
                        source_index=source.index,
                        source_name=source.name,
                        spec=spec,
                        kind=type(exc).__name__,
                        message=str(exc),
                    )
                )
                continue
            LOGGER.debug("Unit %s / %s -> %s (%d bytes)", source.name, spec.label, artifact.filename, artifact.size_bytes)
            artifacts.append(artifact)

        return ArtifactSet(
            name=source.name,
            source_index=source.index,
            artifacts=tuple(artifacts),
            failures=tuple(failures),
            source_indices=(source.index,),
        )
