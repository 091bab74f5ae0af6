"""Caller-side aggregation of per-source artifact sets into one product group."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from modules.pipelines.models import Artifact, ArtifactSet, UnitFailure

Dimensions = Tuple[int, int]


def build_group_set(
    sets: Sequence[ArtifactSet],
    favorites: Optional[Mapping[Dimensions, int]] = None,
    name: str = "Product group",
) -> ArtifactSet:
    """Merge sets into one, keeping a single artifact per (width, height).

    Keys keep their first-appearance order. By default the artifact from the
    last source producing a size wins; ``favorites`` pins a size to the
    artifact derived from a specific source index.
    """
    chosen: Dict[Dimensions, Artifact] = {}
    by_source: Dict[Tuple[Dimensions, int], Artifact] = {}
    failures: List[UnitFailure] = []
    source_indices: List[int] = []

    for artifact_set in sets:
        for index in artifact_set.source_indices:
            if index not in source_indices:
                source_indices.append(index)
        failures.extend(artifact_set.failures)
        for artifact in artifact_set.artifacts:
            key = (artifact.width, artifact.height)
            chosen[key] = artifact
            by_source[(key, artifact.source_index)] = artifact

    for key, source_index in (favorites or {}).items():
        favorite = by_source.get((tuple(key), source_index))
        if favorite is None:
            raise KeyError(f"No {key[0]}x{key[1]} artifact for source {source_index}")
        chosen[tuple(key)] = favorite

    return ArtifactSet(
        name=name,
        source_index=None,
        artifacts=tuple(chosen.values()),
        failures=tuple(failures),
        source_indices=tuple(source_indices),
    )
