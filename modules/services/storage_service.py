"""File storage helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from modules.pipelines.models import Artifact, ArtifactSet

LOGGER = logging.getLogger(__name__)


class StorageService:
    """Write artifacts to disk under their generated names."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def save_artifact(self, artifact: Artifact) -> Path:
        """Persist an artifact and return the file path."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / artifact.filename
        path.write_bytes(artifact.data)
        LOGGER.debug("Saved %s (%d bytes)", path, artifact.size_bytes)
        return path

    def save_set(self, artifact_set: ArtifactSet) -> List[Path]:
        """Persist every artifact in a set, in set order."""
        return [self.save_artifact(artifact) for artifact in artifact_set.artifacts]
