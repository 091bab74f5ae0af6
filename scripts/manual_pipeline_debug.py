"""One-off script for running the catalog pipeline on local files."""

from __future__ import annotations

import argparse
from pathlib import Path

from config.settings import load_config
from modules.pipelines.models import SourceFile
from modules.services.catalog_service import CatalogImageService, ProcessingMode
from modules.services.storage_service import StorageService
from modules.utils.logging import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(description="Process product photos into catalog artifacts.")
    parser.add_argument("images", nargs="+", type=Path)
    parser.add_argument("--output", type=Path, default=Path("debug_output"))
    parser.add_argument("--mode", choices=[mode.value for mode in ProcessingMode], default=ProcessingMode.GROUP.value)
    args = parser.parse_args()

    config = load_config()
    logger = setup_logging(config)
    service = CatalogImageService(config)
    storage = StorageService(args.output)

    files = [SourceFile.from_path(path) for path in args.images]
    for artifact_set in service.process(files, mode=ProcessingMode(args.mode)):
        for path in storage.save_set(artifact_set):
            logger.info("已保存: %s", path.resolve())
        for failure in artifact_set.failures:
            label = failure.spec.label if failure.spec else "decode"
            logger.error("失败 %s [%s]: %s", failure.source_name, label, failure.message)

    previews = service.previews(files)
    ready = [item for item in previews if isinstance(item, str)]
    print("预览数量:", len(ready), "/", len(previews))


if __name__ == "__main__":
    main()
