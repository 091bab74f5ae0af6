"""Benchmark script for measuring pipeline throughput."""

from __future__ import annotations

import argparse
import time

from PIL import Image

from config.settings import AppConfig
from modules.pipelines.models import SourceImage
from modules.services.catalog_service import CatalogImageService


def build_sources(count: int, width: int, height: int) -> list[SourceImage]:
    sources = []
    for index in range(count):
        noise = Image.effect_noise((width, height), 48 + index).convert("RGB")
        sources.append(SourceImage(name=f"synthetic_{index}.png", index=index, image=noise))
    return sources


def run_benchmark(count: int, width: int, height: int, workers: int | None) -> None:
    """Time one batch over synthetic noise images."""
    config = AppConfig(max_workers=workers)
    service = CatalogImageService(config)
    sources = build_sources(count, width, height)

    started = time.perf_counter()
    sets = service.orchestrator.process(sources, config.target_specs)
    elapsed = time.perf_counter() - started

    artifacts = [artifact for item in sets for artifact in item.artifacts]
    print(f"{len(artifacts)} artifact(s) in {elapsed:.2f}s ({elapsed / max(1, len(artifacts)):.3f}s each)")
    for artifact in artifacts:
        quality = artifact.encoded.quality
        print(f"  {artifact.filename}: {artifact.size_bytes / 1024:.1f} KB, quality={quality}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Benchmark the catalog image pipeline.")
    parser.add_argument("--count", type=int, default=4)
    parser.add_argument("--width", type=int, default=1800)
    parser.add_argument("--height", type=int, default=1200)
    parser.add_argument("--workers", type=int, default=None)
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    run_benchmark(args.count, args.width, args.height, args.workers)
