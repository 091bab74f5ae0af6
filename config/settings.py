"""Configuration helpers for the catalog image pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from modules.pipelines.models import CompositeStrategy, TargetSpec

T = TypeVar("T")

DEFAULT_BYTE_BUDGET_KB = 349


def default_target_specs() -> list[TargetSpec]:
    """Hero/ERP square first, then the portrait catalog frame."""
    return [
        TargetSpec(2000, 2000, CompositeStrategy.BLUR_PAD),
        TargetSpec(1300, 2000, CompositeStrategy.COVER_CROP),
    ]


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    byte_budget_bytes: int = DEFAULT_BYTE_BUDGET_KB * 1024
    initial_quality: float = 0.95
    quality_floor: float = 0.10
    quality_step: float = 0.05
    blur_radius: float = 24.0
    preview_max_edge: int = 512
    preview_quality: float = 0.85
    max_workers: Optional[int] = None
    target_specs: list[TargetSpec] = field(default_factory=default_target_specs)
    log_dir: Path = Path("logs")
    log_level: str = "INFO"
    metadata: dict[str, Any] = field(default_factory=dict)


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip()


def _env(name: str, parse: Callable[[str], T], default: T) -> T:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return parse(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from exc


def parse_target_specs(text: str) -> list[TargetSpec]:
    """Parse a comma-separated list such as ``2000x2000:blur_pad,1300x2000:cover_crop``."""
    return [TargetSpec.parse(item) for item in text.split(",") if item.strip()]


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    budget_kb = _env("IMAGE_BYTE_BUDGET_KB", int, DEFAULT_BYTE_BUDGET_KB)
    specs = _env("TARGET_SPECS", parse_target_specs, default_target_specs())
    log_dir = Path(os.getenv("LOG_DIR", "logs")).expanduser()

    metadata: dict[str, Any] = {"env_file": str(env_path) if env_path.exists() else None}

    return AppConfig(
        byte_budget_bytes=budget_kb * 1024,
        initial_quality=_env("IMAGE_INITIAL_QUALITY", float, 0.95),
        quality_floor=_env("IMAGE_QUALITY_FLOOR", float, 0.10),
        quality_step=_env("IMAGE_QUALITY_STEP", float, 0.05),
        blur_radius=_env("IMAGE_BLUR_RADIUS", float, 24.0),
        preview_max_edge=_env("PREVIEW_MAX_EDGE", int, 512),
        preview_quality=_env("PREVIEW_QUALITY", float, 0.85),
        max_workers=_env("PIPELINE_MAX_WORKERS", int, None),
        target_specs=specs,
        log_dir=log_dir,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        metadata=metadata,
    )
