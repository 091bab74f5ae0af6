"""Logging setup for the image pipeline and its scripts.

Pipeline modules log under the ``modules`` namespace; units run on pool
threads, so records carry the thread name.
"""

from __future__ import annotations

import logging
from pathlib import Path

from config.settings import AppConfig

PIPELINE_LOGGER = "modules"
LOG_FILE_NAME = "pipeline.log"
# Pillow logs each plugin import and PNG chunk at DEBUG.
QUIET_LOGGERS = ("PIL",)


def setup_logging(config: AppConfig) -> logging.Logger:
    """Send pipeline logs to ``config.log_dir`` and stderr at ``config.log_level``.

    Unknown level names fall back to INFO. Returns the pipeline logger.
    """
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_dir / LOG_FILE_NAME, encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logging.getLogger(PIPELINE_LOGGER)
