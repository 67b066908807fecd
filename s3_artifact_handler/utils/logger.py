"""Logging helpers."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Dict

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Libraries that log every request at DEBUG, including presigned URLs.
NOISY_LOGGERS = ("urllib3", "botocore")


def configure_logging(config: Dict[str, Any]) -> None:
    """Configure application logging based on the supplied configuration.

    Console output goes to stderr so that stdout only carries command results.
    """
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = logging.Formatter(config.get("format") or DEFAULT_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if bool(config.get("console", True)):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    file_path = config.get("file")
    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.captureWarnings(True)
