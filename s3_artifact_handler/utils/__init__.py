"""Utility helpers for the S3 Artifact Handler."""

from .logger import configure_logging
from .progress import ProgressTracker

__all__ = ["configure_logging", "ProgressTracker"]
