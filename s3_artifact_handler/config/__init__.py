"""Configuration utilities for the S3 Artifact Handler."""

from .config_manager import ConfigManager, TransferConfig

__all__ = ["ConfigManager", "TransferConfig"]
