"""Configuration management utilities."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..exceptions import ConfigurationError, ValidationError
from ..s3.client import DEFAULT_PART_SIZE, MIN_PART_SIZE
from ..s3.models import URL_STYLES, BucketIdentity, Credentials
from ..utils.logger import DEFAULT_FORMAT

# Keys understood at top level when the file has no ``s3`` section.
FLAT_S3_KEYS = ("endpoint", "access_key", "secret_key", "pass_key", "region", "url_style")


@dataclass
class TransferConfig:
    """Settings for the local side of an upload or download."""

    archive_name: str = "export.tar.gz"
    download_name: str = "local_download.tar.gz"
    extract_to: str = "."
    compression_level: int = 6
    part_size: int = DEFAULT_PART_SIZE
    signature_timeout: int = 1
    request_timeout: Optional[float] = None
    ensure_bucket: bool = True
    show_progress: bool = True


class ConfigManager:
    """Handles loading and validation of the YAML configuration file."""

    def __init__(self, config_path: Union[str, Path]):
        self.config_path = Path(config_path)
        self.config: Dict[str, Any] = {}

    def load(self) -> Dict[str, Any]:
        """Load and validate the configuration file."""
        if not self.config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        try:
            with self.config_path.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Failed to parse configuration: {exc}") from exc
        except OSError as exc:
            raise ConfigurationError(f"Unable to read configuration {self.config_path}: {exc}") from exc

        if isinstance(data, dict) and "s3" not in data and any(key in data for key in FLAT_S3_KEYS):
            data = self._nest_flat_layout(data)

        self.config = data
        self.validate()
        return self.config

    def validate(self) -> bool:
        """Validate the loaded configuration contents."""
        if not isinstance(self.config, dict):
            raise ValidationError("Configuration must be a mapping.")

        s3_cfg = self.config.get("s3")
        if not isinstance(s3_cfg, dict):
            raise ValidationError("Object store settings must be specified under s3.")
        for key in ("endpoint", "access_key"):
            if not s3_cfg.get(key):
                raise ValidationError(f"s3.{key} must be specified.")
        if not (s3_cfg.get("secret_key") or s3_cfg.get("pass_key")):
            raise ValidationError("s3.secret_key must be specified.")
        if not str(s3_cfg["endpoint"]).startswith(("http://", "https://")):
            raise ValidationError("s3.endpoint must be an http:// or https:// URL.")
        url_style = s3_cfg.get("url_style", "path")
        if url_style not in URL_STYLES:
            raise ValidationError(f"s3.url_style must be one of {', '.join(URL_STYLES)}.")

        transfer_cfg = self.config.get("transfer", {})
        if not isinstance(transfer_cfg, dict):
            raise ValidationError("transfer must be a mapping if specified.")

        level = transfer_cfg.get("compression_level", 6)
        if not isinstance(level, int) or not 0 <= level <= 9:
            raise ValidationError("transfer.compression_level must be an integer between 0 and 9.")

        part_size = transfer_cfg.get("part_size", DEFAULT_PART_SIZE)
        if not isinstance(part_size, int) or part_size < MIN_PART_SIZE:
            raise ValidationError(f"transfer.part_size must be an integer of at least {MIN_PART_SIZE} bytes.")

        timeout = transfer_cfg.get("signature_timeout", 1)
        if not isinstance(timeout, int) or timeout < 1:
            raise ValidationError("transfer.signature_timeout must be a positive integer (seconds).")

        request_timeout = transfer_cfg.get("request_timeout")
        if request_timeout is not None and (not isinstance(request_timeout, (int, float)) or request_timeout <= 0):
            raise ValidationError("transfer.request_timeout must be a positive number or null.")

        for flag in ("ensure_bucket", "show_progress"):
            if not isinstance(transfer_cfg.get(flag, True), bool):
                raise ValidationError(f"transfer.{flag} must be boolean if specified.")

        for name in ("archive_name", "download_name", "extract_to"):
            value = transfer_cfg.get(name)
            if value is not None and (not isinstance(value, str) or not value.strip()):
                raise ValidationError(f"transfer.{name} must be a non-empty string if specified.")

        logging_cfg = self.config.get("logging", {})
        if not isinstance(logging_cfg, dict):
            raise ValidationError("logging must be a mapping if specified.")

        return True

    def get_bucket(self, bucket_name: str) -> BucketIdentity:
        """Return the identity of ``bucket_name`` on the configured endpoint."""
        if not bucket_name:
            raise ValidationError("A bucket name is required.")
        s3_cfg = self.config["s3"]
        try:
            return BucketIdentity(
                endpoint=str(s3_cfg["endpoint"]),
                name=bucket_name,
                region=str(s3_cfg.get("region") or "us-east-1"),
                url_style=s3_cfg.get("url_style", "path"),
            )
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

    def get_credentials(self) -> Credentials:
        s3_cfg = self.config["s3"]
        secret = s3_cfg.get("secret_key") or s3_cfg.get("pass_key")
        return Credentials(access_key=str(s3_cfg["access_key"]), secret_key=str(secret))

    def get_transfer_config(self) -> TransferConfig:
        """Return transfer settings merged with defaults."""
        transfer_cfg = self.config.get("transfer", {})
        known = {item.name for item in fields(TransferConfig)}
        return TransferConfig(**{key: value for key, value in transfer_cfg.items() if key in known})

    def get_logging_config(self) -> Dict[str, Any]:
        """Return logging configuration values with defaults."""
        defaults = {
            "level": "INFO",
            "file": None,
            "console": True,
            "format": DEFAULT_FORMAT,
        }
        logging_cfg = self.config.get("logging", {})
        merged = {**defaults, **logging_cfg}
        return merged

    @staticmethod
    def _nest_flat_layout(data: Dict[str, Any]) -> Dict[str, Any]:
        nested = {key: value for key, value in data.items() if key not in FLAT_S3_KEYS}
        nested["s3"] = {key: data[key] for key in FLAT_S3_KEYS if key in data}
        return nested
