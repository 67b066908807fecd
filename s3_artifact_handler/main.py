"""Core application entry point."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .archive import ArchivePacker, ArchiveUnpacker, PathExpander
from .config import ConfigManager, TransferConfig
from .exceptions import ArtifactHandlerError, FilesystemError
from .s3 import S3Client
from .utils import ProgressTracker, configure_logging

LOGGER = logging.getLogger(__name__)


def generate_object_key() -> str:
    """Return a fresh random object key in the 36 character UUID form."""
    return str(uuid.uuid4())


class ArtifactHandler:
    """Coordinates archiving, uploading and downloading of artifacts."""

    def __init__(
        self,
        client: S3Client,
        transfer_config: Optional[TransferConfig] = None,
        *,
        expander: Optional[PathExpander] = None,
        packer: Optional[ArchivePacker] = None,
        unpacker: Optional[ArchiveUnpacker] = None,
    ) -> None:
        self.client = client
        self.transfer_config = transfer_config or TransferConfig()
        self.expander = expander or PathExpander()
        self.packer = packer or ArchivePacker(
            self.transfer_config.archive_name,
            compression_level=self.transfer_config.compression_level,
            progress_tracker=ProgressTracker("Packing", enabled=self.transfer_config.show_progress),
        )
        self.unpacker = unpacker or ArchiveUnpacker()

    @classmethod
    def from_config(
        cls,
        config_path: Union[str, Path],
        bucket_name: str,
        *,
        log_level: Optional[str] = None,
        **overrides,
    ) -> "ArtifactHandler":
        """Build a handler from a YAML configuration file.

        ``overrides`` replace individual transfer settings after loading.
        """
        config = ConfigManager(config_path)
        config.load()
        logging_config = config.get_logging_config()
        if log_level is not None:
            logging_config["level"] = log_level.upper()
        configure_logging(logging_config)

        transfer_config = config.get_transfer_config()
        for name, value in overrides.items():
            if value is not None:
                setattr(transfer_config, name, value)

        client = S3Client(
            config.get_bucket(bucket_name),
            config.get_credentials(),
            part_size=transfer_config.part_size,
            signature_timeout=transfer_config.signature_timeout,
            request_timeout=transfer_config.request_timeout,
        )
        return cls(client, transfer_config)

    def upload(self, paths: Iterable[str], object_key: Optional[str] = None) -> str:
        """Archive ``paths``, upload the archive and return the object key."""
        paths = list(paths)
        files = self.expander.expand(paths)
        archive_path = self.packer.pack(files)

        key = object_key or generate_object_key()
        try:
            if self.transfer_config.ensure_bucket:
                self.client.ensure_bucket()
            LOGGER.debug("Uploading %s as %s", archive_path, key)
            self.client.put(key, archive_path)
        except Exception:
            self._discard_local(archive_path)
            raise
        self._remove_local(archive_path)

        LOGGER.info("Uploaded files at %s to %s/%s", paths, self.client.bucket.name, key)
        return key

    def download(self, object_key: str, extract_to: Optional[Union[str, Path]] = None, remove: bool = False) -> List[str]:
        """Fetch ``object_key`` and unpack it; optionally delete the remote object."""
        destination = Path(extract_to if extract_to is not None else self.transfer_config.extract_to)
        archive_path = Path(self.transfer_config.download_name)

        LOGGER.debug("Downloading %s", object_key)
        self.client.get(object_key, archive_path)
        try:
            members = self.unpacker.unpack(archive_path, destination)
        except ArtifactHandlerError:
            LOGGER.warning("Unpacking failed, downloaded archive kept at %s", archive_path)
            raise
        self._remove_local(archive_path)

        if remove:
            self.client.delete(object_key)
            LOGGER.info("Removed %s from bucket %s", object_key, self.client.bucket.name)
        return members

    @staticmethod
    def _discard_local(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            LOGGER.warning("Unable to remove local archive %s: %s", path, exc)

    @staticmethod
    def _remove_local(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Unable to remove local archive {path}: {exc}") from exc
