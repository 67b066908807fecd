"""Archive extraction utilities."""

from __future__ import annotations

import gzip
import logging
import tarfile
import zlib
from pathlib import Path
from typing import List, Union

from ..exceptions import FilesystemError, FormatError

LOGGER = logging.getLogger(__name__)


class ArchiveUnpacker:
    """Extracts gzip-compressed tar archives.

    Extraction is not atomic: members written before a failure stay on disk.
    """

    def unpack(self, archive_path: Union[str, Path], destination: Union[str, Path] = ".") -> List[str]:
        """Extract every member of ``archive_path`` below ``destination``."""
        archive_path = Path(archive_path)
        destination = Path(destination)
        if not archive_path.is_file():
            raise FilesystemError(f"Archive not found: {archive_path}")

        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Unable to create extraction directory {destination}: {exc}") from exc

        names: List[str] = []
        try:
            with tarfile.open(archive_path, "r:gz") as archive:
                for member in archive:
                    archive.extract(member, path=destination, filter="data")
                    names.append(member.name)
                    LOGGER.debug("Extracted %s", member.name)
        except tarfile.FilterError as exc:
            raise FormatError(f"Archive {archive_path} contains a disallowed member: {exc}") from exc
        except (tarfile.ReadError, tarfile.CompressionError, gzip.BadGzipFile, zlib.error, EOFError) as exc:
            raise FormatError(f"Archive {archive_path} is corrupt or truncated: {exc}") from exc
        except (OSError, tarfile.ExtractError) as exc:
            raise FilesystemError(f"Unable to extract {archive_path} into {destination}: {exc}") from exc

        LOGGER.info("Extracted %s member(s) from %s into %s", len(names), archive_path, destination)
        return names
