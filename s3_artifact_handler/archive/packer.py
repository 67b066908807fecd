"""Archive creation utilities."""

from __future__ import annotations

import logging
import os
import tarfile
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..exceptions import FilesystemError
from ..utils.progress import ProgressTracker

LOGGER = logging.getLogger(__name__)

DEFAULT_ARCHIVE_NAME = "export.tar.gz"
DEFAULT_COMPRESSION_LEVEL = 6
PARTIAL_SUFFIX = ".partial"


class ArchivePacker:
    """Writes a list of paths into a single gzip-compressed tar archive.

    Member names are the path strings exactly as given, and symlinks are
    stored as the files they point to. The archive only appears under its
    final name once every entry has been written and the gzip trailer is
    flushed, so a failed pack never leaves a usable-looking archive behind.
    """

    def __init__(
        self,
        archive_name: Union[str, Path] = DEFAULT_ARCHIVE_NAME,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        progress_tracker: Optional[ProgressTracker] = None,
    ) -> None:
        if not 0 <= int(compression_level) <= 9:
            raise ValueError("compression_level must be between 0 and 9.")
        self.archive_path = Path(archive_name)
        self.compression_level = int(compression_level)
        self.progress_tracker = progress_tracker or ProgressTracker("Packing", enabled=False)

    def pack(self, entries: Iterable[str]) -> Path:
        """Pack ``entries`` and return the path of the finished archive."""
        partial_path = self.archive_path.with_name(self.archive_path.name + PARTIAL_SUFFIX)
        entries = self._without_outputs(entries, partial_path)
        self._remove(self.archive_path)

        added = 0
        self.progress_tracker.start(len(entries))
        try:
            with tarfile.open(
                partial_path, "w:gz", compresslevel=self.compression_level, dereference=True
            ) as archive:
                for entry in entries:
                    if self._add_entry(archive, entry):
                        added += 1
                        self.progress_tracker.advance()
                    else:
                        self.progress_tracker.skip()
            os.replace(partial_path, self.archive_path)
        except (OSError, tarfile.TarError) as exc:
            self.progress_tracker.fail()
            self._discard(partial_path)
            if isinstance(exc, FilesystemError):
                raise
            raise FilesystemError(f"Unable to create archive {self.archive_path}: {exc}") from exc
        finally:
            self.progress_tracker.finish()

        if added == 0:
            LOGGER.warning("Archive %s is empty: no files were packed", self.archive_path)
        LOGGER.info("Packed %s file(s) into %s", added, self.archive_path)
        return self.archive_path

    def _add_entry(self, archive: tarfile.TarFile, entry: str) -> bool:
        path = os.fspath(entry)
        if os.path.isdir(path):
            LOGGER.debug("Skipping directory %s", path)
            return False
        try:
            archive.add(path, arcname=path, recursive=False)
        except OSError as exc:
            raise FilesystemError(f"Unable to add {path} to archive: {exc}") from exc
        LOGGER.debug("Added %s", path)
        return True

    def _without_outputs(self, entries: Iterable[str], partial_path: Path) -> List[str]:
        # The archive being written must never be read back into itself.
        outputs = {os.path.realpath(self.archive_path), os.path.realpath(partial_path)}
        kept = []
        for entry in entries:
            if os.path.realpath(entry) in outputs:
                LOGGER.debug("Skipping %s: it is the archive being written", entry)
                continue
            kept.append(entry)
        return kept

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            LOGGER.warning("Unable to remove partial archive %s: %s", path, exc)

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Unable to remove {path}: {exc}") from exc
