"""Custom exception definitions for the S3 Artifact Handler."""

from typing import Optional


class ArtifactHandlerError(Exception):
    """Base exception for the package."""


class ConfigurationError(ArtifactHandlerError):
    """Raised when configuration loading fails."""


class ValidationError(ArtifactHandlerError):
    """Raised when configuration validation fails."""


class PatternError(ArtifactHandlerError):
    """Raised when a path pattern is syntactically invalid."""


class FilesystemError(ArtifactHandlerError, OSError):
    """Raised when a local file cannot be stat'ed, read or written."""


class FormatError(ArtifactHandlerError):
    """Raised when an archive is truncated, corrupt or holds a malformed member."""


class StoreError(ArtifactHandlerError):
    """Raised when the object store rejects a request or answers unexpectedly."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
