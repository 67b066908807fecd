"""Pack local files into an archive and move it through an S3-compatible bucket."""

from .exceptions import (
    ArtifactHandlerError,
    FilesystemError,
    FormatError,
    PatternError,
    StoreError,
)
from .main import ArtifactHandler, generate_object_key

__all__ = [
    "ArtifactHandler",
    "generate_object_key",
    "ArtifactHandlerError",
    "FilesystemError",
    "FormatError",
    "PatternError",
    "StoreError",
]

__version__ = "1.0.0"
