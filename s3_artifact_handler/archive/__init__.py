"""Local archive helpers: pattern expansion, packing and unpacking."""

from .expander import PathExpander
from .packer import ArchivePacker
from .unpacker import ArchiveUnpacker

__all__ = ["PathExpander", "ArchivePacker", "ArchiveUnpacker"]
