"""Path pattern expansion."""

from __future__ import annotations

import glob
import logging
import os
from typing import Iterable, List, Set

from ..exceptions import FilesystemError, PatternError

LOGGER = logging.getLogger(__name__)

RECURSIVE_SUFFIX = "**/*"


class PathExpander:
    """Turns user supplied path patterns into a concrete list of paths."""

    def expand(self, patterns: Iterable[str]) -> List[str]:
        """Return matches for all patterns, in pattern order, without duplicates."""
        seen: Set[str] = set()
        result: List[str] = []
        for pattern in patterns:
            for path in self.expand_pattern(pattern):
                if path in seen:
                    continue
                seen.add(path)
                result.append(path)
        LOGGER.debug("Expanded patterns into %s path(s)", len(result))
        return result

    def expand_pattern(self, pattern: str) -> List[str]:
        """Return the sorted matches of a single pattern."""
        pattern = os.fspath(pattern)
        if self.is_recursive(pattern):
            pattern = pattern + RECURSIVE_SUFFIX
        self.validate(pattern)

        matches = sorted(glob.glob(pattern, recursive=True, include_hidden=True))
        for path in matches:
            try:
                os.stat(path)
            except OSError as exc:
                raise FilesystemError(f"Unable to stat {path} matched by '{pattern}': {exc}") from exc
        if not matches:
            LOGGER.warning("Pattern '%s' did not match any path", pattern)
        return matches

    @staticmethod
    def is_recursive(pattern: str) -> bool:
        separators = tuple(sep for sep in ("/", os.sep, os.altsep) if sep)
        return pattern.endswith(separators)

    @staticmethod
    def validate(pattern: str) -> None:
        """Raise PatternError when the pattern cannot be interpreted."""
        if not pattern:
            raise PatternError("Path pattern must not be empty.")

        components = pattern.replace(os.sep, "/").split("/")
        for component in components:
            if "**" in component and component != "**":
                raise PatternError(
                    f"Invalid pattern '{pattern}': recursive wildcards must form a single path component."
                )

        index = 0
        while index < len(pattern):
            if pattern[index] == "[":
                # A "]" right after "[" or "[!" is a member, not the end of the class.
                start = index + 1
                if pattern[start:start + 1] in ("!", "^"):
                    start += 1
                closing = pattern.find("]", start + 1)
                if closing == -1:
                    raise PatternError(f"Invalid pattern '{pattern}': unterminated character class at {index}.")
                index = closing
            index += 1
