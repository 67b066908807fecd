"""Progress tracking utilities."""

from __future__ import annotations

from typing import Optional

from tqdm import tqdm


class ProgressTracker:
    """Counts processed items and mirrors them onto a tqdm bar when enabled."""

    def __init__(self, description: str = "Processing", unit: str = "file", enabled: bool = True) -> None:
        self.description = description
        self.unit = unit
        self.enabled = enabled
        self.total = 0
        self.completed = 0
        self.failed = 0
        self.skipped = 0
        self._bar: Optional[tqdm] = None

    def start(self, total: int) -> None:
        self.total = total
        self.completed = 0
        self.failed = 0
        self.skipped = 0
        if self.enabled:
            self._bar = tqdm(total=total, desc=self.description, unit=self.unit, leave=False)

    def advance(self) -> None:
        self.completed += 1
        self._advance_bar()

    def skip(self) -> None:
        self.skipped += 1
        self._advance_bar()

    def fail(self) -> None:
        self.failed += 1
        self._advance_bar()

    def finish(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    def _advance_bar(self) -> None:
        if self._bar is not None:
            self._bar.update(1)
