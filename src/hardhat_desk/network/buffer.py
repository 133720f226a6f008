"""Bounded line buffer for long-running process output."""

from __future__ import annotations

from collections import deque
from typing import Optional


class OutputBuffer:
    """Ring of the most recent output lines.

    ``cursor`` counts every line ever appended, so followers can ask for the
    lines they have not seen yet even after older ones were evicted.
    """

    def __init__(self, max_lines: int) -> None:
        self._lines: deque[str] = deque(maxlen=max_lines)
        self._total = 0

    def append(self, line: str) -> None:
        self._lines.append(line)
        self._total += 1

    @property
    def cursor(self) -> int:
        return self._total

    def lines(self, limit: Optional[int] = None) -> list[str]:
        if limit is None or limit >= len(self._lines):
            return list(self._lines)
        return list(self._lines)[-limit:] if limit > 0 else []

    def since(self, cursor: int) -> tuple[list[str], int]:
        """Lines appended after ``cursor`` that are still buffered."""
        missing = self._total - cursor
        if missing <= 0:
            return [], self._total
        return self.lines(missing), self._total

    def __len__(self) -> int:
        return len(self._lines)
