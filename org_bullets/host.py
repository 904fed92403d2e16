"""Interfaces the decoration engine expects from its host editor."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol


class InvalidRange(ValueError):
    """Raised by a paint surface when a column span does not fit its line."""

    def __init__(self, line: int, start_col: int, end_col: int, reason: str = "") -> None:
        self.line = line
        self.start_col = start_col
        self.end_col = end_col
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Invalid overlay range line={line} cols={start_col}..{end_col}{detail}")


@dataclass(frozen=True)
class OverlaySnapshot:
    """Everything needed to paint an overlay again."""

    line: int
    start_col: int
    end_col: int
    glyph: str
    highlight: str

    def moved_to(self, line: int) -> "OverlaySnapshot":
        return OverlaySnapshot(line, self.start_col, self.end_col, self.glyph, self.highlight)


@dataclass(frozen=True)
class ChangeEvent:
    """Lines ``[first_line, old_last_line)`` were replaced by ``[first_line, new_last_line)``."""

    first_line: int
    old_last_line: int
    new_last_line: int
    byte_delta: int = 0

    @property
    def line_delta(self) -> int:
        return self.new_last_line - self.old_last_line

    def is_noop(self) -> bool:
        # Undo fires the change feed twice; the second report carries nothing.
        return (
            self.first_line == self.old_last_line == self.new_last_line
            and self.byte_delta == 0
        )

    def merge(self, later: "ChangeEvent") -> "ChangeEvent":
        """Combine with an event that happened after this one.

        The result describes both edits as one replacement, in the line
        numbers before this event and after ``later``.
        """

        first = min(self.first_line, later.first_line)
        old_last = self.old_last_line + max(0, later.old_last_line - self.new_last_line)
        new_last = later.new_last_line + max(0, self.new_last_line - later.old_last_line)
        return ChangeEvent(first, max(first, old_last), max(first, new_last), self.byte_delta + later.byte_delta)


class BufferSource(Protocol):
    def line_count(self) -> int:
        ...

    def read_lines(self, start: int, end: int) -> List[str]:
        ...


class PaintSurface(Protocol):
    def paint(self, line: int, start_col: int, end_col: int, glyph: str, highlight: str) -> int:
        """Place an overlay and return its id; raises :class:`InvalidRange`."""
        ...

    def unpaint(self, overlay_id: int) -> None:
        """Remove an overlay; unknown ids are ignored."""
        ...

    def clear(self) -> None:
        ...

    def get(self, overlay_id: int) -> Optional[OverlaySnapshot]:
        ...
