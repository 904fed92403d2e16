"""Headless host: a list-of-lines buffer and an overlay surface kept in memory."""
from __future__ import annotations

import itertools
from typing import Callable, Dict, List, Optional, Sequence

from org_bullets.host import ChangeEvent, InvalidRange, OverlaySnapshot

ChangeListener = Callable[[ChangeEvent], None]


class MemoryBuffer:
    def __init__(self, lines: Optional[Sequence[str]] = None) -> None:
        self._lines: List[str] = list(lines or [])
        self._listeners: List[ChangeListener] = []

    @classmethod
    def from_text(cls, text: str) -> "MemoryBuffer":
        return cls(text.split("\n"))

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def line_count(self) -> int:
        return len(self._lines)

    def read_lines(self, start: int, end: int) -> List[str]:
        start = max(0, start)
        end = len(self._lines) if end < 0 else min(end, len(self._lines))
        return list(self._lines[start:end])

    def line(self, index: int) -> str:
        return self._lines[index]

    def replace_lines(self, first: int, old_last: int, new_lines: Sequence[str]) -> ChangeEvent:
        """Replace ``[first, old_last)`` with ``new_lines`` and notify listeners."""

        first = max(0, min(first, len(self._lines)))
        old_last = max(first, min(old_last, len(self._lines)))
        removed = self._lines[first:old_last]
        self._lines[first:old_last] = list(new_lines)
        byte_delta = sum(len(line.encode("utf-8")) + 1 for line in new_lines) - sum(
            len(line.encode("utf-8")) + 1 for line in removed
        )
        event = ChangeEvent(first, old_last, first + len(new_lines), byte_delta)
        for listener in list(self._listeners):
            listener(event)
        return event

    def set_line(self, index: int, text: str) -> ChangeEvent:
        return self.replace_lines(index, index + 1, [text])


class MemoryPaintSurface:
    """Overlay surface that follows buffer edits the way editor marks do.

    Overlays on lines after an edit move with their text; overlays on lines
    that the edit replaced are dropped.
    """

    def __init__(self, buffer: MemoryBuffer) -> None:
        self._buffer = buffer
        self._overlays: Dict[int, OverlaySnapshot] = {}
        self._ids = itertools.count(1)
        self.paint_calls = 0
        self.unpaint_calls = 0
        self.clear_calls = 0
        buffer.add_listener(self._on_buffer_change)

    def paint(self, line: int, start_col: int, end_col: int, glyph: str, highlight: str) -> int:
        self.paint_calls += 1
        if line < 0 or line >= self._buffer.line_count():
            raise InvalidRange(line, start_col, end_col, "line out of range")
        width = len(self._buffer.line(line))
        if start_col < 0 or end_col < start_col or end_col > width:
            raise InvalidRange(line, start_col, end_col, f"line has {width} columns")
        overlay_id = next(self._ids)
        self._overlays[overlay_id] = OverlaySnapshot(line, start_col, end_col, glyph, highlight)
        return overlay_id

    def unpaint(self, overlay_id: int) -> None:
        self.unpaint_calls += 1
        self._overlays.pop(overlay_id, None)

    def clear(self) -> None:
        self.clear_calls += 1
        self._overlays.clear()

    def get(self, overlay_id: int) -> Optional[OverlaySnapshot]:
        return self._overlays.get(overlay_id)

    def overlays(self) -> Dict[int, OverlaySnapshot]:
        return dict(self._overlays)

    def overlays_on(self, line: int) -> List[OverlaySnapshot]:
        return [snapshot for snapshot in self._overlays.values() if snapshot.line == line]

    def reset_counters(self) -> None:
        self.paint_calls = 0
        self.unpaint_calls = 0
        self.clear_calls = 0

    def render_line(self, line: int) -> str:
        """Return the line as displayed, with overlay glyphs drawn over it."""

        cells = list(self._buffer.line(line))
        for snapshot in sorted(self.overlays_on(line), key=lambda item: item.start_col):
            for offset, char in enumerate(snapshot.glyph):
                column = snapshot.start_col + offset
                if column < len(cells):
                    cells[column] = char
                else:
                    cells.append(char)
        return "".join(cells)

    def _on_buffer_change(self, event: ChangeEvent) -> None:
        delta = event.line_delta
        for overlay_id, snapshot in list(self._overlays.items()):
            if event.first_line <= snapshot.line < event.old_last_line:
                del self._overlays[overlay_id]
            elif snapshot.line >= event.old_last_line and delta:
                self._overlays[overlay_id] = snapshot.moved_to(snapshot.line + delta)
