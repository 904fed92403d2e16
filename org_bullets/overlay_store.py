"""Line index -> overlay id bookkeeping."""
from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple


class OverlayStore:
    """Tracks which overlay id is painted on each line.

    Holds at most one id per line. Callers pair every removal from the paint
    surface with a removal here.
    """

    def __init__(self) -> None:
        self._marks: Dict[int, int] = {}

    def set(self, line: int, overlay_id: int) -> Optional[int]:
        """Record ``overlay_id`` for ``line`` and return the id it replaced."""

        previous = self._marks.get(line)
        self._marks[line] = overlay_id
        return previous

    def get(self, line: int) -> Optional[int]:
        return self._marks.get(line)

    def pop(self, line: int) -> Optional[int]:
        return self._marks.pop(line, None)

    def clear(self) -> None:
        self._marks.clear()

    def lines(self) -> List[int]:
        return sorted(self._marks)

    def items(self) -> List[Tuple[int, int]]:
        return sorted(self._marks.items())

    def snapshot(self) -> Dict[int, int]:
        return dict(self._marks)

    def pop_range(self, start: int, end: int) -> List[int]:
        """Forget every line in ``[start, end)``; returns the removed ids."""

        removed: List[int] = []
        for line in [line for line in self._marks if start <= line < end]:
            removed.append(self._marks.pop(line))
        return removed

    def shift(self, from_line: int, delta: int) -> None:
        """Renumber entries at or after ``from_line`` by ``delta`` lines."""

        if delta == 0:
            return
        moved = {line: overlay_id for line, overlay_id in self._marks.items() if line >= from_line}
        for line in moved:
            del self._marks[line]
        for line, overlay_id in moved.items():
            target = line + delta
            if target < 0:
                continue
            self._marks[target] = overlay_id

    def prune(self, line_count: int) -> List[int]:
        """Drop entries for lines that no longer exist; returns their ids."""

        return self.pop_range(max(0, line_count), max([line_count, *self._marks]) + 1)

    def __contains__(self, line: object) -> bool:
        return line in self._marks

    def __iter__(self) -> Iterator[int]:
        return iter(self.lines())

    def __len__(self) -> int:
        return len(self._marks)
