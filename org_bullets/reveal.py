"""Hide the overlay under the cursor so the raw markup can be edited."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from org_bullets.host import InvalidRange, OverlaySnapshot, PaintSurface
from org_bullets.overlay_store import OverlayStore

LOGGER = logging.getLogger("org_bullets.Reveal")


@dataclass(frozen=True)
class RevealedLine:
    line: int
    snapshot: OverlaySnapshot


class CursorRevealController:
    """Keeps at most one line revealed: the one holding the cursor.

    A cursor move runs in three phases, in this order:

    1. if the tracked line changed, paint the hidden overlay back;
    2. track the new line, whether or not it is decorated;
    3. if the line changed and carries an overlay, hide it and remember it.
    """

    def __init__(
        self,
        store: OverlayStore,
        surface: PaintSurface,
        on_rejected: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._store = store
        self._surface = surface
        self._on_rejected = on_rejected
        self.last_line: Optional[int] = None
        self.revealed: Optional[RevealedLine] = None

    def on_cursor_moved(self, line: int) -> None:
        changed = self.last_line != line
        if changed:
            self._restore()
        self.last_line = line
        if changed:
            self._hide(line)

    def reconcile(self) -> None:
        """Hide the cursor line again after a resync repainted it."""

        if self.last_line is None:
            return
        if self.last_line in self._store:
            self._hide(self.last_line)

    def forget_lines(self, start: int, end: int) -> None:
        """Drop state that points into lines rewritten by an edit.

        The memento is discarded and a tracked cursor line inside the edit
        is pulled back to ``start``.
        """

        if self.last_line is not None and start <= self.last_line < end:
            self.last_line = start
        if self.revealed is not None and start <= self.revealed.line < end:
            LOGGER.debug("Dropping revealed overlay for edited line %d", self.revealed.line)
            self.revealed = None

    def shift(self, from_line: int, delta: int) -> None:
        if delta == 0:
            return
        if self.revealed is not None and self.revealed.line >= from_line:
            line = self.revealed.line + delta
            self.revealed = RevealedLine(line, self.revealed.snapshot.moved_to(line))
        if self.last_line is not None and self.last_line >= from_line:
            self.last_line = max(0, self.last_line + delta)

    def reset(self) -> None:
        self.revealed = None

    def _restore(self) -> None:
        revealed = self.revealed
        self.revealed = None
        if revealed is None:
            return
        snapshot = revealed.snapshot
        try:
            overlay_id = self._surface.paint(
                snapshot.line,
                snapshot.start_col,
                snapshot.end_col,
                snapshot.glyph,
                snapshot.highlight,
            )
        except InvalidRange as exc:
            if self._on_rejected is None:
                LOGGER.warning("Could not restore overlay on line %d: %s", snapshot.line, exc)
            else:
                self._on_rejected(str(exc))
            return
        previous = self._store.set(snapshot.line, overlay_id)
        if previous is not None and previous != overlay_id:
            self._surface.unpaint(previous)

    def _hide(self, line: int) -> None:
        overlay_id = self._store.get(line)
        if overlay_id is None:
            return
        snapshot = self._surface.get(overlay_id)
        self._surface.unpaint(overlay_id)
        self._store.pop(line)
        if snapshot is None:
            return
        self.revealed = RevealedLine(line, snapshot.moved_to(line))
