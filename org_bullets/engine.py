"""Incremental line decoration: keeps overlays in step with buffer text."""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from org_bullets.config import BulletsConfig, resolve_config
from org_bullets.host import BufferSource, ChangeEvent, InvalidRange, PaintSurface
from org_bullets.overlay_store import OverlayStore
from org_bullets.reveal import CursorRevealController
from org_bullets.rules import Classification, build_rules, classify

LOGGER = logging.getLogger("org_bullets.Engine")

Notify = Callable[[str], None]


class DecorationSession:
    """Owns the rules, options and overlay bookkeeping for one buffer.

    All methods run to completion on the caller's thread; the host delivers
    change and cursor events one at a time, changes first.
    """

    def __init__(
        self,
        buffer: BufferSource,
        surface: PaintSurface,
        config: Optional[BulletsConfig] = None,
        notify: Optional[Notify] = None,
    ) -> None:
        self.buffer = buffer
        self.surface = surface
        self.config = config or BulletsConfig()
        self.rules = build_rules(self.config)
        self.store = OverlayStore()
        self._notify = notify
        self.reveal: Optional[CursorRevealController] = None
        if self.config.show_current_line:
            self.reveal = CursorRevealController(self.store, self.surface, on_rejected=self._report)

    def classify(self, text: str) -> Optional[Classification]:
        return classify(text, self.rules, self.config)

    def decorate_line(self, line: int, text: str) -> Optional[int]:
        """Paint the overlay for ``text`` on ``line``; returns the new id.

        A line that matches no rule is left alone. A rejected paint is
        reported and leaves the line undecorated.
        """

        result = self.classify(text)
        if result is None:
            return None
        try:
            overlay_id = self.surface.paint(line, result.start_col, result.end_col, result.glyph, result.highlight)
        except InvalidRange as exc:
            stale = self.store.pop(line)
            if stale is not None:
                self.surface.unpaint(stale)
            self._report(str(exc))
            return None
        previous = self.store.set(line, overlay_id)
        if previous is not None and previous != overlay_id:
            self.surface.unpaint(previous)
        return overlay_id

    def resync_all(self) -> None:
        self.store.clear()
        self.surface.clear()
        if self.reveal is not None:
            self.reveal.reset()
        lines = self.buffer.read_lines(0, self.buffer.line_count())
        for line, text in enumerate(lines):
            self.decorate_line(line, text)
        LOGGER.debug("Full resync decorated %d of %d lines", len(self.store), len(lines))
        if self.reveal is not None:
            self.reveal.reconcile()

    def resync_range(self, first_line: int, old_last_line: int, new_last_line: int, byte_delta: Optional[int] = None) -> None:
        """Re-decorate lines ``[first_line, new_last_line)`` after an edit.

        The edit replaced the old lines ``[first_line, old_last_line)``.
        Overlays recorded for the replaced lines are removed first and the
        entries for later lines are renumbered by the change in line count.
        Without ``byte_delta`` an empty range is still treated as a change.
        """

        if byte_delta is not None and ChangeEvent(first_line, old_last_line, new_last_line, byte_delta).is_noop():
            return
        first_line = max(0, first_line)
        old_last_line = max(first_line, old_last_line)
        new_last_line = max(first_line, new_last_line)
        for overlay_id in self.store.pop_range(first_line, old_last_line):
            self.surface.unpaint(overlay_id)
        delta = new_last_line - old_last_line
        self.store.shift(old_last_line, delta)
        if self.reveal is not None:
            self.reveal.forget_lines(first_line, old_last_line)
            self.reveal.shift(old_last_line, delta)
        line_count = self.buffer.line_count()
        for overlay_id in self.store.prune(line_count):
            self.surface.unpaint(overlay_id)
        end = min(new_last_line, line_count)
        lines = self.buffer.read_lines(first_line, end) if end > first_line else []
        for offset, text in enumerate(lines):
            self.decorate_line(first_line + offset, text)
        if self.reveal is not None:
            self.reveal.reconcile()

    def apply_change(self, event: ChangeEvent) -> None:
        self.resync_range(event.first_line, event.old_last_line, event.new_last_line, event.byte_delta)

    def on_cursor_moved(self, line: int, column: int = 0) -> None:
        if self.reveal is None:
            return
        self.reveal.on_cursor_moved(line)

    def _report(self, message: str) -> None:
        LOGGER.warning("%s", message)
        if self._notify is None:
            return
        try:
            self._notify(message)
        except Exception as exc:
            LOGGER.debug("Message sink failed: %s", exc)


def initialize(
    buffer: BufferSource,
    surface: PaintSurface,
    options: Optional[Mapping[str, Any]] = None,
    notify: Optional[Notify] = None,
) -> DecorationSession:
    """Merge ``options`` with the defaults, build a session and decorate the buffer."""

    config = resolve_config(options)
    session = DecorationSession(buffer, surface, config, notify=notify)
    LOGGER.debug(
        "Session configured: symbols=%s bullets=%r show_current_line=%s indent=%s",
        "".join(config.symbols),
        config.bullet_chars,
        config.show_current_line,
        config.indent,
    )
    session.resync_all()
    return session
