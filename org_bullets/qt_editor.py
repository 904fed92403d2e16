"""PyQt6 host: a plain text editor that paints bullet overlays over its text."""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from PyQt6.QtCore import QRect, QTimer, pyqtSignal
from PyQt6.QtGui import QColor, QPainter, QTextCursor, QTextDocument
from PyQt6.QtWidgets import QPlainTextEdit, QWidget

from org_bullets.engine import DecorationSession, initialize
from org_bullets.host import ChangeEvent, InvalidRange, OverlaySnapshot
from org_bullets.throttle import DEFAULT_INTERVAL_MS, ChangeThrottle

LOGGER = logging.getLogger("org_bullets.Qt")

HIGHLIGHT_COLORS: Dict[str, str] = {
    "HeadlineLevel1": "#51afef",
    "HeadlineLevel2": "#c678dd",
    "HeadlineLevel3": "#98be65",
    "HeadlineLevel4": "#da8548",
    "OrgDone": "#5b9a5b",
    "OrgListBullet": "#a9a1e1",
}
FALLBACK_COLOR = "#bbc2cf"


def highlight_color(highlight: str) -> QColor:
    color = QColor(HIGHLIGHT_COLORS.get(highlight, FALLBACK_COLOR))
    if not color.isValid():
        return QColor(FALLBACK_COLOR)
    return color


class QtDocumentBuffer:
    """Reads lines (blocks) from a ``QTextDocument``."""

    def __init__(self, document: QTextDocument) -> None:
        self._document = document

    def line_count(self) -> int:
        return self._document.blockCount()

    def read_lines(self, start: int, end: int) -> List[str]:
        end = min(end, self._document.blockCount())
        lines: List[str] = []
        block = self._document.findBlockByNumber(max(0, start))
        index = max(0, start)
        while block.isValid() and index < end:
            lines.append(block.text())
            block = block.next()
            index += 1
        return lines


@dataclass
class _QtOverlay:
    cursor: QTextCursor
    length: int
    glyph: str
    highlight: str

    def snapshot(self) -> OverlaySnapshot:
        start_col = self.cursor.positionInBlock()
        return OverlaySnapshot(self.cursor.blockNumber(), start_col, start_col + self.length, self.glyph, self.highlight)


class QtPaintSurface:
    """Overlays anchored with text cursors, so they travel with edits."""

    def __init__(self, editor: QPlainTextEdit) -> None:
        self._editor = editor
        self._overlays: Dict[int, _QtOverlay] = {}
        self._ids = itertools.count(1)

    def paint(self, line: int, start_col: int, end_col: int, glyph: str, highlight: str) -> int:
        document = self._editor.document()
        block = document.findBlockByNumber(line)
        if line < 0 or not block.isValid():
            raise InvalidRange(line, start_col, end_col, "line out of range")
        width = len(block.text())
        if start_col < 0 or end_col < start_col or end_col > width:
            raise InvalidRange(line, start_col, end_col, f"line has {width} columns")
        cursor = QTextCursor(document)
        cursor.setPosition(block.position() + start_col)
        overlay_id = next(self._ids)
        self._overlays[overlay_id] = _QtOverlay(cursor, end_col - start_col, glyph, highlight)
        self._editor.viewport().update()
        return overlay_id

    def unpaint(self, overlay_id: int) -> None:
        if self._overlays.pop(overlay_id, None) is not None:
            self._editor.viewport().update()

    def clear(self) -> None:
        self._overlays.clear()
        self._editor.viewport().update()

    def get(self, overlay_id: int) -> Optional[OverlaySnapshot]:
        overlay = self._overlays.get(overlay_id)
        if overlay is None:
            return None
        return overlay.snapshot()

    def snapshots(self) -> List[OverlaySnapshot]:
        return [overlay.snapshot() for overlay in self._overlays.values()]

    def __len__(self) -> int:
        return len(self._overlays)

    def draw(self, painter: QPainter, clip: QRect) -> None:
        """Paint every visible overlay that intersects ``clip`` (viewport coordinates)."""

        editor = self._editor
        metrics = editor.fontMetrics()
        background = editor.palette().base().color()
        painter.setFont(editor.font())
        for overlay in self._overlays.values():
            if not overlay.cursor.block().isVisible():
                continue
            start_rect = editor.cursorRect(overlay.cursor)
            end_cursor = QTextCursor(overlay.cursor)
            end_cursor.setPosition(overlay.cursor.position() + overlay.length)
            end_rect = editor.cursorRect(end_cursor)
            span_width = max(0, end_rect.left() - start_rect.left())
            width = max(span_width, metrics.horizontalAdvance(overlay.glyph))
            rect = QRect(start_rect.left(), start_rect.top(), width, max(start_rect.height(), metrics.height()))
            if not rect.intersects(clip):
                continue
            painter.fillRect(rect, background)
            painter.setPen(highlight_color(overlay.highlight))
            painter.drawText(rect.left(), rect.top() + metrics.ascent(), overlay.glyph)


def change_event_from_contents_change(
    document: QTextDocument,
    position: int,
    chars_removed: int,
    chars_added: int,
    previous_block_count: int,
) -> ChangeEvent:
    """Translate ``QTextDocument.contentsChange`` into a line range event."""

    first = document.findBlock(position).blockNumber()
    if first < 0:
        first = max(0, document.blockCount() - 1)
    if chars_removed == 0 and chars_added == 0:
        return ChangeEvent(first, first, first, 0)
    last_block = document.findBlock(position + chars_added).blockNumber()
    if last_block < 0:
        last_block = document.blockCount() - 1
    new_last = max(first, last_block) + 1
    line_delta = document.blockCount() - previous_block_count
    old_last = max(first, new_last - line_delta)
    return ChangeEvent(first, old_last, new_last, chars_added - chars_removed)


class OutlineEditor(QPlainTextEdit):
    """Plain text editor with org bullet overlays."""

    status_message = pyqtSignal(str)

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        parent: Optional[QWidget] = None,
        interval_ms: int = DEFAULT_INTERVAL_MS,
    ) -> None:
        super().__init__(parent)
        self._buffer = QtDocumentBuffer(self.document())
        self._surface = QtPaintSurface(self)
        self._session = initialize(self._buffer, self._surface, options, notify=self.status_message.emit)
        self._block_count = self.document().blockCount()
        self._cursor_moved_while_pending = False
        self._change_timer = QTimer(self)
        self._change_timer.setSingleShot(True)
        self._throttle = ChangeThrottle(self._apply_change, interval_ms)
        self._throttle.configure_timeout_hooks(
            arm_timeout=lambda ms: self._change_timer.start(ms),
            cancel_timeout=lambda: self._change_timer.stop(),
        )
        self._change_timer.timeout.connect(self._throttle.handle_timeout)
        self.document().contentsChange.connect(self._on_contents_change)
        self.cursorPositionChanged.connect(self._on_cursor_position_changed)

    @property
    def session(self) -> DecorationSession:
        return self._session

    @property
    def surface(self) -> QtPaintSurface:
        return self._surface

    @property
    def throttle(self) -> ChangeThrottle:
        return self._throttle

    def load_text(self, text: str) -> None:
        """Replace the whole document and decorate it from scratch."""

        self.setPlainText(text)
        self._throttle.cancel()
        self._cursor_moved_while_pending = False
        self._block_count = self.document().blockCount()
        self._session.resync_all()
        self._on_cursor_position_changed()
        LOGGER.debug("Loaded %d lines, %d decorated", self._block_count, len(self._session.store))

    def flush_pending_changes(self) -> None:
        self._throttle.flush_pending()

    def _apply_change(self, event: ChangeEvent) -> None:
        self._session.apply_change(event)
        if self._cursor_moved_while_pending:
            self._cursor_moved_while_pending = False
            self._sync_cursor_line()
        self.viewport().update()

    def _on_contents_change(self, position: int, chars_removed: int, chars_added: int) -> None:
        event = change_event_from_contents_change(
            self.document(), position, chars_removed, chars_added, self._block_count
        )
        self._block_count = self.document().blockCount()
        self._throttle.submit(event)

    def _on_cursor_position_changed(self) -> None:
        if self._session.reveal is None:
            return
        # Line numbers are stale until the pending edit lands; _apply_change replays the move.
        if self._throttle.pending is not None:
            self._cursor_moved_while_pending = True
            return
        self._sync_cursor_line()
        self.viewport().update()

    def _sync_cursor_line(self) -> None:
        cursor = self.textCursor()
        self._session.on_cursor_moved(cursor.blockNumber(), cursor.positionInBlock())

    def paintEvent(self, event) -> None:  # type: ignore[override]
        super().paintEvent(event)
        painter = QPainter(self.viewport())
        try:
            self._surface.draw(painter, event.rect())
        finally:
            painter.end()
