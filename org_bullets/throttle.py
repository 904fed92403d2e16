"""Coalesce bursts of buffer change events into one resync."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from org_bullets.host import ChangeEvent

LOGGER = logging.getLogger("org_bullets.Throttle")

DEFAULT_INTERVAL_MS = 50


class ChangeThrottle:
    """Collects change events and hands a merged event to ``on_flush``.

    The first event of a burst arms a timeout through the hooks installed with
    :meth:`configure_timeout_hooks`; every event arriving before it fires is
    merged into the pending one. Without hooks, events are delivered at once.
    """

    def __init__(
        self,
        on_flush: Callable[[ChangeEvent], None],
        interval_ms: int = DEFAULT_INTERVAL_MS,
    ) -> None:
        self._on_flush = on_flush
        self._interval_ms = max(0, int(interval_ms))
        self._pending: Optional[ChangeEvent] = None
        self._pending_count = 0
        self._arm_timeout: Optional[Callable[[int], None]] = None
        self._cancel_timeout: Optional[Callable[[], None]] = None
        self._armed = False

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def pending(self) -> Optional[ChangeEvent]:
        return self._pending

    def configure_timeout_hooks(
        self,
        arm_timeout: Callable[[int], None],
        cancel_timeout: Callable[[], None],
    ) -> None:
        self._arm_timeout = arm_timeout
        self._cancel_timeout = cancel_timeout

    def submit(self, event: ChangeEvent) -> None:
        if event.is_noop():
            return
        if self._pending is None:
            self._pending = event
        else:
            self._pending = self._pending.merge(event)
        self._pending_count += 1
        if self._arm_timeout is None or self._interval_ms == 0:
            self.flush_pending()
            return
        if not self._armed:
            self._armed = True
            self._arm_timeout(self._interval_ms)

    def handle_timeout(self) -> None:
        self._armed = False
        self.flush_pending()

    def flush_pending(self) -> None:
        """Deliver the merged pending event now, if there is one."""

        if self._armed and self._cancel_timeout is not None:
            self._cancel_timeout()
        self._armed = False
        event = self._pending
        count = self._pending_count
        self._pending = None
        self._pending_count = 0
        if event is None:
            return
        if count > 1:
            LOGGER.debug("Coalesced %d change events into lines %d..%d", count, event.first_line, event.new_last_line)
        self._on_flush(event)

    def cancel(self) -> None:
        if self._armed and self._cancel_timeout is not None:
            self._cancel_timeout()
        self._armed = False
        self._pending = None
        self._pending_count = 0
