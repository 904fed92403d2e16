"""Decorative bullet overlays for org-style outline buffers."""
from __future__ import annotations

from org_bullets.config import BulletsConfig, Derive, Literal, load_config_file, resolve_config
from org_bullets.engine import DecorationSession, initialize
from org_bullets.host import ChangeEvent, InvalidRange, OverlaySnapshot
from org_bullets.memory_host import MemoryBuffer, MemoryPaintSurface
from org_bullets.overlay_store import OverlayStore
from org_bullets.throttle import ChangeThrottle

__all__ = [
    "BulletsConfig",
    "ChangeEvent",
    "ChangeThrottle",
    "DecorationSession",
    "Derive",
    "InvalidRange",
    "Literal",
    "MemoryBuffer",
    "MemoryPaintSurface",
    "OverlaySnapshot",
    "OverlayStore",
    "initialize",
    "load_config_file",
    "resolve_config",
]
