"""Configuration defaults and option merging for Org Bullets."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Tuple, TypeVar, Union

LOGGER = logging.getLogger("org_bullets.Config")

T = TypeVar("T")

DEFAULT_SYMBOLS: Tuple[str, ...] = ("◉", "○", "✸", "✿")
DEFAULT_BULLET_CHARS = "-+*"
DEFAULT_BULLET_SYMBOL = "•"

HEADLINE_MARKER = "*"
HEADLINE_HIGHLIGHT_PREFIX = "HeadlineLevel"
DONE_GLYPH = "✓"
PARTIAL_GLYPH = "~"
DONE_HIGHLIGHT = "OrgDone"
# Bullet characters outside the default three share this class.
LIST_BULLET_HIGHLIGHT = "OrgListBullet"
BULLET_HIGHLIGHTS: Dict[str, str] = {
    "-": HEADLINE_HIGHLIGHT_PREFIX + "1",
    "+": HEADLINE_HIGHLIGHT_PREFIX + "2",
    "*": HEADLINE_HIGHLIGHT_PREFIX + "3",
}


@dataclass(frozen=True)
class BulletsConfig:
    """Effective options for one decoration session."""

    show_current_line: bool = False
    symbols: Tuple[str, ...] = DEFAULT_SYMBOLS
    indent: bool = True
    bullet_chars: str = DEFAULT_BULLET_CHARS
    bullet_symbol: str = DEFAULT_BULLET_SYMBOL

    def headline_symbol(self, depth: int) -> Tuple[str, int]:
        """Return ``(glyph, level)`` for a headline of ``depth`` stars."""

        level = max(1, min(int(depth), len(self.symbols)))
        return self.symbols[level - 1], level

    def bullet_highlight(self, char: str) -> str:
        return BULLET_HIGHLIGHTS.get(char, LIST_BULLET_HIGHLIGHT)


@dataclass(frozen=True)
class Literal(Generic[T]):
    value: T

    def resolve(self, default: T) -> Optional[T]:
        return self.value


@dataclass(frozen=True)
class Derive(Generic[T]):
    """Option computed from its default by a user supplied function."""

    fn: Callable[[T], Optional[T]]

    def resolve(self, default: T) -> Optional[T]:
        return self.fn(default)


ConfigValue = Union[Literal[Any], Derive[Any]]


def as_config_value(value: Any) -> ConfigValue:
    if isinstance(value, (Literal, Derive)):
        return value
    if callable(value):
        return Derive(value)
    return Literal(value)


def _coerce_bool(value: Any, fallback: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        token = value.strip().lower()
        if token in {"1", "true", "yes", "on"}:
            return True
        if token in {"0", "false", "no", "off"}:
            return False
    return fallback


def _coerce_symbols(value: Any, fallback: Tuple[str, ...]) -> Tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        return fallback
    symbols = tuple(str(item) for item in value if isinstance(item, str) and item)
    return symbols or fallback


def _coerce_bullet_chars(value: Any, fallback: str) -> str:
    if isinstance(value, str):
        candidates = list(value)
    elif isinstance(value, (list, tuple, set, frozenset)):
        candidates = []
        for item in value:
            if isinstance(item, str) and len(item) == 1:
                candidates.append(item)
        if isinstance(value, (set, frozenset)):
            candidates.sort()
    else:
        return fallback
    seen: list[str] = []
    for char in candidates:
        if char.isspace() or char in seen:
            continue
        seen.append(char)
    return "".join(seen)


def _coerce_glyph(value: Any, fallback: str) -> str:
    if isinstance(value, str) and value:
        return value
    return fallback


# Returned by a coercer in place of a value it cannot use.
_INVALID = object()

_COERCERS: Dict[str, Callable[[Any, Any], Any]] = {
    "show_current_line": _coerce_bool,
    "symbols": _coerce_symbols,
    "indent": _coerce_bool,
    "bullet_chars": _coerce_bullet_chars,
    "bullet_symbol": _coerce_glyph,
}


def resolve_config(
    overrides: Optional[Mapping[str, Any]] = None,
    defaults: Optional[BulletsConfig] = None,
) -> BulletsConfig:
    """Merge user options over the defaults.

    User values win. A callable option receives the default and returns the
    effective value; returning ``None`` or raising keeps the default. Values
    of the wrong type are ignored with a warning, so this never fails.
    """

    base = defaults or BulletsConfig()
    if not overrides:
        return base
    resolved: Dict[str, Any] = {}
    known = {field.name for field in fields(BulletsConfig)}
    for key, raw in overrides.items():
        if key not in known:
            LOGGER.debug("Ignoring unknown option %r", key)
            continue
        if raw is None:
            continue
        default = getattr(base, key)
        option = as_config_value(raw)
        try:
            candidate = option.resolve(default)
        except Exception as exc:
            LOGGER.warning("Option %r transform failed (%s); using default", key, exc)
            continue
        if candidate is None:
            continue
        value = _COERCERS[key](candidate, _INVALID)
        if value is _INVALID:
            LOGGER.warning("Ignoring invalid value for option %r: %r", key, candidate)
            continue
        resolved[key] = value
    if not resolved:
        return base
    merged = {field.name: getattr(base, field.name) for field in fields(BulletsConfig)}
    merged.update(resolved)
    return BulletsConfig(**merged)


def load_config_file(path: Path) -> Dict[str, Any]:
    """Read options from a JSON file; a missing or malformed file yields ``{}``."""

    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        LOGGER.debug("Options file not found at %s; using defaults", path)
        return {}
    except OSError as exc:
        LOGGER.warning("Failed to read options file %s: %s", path, exc)
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        LOGGER.warning("Failed to parse %s; using defaults (%s)", path, exc)
        return {}
    if not isinstance(data, dict):
        LOGGER.warning("Options file %s is not a JSON object; using defaults", path)
        return {}
    return data
