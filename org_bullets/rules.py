"""Line classification rules: which prefix gets which glyph."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from org_bullets.config import (
    DONE_GLYPH,
    DONE_HIGHLIGHT,
    HEADLINE_HIGHLIGHT_PREFIX,
    HEADLINE_MARKER,
    PARTIAL_GLYPH,
    BulletsConfig,
)
from org_bullets.padding import pad

# Handlers receive the text of the ``span`` group and return (glyph, highlight).
Handler = Callable[[str, BulletsConfig], Tuple[str, str]]


@dataclass(frozen=True)
class Rule:
    name: str
    pattern: "re.Pattern[str]"
    handler: Handler


@dataclass(frozen=True)
class Classification:
    rule: str
    start_col: int
    end_col: int
    glyph: str
    highlight: str


def _headline(text: str, config: BulletsConfig) -> Tuple[str, str]:
    depth = len(text)
    symbol, level = config.headline_symbol(depth)
    return pad(symbol, depth, config.indent), f"{HEADLINE_HIGHLIGHT_PREFIX}{level}"


def _done(_text: str, _config: BulletsConfig) -> Tuple[str, str]:
    return DONE_GLYPH, DONE_HIGHLIGHT


def _partial(_text: str, _config: BulletsConfig) -> Tuple[str, str]:
    return PARTIAL_GLYPH, DONE_HIGHLIGHT


def _list_bullet(text: str, config: BulletsConfig) -> Tuple[str, str]:
    symbol = pad(config.bullet_symbol, len(text) - 1, False)
    return symbol, config.bullet_highlight(text[:1])


def _item_prefix(bullet_chars: str) -> str:
    numbered = r"\d+[.)]"
    if not bullet_chars:
        return numbered
    return rf"(?:[{re.escape(bullet_chars)}]|{numbered})"


def build_rules(config: BulletsConfig) -> Tuple[Rule, ...]:
    """Rules in evaluation order; the first match wins."""

    item = _item_prefix(config.bullet_chars)
    rules = [
        Rule("headline", re.compile(rf"^(?P<span>{re.escape(HEADLINE_MARKER)}+)(?=\s)"), _headline),
        Rule("checkbox_done", re.compile(rf"^\s*{item}\s\[(?P<span>[xX])\]"), _done),
        Rule("checkbox_partial", re.compile(rf"^\s*{item}\s\[(?P<span>-)\]"), _partial),
    ]
    if config.bullet_chars:
        rules.append(
            Rule(
                "list_bullet",
                re.compile(rf"^\s*(?P<span>[{re.escape(config.bullet_chars)}]\s)"),
                _list_bullet,
            )
        )
    return tuple(rules)


def classify(line: str, rules: Sequence[Rule], config: BulletsConfig) -> Optional[Classification]:
    for rule in rules:
        match = rule.pattern.match(line)
        if match is None:
            continue
        start_col, end_col = match.span("span")
        glyph, highlight = rule.handler(match.group("span"), config)
        return Classification(rule.name, start_col, end_col, glyph, highlight)
    return None
