"""Whitespace padding so a glyph covers the same width as the text it hides."""
from __future__ import annotations


def pad(glyph: str, width: int, in_front: bool) -> str:
    """Pad ``glyph`` with spaces.

    In front: ``width - 1`` spaces then the glyph, so the result is as wide as
    ``width`` replaced characters. Behind: the glyph then ``width`` spaces.
    Negative counts collapse to no padding.
    """

    try:
        width = int(width)
    except (TypeError, ValueError):
        width = 0
    if in_front:
        return " " * max(0, width - 1) + glyph
    return glyph + " " * max(0, width)
