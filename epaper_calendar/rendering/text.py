"""Text helpers for the e-paper layout."""

from __future__ import annotations

import unicodedata

ELLIPSIS = "…"

# Combining marks (Mn, Me) and format characters such as ZWJ (Cf) occupy no
# column of their own; they belong to the preceding base character.
_ZERO_WIDTH_CATEGORIES = frozenset({"Mn", "Me", "Cf"})


def is_zero_width(char: str) -> bool:
    """Whether ``char`` attaches to the preceding character instead of taking a column."""
    return unicodedata.category(char) in _ZERO_WIDTH_CATEGORIES


def visible_length(text: str) -> int:
    """Number of base (non zero-width) characters in ``text``."""
    return sum(1 for char in text if not is_zero_width(char))


def truncate_text(text: str, limit: int) -> str:
    """Shorten ``text`` to ``limit`` visible characters plus an ellipsis.

    Strings that already fit are returned unchanged. Marks stay with their
    base character, so Thai vowel and tone marks are never split off.

    Examples:
        >>> truncate_text("Dentist", 32)
        'Dentist'
        >>> truncate_text("abcdef", 3)
        'abc…'
    """
    if limit < 0:
        raise ValueError("limit must be non-negative")
    if visible_length(text) <= limit:
        return text

    seen = 0
    for index, char in enumerate(text):
        if is_zero_width(char):
            continue
        if seen == limit:
            return text[:index] + ELLIPSIS
        seen += 1
    return text
