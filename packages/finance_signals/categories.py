"""Category label normalization.

Raw category labels arrive in whatever casing the aggregator or CSV export
used: ``FOOD_AND_DRINK``, ``Food and Drink``, ``food and drink``. Grouping by
the raw label would split one category into several, so every detector groups
by :func:`normalize_category` instead.
"""

from __future__ import annotations

import re

UNCATEGORIZED = "Uncategorized"

# Underscores (SNAKE_CASE labels) and runs of whitespace both separate words.
_WORD_SEP_RE = re.compile(r"[_\s]+")


def _title_word(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def normalize_category(raw: str | None) -> str:
    """Return the canonical Title Case label for ``raw``.

    - ``None``, blank strings and ``"Uncategorized"`` map to ``"Uncategorized"``.
    - ``"FOOD_AND_DRINK"`` -> ``"Food And Drink"``.
    - ``"  coffee   shops "`` -> ``"Coffee Shops"``.

    The transform is idempotent.
    """

    if raw is None:
        return UNCATEGORIZED
    s = raw.strip()
    if not s or s == UNCATEGORIZED:
        return UNCATEGORIZED
    words = [w for w in _WORD_SEP_RE.split(s) if w]
    if not words:
        # e.g. "___"
        return UNCATEGORIZED
    return " ".join(_title_word(w) for w in words)


__all__ = ["UNCATEGORIZED", "normalize_category"]
