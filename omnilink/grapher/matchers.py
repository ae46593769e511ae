"""Text matchers used to detect code references between symbols.

Every matcher is a plain ``(needle, haystack) -> bool`` callable so the
heuristics can later be swapped for real identifier resolution without
touching graph assembly.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Callable

TextMatcher = Callable[[str, str], bool]


@lru_cache(maxsize=1024)
def _word_pattern(needle: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(needle)}\b")


def whole_word_match(needle: str, haystack: str) -> bool:
    """Return True when ``needle`` appears in ``haystack`` on word boundaries."""
    if not needle or not haystack:
        return False
    return _word_pattern(needle).search(haystack) is not None


def substring_match(needle: str, haystack: str) -> bool:
    """Return True when ``needle`` appears literally inside ``haystack``."""
    if not needle or not haystack:
        return False
    return needle in haystack


__all__ = ["TextMatcher", "substring_match", "whole_word_match"]
