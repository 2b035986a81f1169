"""
Utility helpers: tokenizing, trigger-term lookup, list housekeeping.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Iterable, List, Optional

from ..intent_config import CONJUNCTION_SPLIT_PATTERN

MIN_KEYWORD_LENGTH = 3

_WS_RGX = re.compile(r"\s+")
_CONJUNCTION_RGX = re.compile(CONJUNCTION_SPLIT_PATTERN)


def normalize(text: str) -> str:
    """Lowercase and collapse whitespace."""
    return _WS_RGX.sub(" ", (text or "").lower()).strip()


def tokenize(text: str) -> List[str]:
    """Whitespace tokens of the lowercased text, in order, short ones kept."""
    return normalize(text).split()


def extract_keywords(text: str, min_length: int = MIN_KEYWORD_LENGTH) -> List[str]:
    """Scoring keywords; tokens shorter than `min_length` are too generic."""
    return [t for t in tokenize(text) if len(t) >= min_length]


def split_conjunctions(text: str) -> List[str]:
    """Split a comparison request into its subjects ("A và B", "A vs B")."""
    return [part.strip() for part in _CONJUNCTION_RGX.split(normalize(text)) if part.strip()]


@lru_cache(maxsize=256)
def _term_rgx(term: str) -> re.Pattern:
    return re.compile(rf"(?<!\w){re.escape(term)}(?!\w)")


def contains_term(text: str, term: str) -> bool:
    """Whole-word (or whole-phrase) containment on normalized text."""
    return _term_rgx(term).search(text) is not None


def contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(contains_term(text, t) for t in terms)


def text_after_first(text: str, terms: Iterable[str]) -> Optional[str]:
    """Remainder after the earliest occurring term, or None if none occurs."""
    best: Optional[re.Match] = None
    for term in terms:
        m = _term_rgx(term).search(text)
        if m and (best is None or m.start() < best.start()
                  or (m.start() == best.start() and m.end() > best.end())):
            best = m
    if best is None:
        return None
    return text[best.end():].strip()


def unique(seq: List[Any]) -> List[Any]:
    seen: set[Any] = set()
    out: List[Any] = []
    for x in seq:
        if x not in seen:
            seen.add(x)
            out.append(x)
    return out


def trim_history(history: List[Any], max_len: int) -> None:
    if max_len <= 0:
        return
    overflow = len(history) - max_len
    if overflow > 0:
        del history[:overflow]
