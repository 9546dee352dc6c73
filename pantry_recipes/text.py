"""
Text normalization used everywhere a recipe is matched against a pantry or a query.
"""

from __future__ import annotations

import re
from typing import Iterable, List

from rapidfuzz.distance import Levenshtein

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_token(value: str | None) -> str:
    """Lowercase, collapse every run outside [a-z0-9] to a single space, trim."""
    if not value:
        return ""
    return _NON_ALNUM.sub(" ", value.lower()).strip()


def normalize_tokens(values: Iterable[object]) -> List[str]:
    """Normalize raw tokens, dropping empties and repeats (first occurrence wins)."""
    seen: dict[str, None] = {}
    for value in values:
        if value is None:
            continue
        token = normalize_token(value if isinstance(value, str) else str(value))
        if token:
            seen.setdefault(token, None)
    return list(seen)


def tokenize_text(text: str) -> List[str]:
    return normalize_tokens(text.split())


def token_similarity(a: str, b: str) -> float:
    """1 - edit distance / longer length; 1.0 for identical tokens."""
    if a == b:
        return 1.0
    return Levenshtein.normalized_similarity(a, b)


__all__ = ["normalize_token", "normalize_tokens", "token_similarity", "tokenize_text"]
