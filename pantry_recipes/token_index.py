"""
Inverted index from normalized token to record positions.

Lets pantry and use-now matching touch only recipes that share vocabulary with
the query instead of scanning the whole corpus.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List, Mapping, Sequence, Set

from .models import RecipeRecord


class TokenIndex:
    def __init__(self, buckets: Mapping[str, Sequence[int]] | None = None):
        self._buckets: Dict[str, tuple] = {token: tuple(positions) for token, positions in (buckets or {}).items()}

    @classmethod
    def build(cls, records: Sequence[RecipeRecord]) -> "TokenIndex":
        """
        Index each record under its effective tokens (NER tokens when present,
        text tokens otherwise). A record lands in a bucket at most once.
        """
        buckets: Dict[str, List[int]] = {}
        for position, record in enumerate(records):
            for token in dict.fromkeys(record.effective_tokens):
                if not token:
                    continue
                buckets.setdefault(token, []).append(position)
        return cls(buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def __contains__(self, token: object) -> bool:
        return token in self._buckets

    def positions(self, token: str) -> tuple:
        return self._buckets.get(token, ())

    def as_dict(self) -> Dict[str, List[int]]:
        return {token: list(positions) for token, positions in self._buckets.items()}

    def collect_candidates(self, tokens: Iterable[str]) -> Set[int]:
        """Union of the buckets of every query token."""
        candidates: Set[int] = set()
        for token in set(tokens):
            candidates.update(self._buckets.get(token, ()))
        return candidates

    def score_candidates(self, tokens: Iterable[str]) -> Dict[int, int]:
        """Number of distinct query tokens that hit each touched record."""
        hits: Counter = Counter()
        for token in set(tokens):
            hits.update(self._buckets.get(token, ()))
        return dict(hits)


__all__ = ["TokenIndex"]
