"""
Typo-tolerant title search.

The index is the list of normalized titles, scored with rapidfuzz so the
query matches anywhere in a title (see `title_match_ratio`). It is persisted next to
the dataset, tagged with the dataset signature, so a process restart against
an unchanged file reuses it instead of rebuilding.

When the index finds nothing, `fallback_search` scores every record by
per-token edit-distance similarity instead.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from .logging_utils import get_logger
from .models import RecipeRecord
from .text import normalize_token, token_similarity

logger = get_logger(__name__)

INDEX_KEYS = ("title",)
# Scores run from 0 (perfect) to 1; anything worse than this is not a match.
MATCH_THRESHOLD = 0.35

FALLBACK_MIN_SIMILARITY = 0.4
FALLBACK_GOOD_ENOUGH = 0.95
FALLBACK_TITLE_BONUS = 1.0

ScoredRecord = Tuple[RecipeRecord, float]


def title_match_ratio(query: str, title: str, **kwargs) -> float:
    """
    The query is always the needle: partial_ratio when it fits inside the title,
    a plain ratio when it is longer, so a short title buried in a long query
    does not count as a perfect hit.
    """
    if len(query) <= len(title):
        return fuzz.partial_ratio(query, title, **kwargs)
    return fuzz.ratio(query, title, **kwargs)


class FuzzySearchIndex:
    def __init__(self, records: Sequence[RecipeRecord], entries: Sequence[str]):
        if len(records) != len(entries):
            raise ValueError(f"Index has {len(entries)} entries for {len(records)} records.")
        self._records = records
        self._entries = list(entries)

    @classmethod
    def build(cls, records: Sequence[RecipeRecord]) -> "FuzzySearchIndex":
        return cls(records, [normalize_token(record.title) for record in records])

    @classmethod
    def from_json(cls, payload: Any, records: Sequence[RecipeRecord]) -> "FuzzySearchIndex":
        """Rehydrate a persisted index; raises ValueError when it does not fit `records`."""
        if not isinstance(payload, dict):
            raise ValueError("Persisted index is not an object.")
        if tuple(payload.get("keys") or ()) != INDEX_KEYS:
            raise ValueError(f"Persisted index keys {payload.get('keys')!r} do not match {INDEX_KEYS!r}.")
        entries = payload.get("records")
        if not isinstance(entries, list) or not all(isinstance(entry, str) for entry in entries):
            raise ValueError("Persisted index records are malformed.")
        return cls(records, entries)

    def to_json(self) -> Dict[str, Any]:
        return {"keys": list(INDEX_KEYS), "records": list(self._entries)}

    def __len__(self) -> int:
        return len(self._entries)

    def search(self, query: str, limit: int) -> List[ScoredRecord]:
        """
        Best matches first (score ascending, 0 = perfect); equal scores keep
        dataset order.
        """
        if not query or limit <= 0 or not self._entries:
            return []
        matches = process.extract(
            query,
            self._entries,
            scorer=title_match_ratio,
            score_cutoff=(1 - MATCH_THRESHOLD) * 100,
            limit=None,
        )
        ranked = sorted((1 - similarity / 100, position) for _, similarity, position in matches)
        return [(self._records[position], score) for score, position in ranked[:limit]]


def read_persisted_index(cache_path: Path, signature: str) -> Optional[Any]:
    try:
        parsed = json.loads(Path(cache_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("No usable search index cache at %s: %s", cache_path, exc)
        return None
    if isinstance(parsed, dict) and parsed.get("signature") == signature and parsed.get("index"):
        return parsed["index"]
    logger.debug("Search index cache at %s is stale", cache_path)
    return None


def persist_index(index: FuzzySearchIndex, signature: str, cache_path: Path) -> bool:
    """Write the index next to the dataset. Failure is logged, never raised."""
    cache_path = Path(cache_path)
    payload = {"signature": signature, "index": index.to_json()}
    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        cache_path.write_text(json.dumps(payload), encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("Could not persist search index to %s: %s", cache_path, exc)
        return False
    return True


def load_or_build(
    records: Sequence[RecipeRecord],
    signature: Optional[str],
    cache_path: Path,
) -> Optional[FuzzySearchIndex]:
    """
    Reuse the persisted index when its signature matches the dataset, otherwise
    build a fresh one and persist it. Without a signature nothing is persisted.
    """
    if not records:
        return None
    if not signature:
        return FuzzySearchIndex.build(records)

    persisted = read_persisted_index(cache_path, signature)
    if persisted is not None:
        try:
            index = FuzzySearchIndex.from_json(persisted, records)
        except ValueError as exc:
            logger.debug("Rebuilding search index: %s", exc)
        else:
            logger.info("Reusing search index from %s (%d titles)", cache_path, len(index))
            return index

    index = FuzzySearchIndex.build(records)
    logger.info("Built search index over %d titles", len(index))
    persist_index(index, signature, cache_path)
    return index


def score_record_tokens(record: RecipeRecord, query_tokens: Sequence[str]) -> float:
    score = 0.0
    for query_token in query_tokens:
        best = 0.0
        for token in record.tokens:
            similarity = token_similarity(query_token, token)
            if similarity > best:
                best = similarity
            if best >= FALLBACK_GOOD_ENOUGH:
                break
        if best > FALLBACK_MIN_SIMILARITY:
            score += best
    if query_tokens and query_tokens[0] in record.title.lower():
        score += FALLBACK_TITLE_BONUS
    return score


def fallback_search(records: Sequence[RecipeRecord], query_tokens: Sequence[str], limit: int) -> List[ScoredRecord]:
    """Manual edit-distance scan, highest score first; used when the index finds nothing."""
    if not query_tokens or limit <= 0:
        return []
    scored = [(record, score_record_tokens(record, query_tokens)) for record in records]
    scored = [entry for entry in scored if entry[1] > 0]
    scored.sort(key=lambda entry: entry[1], reverse=True)
    return scored[:limit]


__all__ = [
    "FuzzySearchIndex",
    "MATCH_THRESHOLD",
    "fallback_search",
    "load_or_build",
    "persist_index",
    "read_persisted_index",
]
