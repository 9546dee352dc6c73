"""
Recommendation and search rails over the open recipe dataset.

Rails:
1. Random picks ("Chef's inspiration")
2. Best pantry matches: fraction of a recipe's vocabulary the pantry already covers
3. Use-it-now: recipes sharing the most tokens with risky / use-now items
4. Free-text search: fuzzy title index, edit-distance scan as a fallback

Every rail degrades to an empty list when no dataset is available.
"""

from __future__ import annotations

import json
import random
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set

from pydantic import ValidationError

from .logging_utils import get_logger
from .models import (
    URGENT_RISK_LEVELS,
    PantryCoverage,
    PantryItem,
    Recipe,
    RecipeOverview,
    RecipeRecord,
)
from .search_index import fallback_search
from .store import RecipeStore
from .text import normalize_token

logger = get_logger(__name__)

DEFAULT_SEARCH_LIMIT = 10
FEATURED_COUNT = 10
RAIL_COUNT = 4


def build_pantry_token_set(items: Iterable[PantryItem]) -> Set[str]:
    return {token for token in (normalize_token(item.name) for item in items) if token}


def _ranking_key(entry: tuple) -> tuple:
    record, score = entry
    return (-score, record.time_min or 0)


def get_random_recipes(store: RecipeStore, count: int, rng: Optional[random.Random] = None) -> List[Recipe]:
    records = store.records()
    if not records or count <= 0:
        return []
    shuffled = list(records)
    (rng or random).shuffle(shuffled)
    return [record.to_public() for record in shuffled[:count]]


def score_recipe_for_pantry(record: RecipeRecord, pantry_tokens: Set[str]) -> float:
    """Share of the recipe's effective tokens already in the pantry."""
    tokens = record.effective_tokens
    if not pantry_tokens or not tokens:
        return 0.0
    matches = sum(1 for token in tokens if token in pantry_tokens)
    return matches / len(tokens)


def get_best_pantry_matches(store: RecipeStore, items: Sequence[PantryItem], limit: int) -> List[Recipe]:
    pantry_tokens = build_pantry_token_set(items)
    if not pantry_tokens or limit <= 0:
        return []
    snapshot = store.snapshot()
    if not snapshot.records:
        return []
    candidates = snapshot.token_index().collect_candidates(pantry_tokens)

    scored = []
    for position in sorted(candidates):
        record = snapshot.records[position]
        score = score_recipe_for_pantry(record, pantry_tokens)
        if score > 0:
            scored.append((record, score))
    scored.sort(key=_ranking_key)
    return [record.to_public(match_score=score) for record, score in scored[:limit]]


def get_use_now_recipes(store: RecipeStore, items: Sequence[PantryItem], limit: int) -> List[Recipe]:
    """
    Rank by how many urgent items a recipe uses. Unlike the pantry rail this is a
    raw hit count, so larger recipes are not penalized.
    """
    urgent_tokens = build_pantry_token_set(item for item in items if item.risk_level in URGENT_RISK_LEVELS)
    if not urgent_tokens or limit <= 0:
        return []
    snapshot = store.snapshot()
    if not snapshot.records:
        return []
    hits: Dict[int, int] = snapshot.token_index().score_candidates(urgent_tokens)

    scored = [(snapshot.records[position], float(count)) for position, count in sorted(hits.items())]
    scored.sort(key=_ranking_key)
    return [record.to_public(match_score=score) for record, score in scored[:limit]]


def search_recipes(store: RecipeStore, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[Recipe]:
    normalized = normalize_token(query)
    if not normalized or limit <= 0:
        return []
    snapshot = store.snapshot()
    index = snapshot.search_index()
    if index is not None:
        results = index.search(normalized, limit)
        if results:
            return [record.to_public() for record, _ in results]

    tokens = [token for token in normalized.split(" ") if token]
    return [record.to_public() for record, _ in fallback_search(snapshot.records, tokens, limit)]


def pantry_coverage(recipe: Recipe, items: Sequence[PantryItem]) -> PantryCoverage:
    """
    How a recipe card reads against the pantry: owned vs. total ingredient tokens,
    and the ingredients that would go on the shopping list.
    """
    pantry_tokens = build_pantry_token_set(items)
    if recipe.ner_tokens:
        tokens = [normalize_token(token) for token in recipe.ner_tokens]
    else:
        tokens = [normalize_token(ingredient.name) for ingredient in recipe.ingredients]
    owned = sum(1 for token in tokens if token in pantry_tokens)
    missing_ingredients = [
        ingredient for ingredient in recipe.ingredients if normalize_token(ingredient.name) not in pantry_tokens
    ]
    return PantryCoverage(
        owned_count=owned,
        total=len(tokens),
        missing=max(len(tokens) - owned, 0),
        missing_ingredients=missing_ingredients,
    )


def load_bundled_recipes(path: Path) -> List[Recipe]:
    """The small in-repo recipe list shown when the open dataset is missing."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Bundled recipes unavailable at %s: %s", path, exc)
        return []
    if not isinstance(payload, list):
        return []

    recipes: List[Recipe] = []
    for entry in payload:
        try:
            recipes.append(Recipe.model_validate(entry))
        except ValidationError as exc:
            logger.debug("Skipping bundled recipe %r: %s", entry, exc)
    return recipes


def build_recipe_overview(
    store: RecipeStore,
    items: Sequence[PantryItem],
    featured_count: int = FEATURED_COUNT,
    match_count: int = RAIL_COUNT,
) -> RecipeOverview:
    featured = get_random_recipes(store, featured_count)
    if not featured:
        bundled = load_bundled_recipes(store.settings.bundled_recipes_path)
        return RecipeOverview(
            featured=bundled[:featured_count],
            pantry_matches=[],
            use_now=[],
            dataset_available=False,
        )

    return RecipeOverview(
        featured=featured,
        pantry_matches=get_best_pantry_matches(store, items, match_count),
        use_now=get_use_now_recipes(store, items, match_count),
        dataset_available=True,
    )


__all__ = [
    "build_recipe_overview",
    "get_best_pantry_matches",
    "get_random_recipes",
    "get_use_now_recipes",
    "load_bundled_recipes",
    "pantry_coverage",
    "search_recipes",
]
