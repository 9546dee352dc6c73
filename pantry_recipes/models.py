"""
Recipe and pantry shapes shared by the loader, the recommender and the API.

`RecipeRecord` is the internal, immutable unit held in memory; `Recipe` is the
public projection returned to callers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

RiskLevel = Literal["safe", "caution", "risky", "use-now"]

URGENT_RISK_LEVELS = frozenset({"use-now", "risky"})
DEFAULT_TAG = "use-it-now"


class RecipeIngredient(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    qty: float = 0
    unit: str = ""


class PantryItem(BaseModel):
    """A tracked household item, as far as recipe matching cares."""

    name: str
    qty: float = 1
    unit: Optional[str] = None
    category: Optional[str] = None
    storage: Optional[str] = None
    opened: bool = False
    risk_level: RiskLevel = "safe"


class Recipe(BaseModel):
    id: str
    title: str
    time_min: Optional[int] = None
    diet: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    ingredients: List[RecipeIngredient] = Field(default_factory=list)
    source_url: Optional[str] = None
    image_url: Optional[str] = None
    instructions: str = ""
    ner_tokens: List[str] = Field(default_factory=list)
    match_score: Optional[float] = Field(
        None, description="Pantry coverage fraction or use-now hit count; unset for other rails."
    )


@dataclass(frozen=True)
class RecipeRecord:
    id: str
    title: str
    ingredients: Tuple[RecipeIngredient, ...]
    tags: Tuple[str, ...]
    instructions: str = ""
    source_url: Optional[str] = None
    time_min: Optional[int] = None
    diet: Optional[str] = None
    image_url: Optional[str] = None
    search_text: str = ""
    tokens: Tuple[str, ...] = ()
    ner_tokens: Tuple[str, ...] = ()

    @property
    def effective_tokens(self) -> Tuple[str, ...]:
        """NER tokens when the dataset provided them, plain text tokens otherwise."""
        return self.ner_tokens or self.tokens

    def to_public(self, match_score: float | None = None) -> Recipe:
        return Recipe(
            id=self.id,
            title=self.title,
            time_min=self.time_min,
            diet=self.diet,
            tags=list(self.tags),
            ingredients=list(self.ingredients),
            source_url=self.source_url,
            image_url=self.image_url,
            instructions=self.instructions,
            ner_tokens=list(self.ner_tokens),
            match_score=match_score,
        )


class PantryCoverage(BaseModel):
    owned_count: int
    total: int
    missing: int
    missing_ingredients: List[RecipeIngredient] = Field(default_factory=list)

    @property
    def ready_to_cook(self) -> bool:
        return self.missing == 0


class RecipeOverview(BaseModel):
    featured: List[Recipe]
    pantry_matches: List[Recipe]
    use_now: List[Recipe]
    dataset_available: bool


__all__ = [
    "DEFAULT_TAG",
    "PantryCoverage",
    "PantryItem",
    "Recipe",
    "RecipeIngredient",
    "RecipeOverview",
    "RecipeRecord",
    "RiskLevel",
    "URGENT_RISK_LEVELS",
]
