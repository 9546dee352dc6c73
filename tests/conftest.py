"""
Pytest Configuration and Fixtures
=================================

Shared fixtures for the test suite:
- Writers for the two dataset formats (scraped CSV, JSON cache)
- Isolated Settings / RecipeStore instances rooted in tmp_path
- A static store for feeding hand-built records straight to the rails

Nothing here touches the real data/ directory.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List

import pytest

from pantry_recipes.config import Settings
from pantry_recipes.models import RecipeIngredient, RecipeRecord
from pantry_recipes.store import DatasetSnapshot, RecipeStore
from pantry_recipes.text import tokenize_text

CSV_HEADER = ",title,ingredients,directions,link,source,NER"


def quote(value: str) -> str:
    """RFC 4180 quoting: wrap in quotes, double any embedded quote."""
    return '"' + value.replace('"', '""') + '"'


def csv_line(index: int, recipe: Dict) -> str:
    return ",".join(
        [
            str(index),
            quote(recipe["title"]),
            quote(json.dumps(recipe.get("ingredients", []))),
            quote(json.dumps(recipe.get("directions", []))),
            recipe.get("link", ""),
            recipe.get("source", "Gathered"),
            quote(json.dumps(recipe.get("ner", []))),
        ]
    )


def write_csv(path: Path, recipes: Iterable[Dict], extra_lines: Iterable[str] = ()) -> Path:
    lines = [CSV_HEADER]
    lines.extend(csv_line(i, recipe) for i, recipe in enumerate(recipes))
    lines.extend(extra_lines)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def write_json(path: Path, entries: List[Dict]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(entries), encoding="utf-8")
    return path


SAMPLE_RECIPES = [
    {
        "title": "Spinach Salad",
        "ingredients": ["2 c. baby spinach", "1 Tbsp. olive oil"],
        "directions": ["Toss everything together."],
        "link": "www.example.com/spinach-salad",
        "ner": ["spinach", "olive oil"],
    },
    {
        "title": "Spinach Frittata",
        "ingredients": ["1 c. spinach", "6 eggs", "1/2 c. cheese"],
        "directions": ["Whisk the eggs.", "Bake until set."],
        "link": "www.example.com/frittata",
        "ner": ["spinach", "eggs", "cheese"],
    },
    {
        "title": "Banana Bread",
        "ingredients": ["3 ripe bananas", "2 c. flour"],
        "directions": ["Mash, mix, bake."],
        "link": "https://example.com/banana-bread",
        "ner": ["banana", "flour"],
    },
    {
        "title": "Egg Toast",
        "ingredients": ["2 eggs", "2 slices bread", "1 tsp. butter"],
        "directions": ["Fry the eggs and serve on toast."],
        "link": "",
        "ner": ["eggs", "bread", "butter"],
    },
]


def make_record(position: int, title: str, ner: List[str], time_min: int | None = None) -> RecipeRecord:
    search_text = f"{title} {' '.join(ner)}".lower()
    return RecipeRecord(
        id=f"open-{position}",
        title=title,
        ingredients=tuple(RecipeIngredient(name=token) for token in ner),
        tags=("test",),
        search_text=search_text,
        tokens=tuple(tokenize_text(search_text)),
        ner_tokens=tuple(ner),
        time_min=time_min,
    )


class StaticStore(RecipeStore):
    """A store pinned to hand-built records, bypassing file loading."""

    def __init__(self, records: Iterable[RecipeRecord], settings: Settings):
        super().__init__(settings)
        self._static = DatasetSnapshot(tuple(records), None, settings)

    def snapshot(self) -> DatasetSnapshot:
        return self._static


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def data_dir(tmp_path) -> Path:
    path = tmp_path / "open-recipes"
    path.mkdir()
    return path


@pytest.fixture
def settings(data_dir) -> Settings:
    return Settings.for_data_dir(data_dir, skip_warm_up=True)


@pytest.fixture
def sample_csv(settings) -> Path:
    return write_csv(settings.csv_path, SAMPLE_RECIPES)


@pytest.fixture
def store(settings) -> RecipeStore:
    return RecipeStore(settings)


@pytest.fixture
def sample_store(settings, sample_csv) -> RecipeStore:
    return RecipeStore(settings)


@pytest.fixture
def static_store(settings):
    def _build(records: Iterable[RecipeRecord]) -> StaticStore:
        return StaticStore(records, settings)

    return _build
