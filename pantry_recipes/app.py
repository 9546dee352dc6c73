"""
FastAPI backend for the pantry recipe rails.

Endpoints:
GET  /recipes/random          ?count=10
POST /recipes/pantry-matches  {"items": [...], "limit": 4}
POST /recipes/use-now         {"items": [...], "limit": 4}
GET  /recipes/search          ?q=frittata&limit=10
POST /recipes/overview        {"items": [...]}
POST /recipes/coverage        {"recipe": {...}, "items": [...]}
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .config import get_settings
from .logging_utils import get_logger
from .models import PantryCoverage, PantryItem, Recipe, RecipeOverview
from .recommender import (
    DEFAULT_SEARCH_LIMIT,
    FEATURED_COUNT,
    RAIL_COUNT,
    build_recipe_overview,
    get_best_pantry_matches,
    get_random_recipes,
    get_use_now_recipes,
    pantry_coverage,
    search_recipes,
)
from .store import RecipeStore

logger = get_logger(__name__)

MAX_LIMIT = 50


class PantryRequest(BaseModel):
    items: List[PantryItem] = Field(default_factory=list)
    limit: int = Field(RAIL_COUNT, ge=1, le=MAX_LIMIT, description="How many recipes to return.")


class OverviewRequest(BaseModel):
    items: List[PantryItem] = Field(default_factory=list)


class CoverageRequest(BaseModel):
    recipe: Recipe
    items: List[PantryItem] = Field(default_factory=list)


class RecipeList(BaseModel):
    data: List[Recipe]


def create_app(store: RecipeStore | None = None) -> FastAPI:
    """Build the app around a store; a fresh one from the environment by default."""
    store = store or RecipeStore(get_settings())

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        # Load the dataset once up front unless SKIP_WARM_UP is set.
        if not store.settings.skip_warm_up:
            store.warm_up()
        yield

    app = FastAPI(title="Pantry Recipes API", version="0.1.0", lifespan=lifespan)
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_store(request: Request) -> RecipeStore:
        return request.app.state.store

    @app.get("/recipes/random", response_model=RecipeList)
    def random_recipes(
        count: int = Query(FEATURED_COUNT, ge=1, le=MAX_LIMIT),
        store: RecipeStore = Depends(get_store),
    ) -> RecipeList:
        try:
            return RecipeList(data=get_random_recipes(store, count))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Random recipes failed")
            raise HTTPException(status_code=500, detail=f"Failed to load recipes: {exc}") from exc

    @app.post("/recipes/pantry-matches", response_model=RecipeList)
    def pantry_matches(request: PantryRequest, store: RecipeStore = Depends(get_store)) -> RecipeList:
        try:
            return RecipeList(data=get_best_pantry_matches(store, request.items, request.limit))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Pantry matching failed")
            raise HTTPException(status_code=500, detail=f"Failed to match pantry: {exc}") from exc

    @app.post("/recipes/use-now", response_model=RecipeList)
    def use_now(request: PantryRequest, store: RecipeStore = Depends(get_store)) -> RecipeList:
        try:
            return RecipeList(data=get_use_now_recipes(store, request.items, request.limit))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Use-now recommendations failed")
            raise HTTPException(status_code=500, detail=f"Failed to rank use-now recipes: {exc}") from exc

    @app.get("/recipes/search", response_model=RecipeList)
    def search(
        q: str = Query("", description="Free-text query; typos are tolerated."),
        limit: int = Query(DEFAULT_SEARCH_LIMIT, ge=1, le=MAX_LIMIT),
        store: RecipeStore = Depends(get_store),
    ) -> RecipeList:
        try:
            return RecipeList(data=search_recipes(store, q, limit))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Recipe search failed for %r", q)
            raise HTTPException(status_code=500, detail=f"Search failed: {exc}") from exc

    @app.post("/recipes/overview", response_model=RecipeOverview)
    def overview(request: OverviewRequest, store: RecipeStore = Depends(get_store)) -> RecipeOverview:
        try:
            return build_recipe_overview(store, request.items)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Recipe overview failed")
            raise HTTPException(status_code=500, detail=f"Failed to build overview: {exc}") from exc

    @app.post("/recipes/coverage", response_model=PantryCoverage)
    def coverage(request: CoverageRequest) -> PantryCoverage:
        return pantry_coverage(request.recipe, request.items)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pantry_recipes.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
