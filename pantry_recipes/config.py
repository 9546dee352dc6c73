"""
Runtime settings for the pantry recipes service.

Values come from environment variables, optionally loaded from a `.env` file,
and are parsed once per process.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(".env"))

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_DATA_DIR = Path("data") / "open-recipes"
DEFAULT_CSV_CHUNK_SIZE = 5000


def _bool_env(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.lower() in {"1", "true", "yes", "y", "on"}


def _int_env(name: str, default: int) -> int:
    val = os.getenv(name)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    json_path: Path
    csv_path: Path
    index_path: Path
    bundled_recipes_path: Path
    csv_chunk_size: int = DEFAULT_CSV_CHUNK_SIZE
    log_level: str = "INFO"
    skip_warm_up: bool = False

    @classmethod
    def for_data_dir(cls, data_dir: Path | str, **overrides) -> "Settings":
        """Build settings with every dataset file under `data_dir`."""
        data_dir = Path(data_dir)
        values = {
            "json_path": data_dir / "dataset.json",
            "csv_path": data_dir / "full_dataset.csv",
            "index_path": data_dir / "search-index.json",
            "bundled_recipes_path": PACKAGE_DIR / "data" / "recipes.json",
        }
        values.update(overrides)
        return cls(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Read settings from the environment. Respects:
    - OPEN_RECIPES_DATA_DIR as the base for the three dataset files
    - OPEN_RECIPES_JSON_PATH / OPEN_RECIPES_CSV_PATH / OPEN_RECIPES_INDEX_PATH to override each file
    - OPEN_RECIPES_CSV_CHUNK_SIZE for the streaming CSV reader
    - BUNDLED_RECIPES_PATH for the small fallback recipe list
    - LOG_LEVEL and SKIP_WARM_UP
    """
    data_dir = Path(os.getenv("OPEN_RECIPES_DATA_DIR", str(DEFAULT_DATA_DIR)))
    base = Settings.for_data_dir(data_dir)
    return Settings(
        json_path=Path(os.getenv("OPEN_RECIPES_JSON_PATH", str(base.json_path))),
        csv_path=Path(os.getenv("OPEN_RECIPES_CSV_PATH", str(base.csv_path))),
        index_path=Path(os.getenv("OPEN_RECIPES_INDEX_PATH", str(base.index_path))),
        bundled_recipes_path=Path(os.getenv("BUNDLED_RECIPES_PATH", str(base.bundled_recipes_path))),
        csv_chunk_size=max(1, _int_env("OPEN_RECIPES_CSV_CHUNK_SIZE", DEFAULT_CSV_CHUNK_SIZE)),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        skip_warm_up=_bool_env("SKIP_WARM_UP", False),
    )


__all__ = ["Settings", "get_settings"]
