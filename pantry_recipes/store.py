"""
Process-wide memo of the loaded dataset and the structures derived from it.

A `RecipeStore` owns one `DatasetSnapshot` at a time, keyed by the dataset
signature. When the source file changes, the next caller builds a new snapshot
and the token and search indexes go with the old one. Builds run under a lock,
so concurrent requests arriving mid-build wait for that build instead of
parsing the CSV again.
"""

from __future__ import annotations

import threading
from typing import Optional, Tuple

from .config import Settings
from .dataset_loader import dataset_signature, load_dataset
from .logging_utils import get_logger
from .models import RecipeRecord
from .search_index import FuzzySearchIndex, load_or_build
from .token_index import TokenIndex

logger = get_logger(__name__)


class DatasetSnapshot:
    """Immutable records plus lazily built indexes, all tied to one signature."""

    def __init__(self, records: Tuple[RecipeRecord, ...], signature: Optional[str], settings: Settings):
        self.records = records
        self.signature = signature
        self._settings = settings
        # One lock per index: a slow search-index build must not hold up pantry lookups.
        self._token_lock = threading.Lock()
        self._search_lock = threading.Lock()
        self._token_index: Optional[TokenIndex] = None
        self._search_index: Optional[FuzzySearchIndex] = None
        self._search_index_ready = False

    def __len__(self) -> int:
        return len(self.records)

    def token_index(self) -> TokenIndex:
        with self._token_lock:
            if self._token_index is None:
                self._token_index = TokenIndex.build(self.records)
                logger.info("Built token index: %d tokens over %d recipes", len(self._token_index), len(self.records))
            return self._token_index

    def search_index(self) -> Optional[FuzzySearchIndex]:
        """None when the dataset is empty."""
        with self._search_lock:
            if not self._search_index_ready:
                self._search_index = load_or_build(self.records, self.signature, self._settings.index_path)
                self._search_index_ready = True
            return self._search_index


class RecipeStore:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._lock = threading.Lock()
        self._snapshot: Optional[DatasetSnapshot] = None

    def current_signature(self) -> Optional[str]:
        return dataset_signature(self.settings.json_path, self.settings.csv_path)

    def snapshot(self) -> DatasetSnapshot:
        signature = self.current_signature()
        with self._lock:
            if self._snapshot is None or self._snapshot.signature != signature:
                if self._snapshot is not None:
                    logger.info("Recipe dataset changed (%s -> %s); reloading", self._snapshot.signature, signature)
                records = load_dataset(
                    self.settings.json_path,
                    self.settings.csv_path,
                    self.settings.csv_chunk_size,
                )
                self._snapshot = DatasetSnapshot(records, signature, self.settings)
            return self._snapshot

    def records(self) -> Tuple[RecipeRecord, ...]:
        return self.snapshot().records

    def warm_up(self) -> None:
        """Load the dataset and token index ahead of the first request."""
        self.snapshot().token_index()

    def reset(self) -> None:
        with self._lock:
            self._snapshot = None


__all__ = ["DatasetSnapshot", "RecipeStore"]
