"""
Dataset loader for the open recipe corpus.

Two ingestion paths normalize into the same `RecipeRecord` shape:
- a pre-built JSON cache (fast, preferred when present and non-empty)
- the bulk scraped CSV, streamed in chunks because it is too large to load at once

Malformed rows and sub-fields are expected in scraped data and are dropped or
emptied rather than raised.
"""

from __future__ import annotations

import json
import warnings
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple

import pandas as pd

from .logging_utils import get_logger
from .models import DEFAULT_TAG, RecipeIngredient, RecipeRecord
from .text import normalize_tokens, tokenize_text

logger = get_logger(__name__)

# Positional layout of the scraped CSV: index, title, ingredients, directions, link, source, NER.
MIN_CSV_COLUMNS = 7
TITLE_COL, INGREDIENTS_COL, DIRECTIONS_COL, LINK_COL, SOURCE_COL, NER_COL = 1, 2, 3, 4, 5, 6

MAX_NER_TAGS = 4


def safe_parse_array(value: Any) -> list:
    """Decode a JSON-encoded array string; anything else becomes []."""
    if isinstance(value, list):
        return value
    if not isinstance(value, str) or not value:
        return []
    try:
        parsed = json.loads(value)
    except (ValueError, TypeError):
        return []
    return parsed if isinstance(parsed, list) else []


def normalize_link(link: Optional[str]) -> Optional[str]:
    if not link or not isinstance(link, str):
        return None
    link = link.strip()
    if not link:
        return None
    if link.startswith("http"):
        return link
    return f"https://{link}"


def build_tags(source: Optional[str], ner: Iterable[Any]) -> Tuple[str, ...]:
    tags: dict[str, None] = {}
    if isinstance(source, str) and source.strip():
        tags.setdefault(source.strip().lower(), None)
    for token in list(ner)[:MAX_NER_TAGS]:
        if isinstance(token, str) and token.strip():
            tags.setdefault(token.strip().lower(), None)
    if not tags:
        tags[DEFAULT_TAG] = None
    return tuple(tags)


def _coerce_qty(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0


def _to_ingredient(entry: Any) -> Optional[RecipeIngredient]:
    if isinstance(entry, str):
        return RecipeIngredient(name=entry) if entry.strip() else None
    if isinstance(entry, dict):
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            return None
        unit = entry.get("unit")
        return RecipeIngredient(
            name=name,
            qty=_coerce_qty(entry.get("qty")),
            unit=unit if isinstance(unit, str) else "",
        )
    return None


def build_record(
    position: int,
    title: str,
    ingredients: Sequence[Any],
    directions: Sequence[Any],
    link: Optional[str],
    source: Optional[str],
    raw_ner: Sequence[Any],
) -> Optional[RecipeRecord]:
    """
    Normalize one source row into a record, or None when it cannot satisfy the
    record invariants (a title and at least one ingredient).
    """
    title = title.strip() if isinstance(title, str) else ""
    if not title:
        return None

    parsed_ingredients = [ing for ing in (_to_ingredient(entry) for entry in ingredients) if ing is not None]
    ner_tokens = normalize_tokens(raw_ner)
    if not parsed_ingredients:
        parsed_ingredients = [RecipeIngredient(name=token) for token in ner_tokens]
    if not parsed_ingredients:
        return None

    direction_lines = [str(step) for step in directions if step is not None]
    search_text = (
        f"{title} {' '.join(ing.name for ing in parsed_ingredients)} {' '.join(direction_lines)}"
    ).lower()

    return RecipeRecord(
        id=f"open-{position}",
        title=title,
        ingredients=tuple(parsed_ingredients),
        tags=build_tags(source, raw_ner),
        instructions="\n".join(direction_lines),
        source_url=normalize_link(link),
        search_text=search_text,
        tokens=tuple(tokenize_text(search_text)),
        ner_tokens=tuple(ner_tokens),
    )


def _is_missing(value: Any) -> bool:
    return value is None or (not isinstance(value, str) and bool(pd.isna(value)))


def _cell(value: Any) -> str:
    return "" if _is_missing(value) else str(value)


def _iter_csv_rows(csv_path: Path, chunk_size: int) -> Iterator[tuple]:
    """
    Stream CSV rows as positional tuples. The header line is consumed by pandas;
    rows wider than the header keep only the header's columns, rows narrower
    than it come back padded with NaN.
    """
    reader = pd.read_csv(
        csv_path,
        dtype=object,
        keep_default_na=False,
        index_col=False,
        engine="python",
        on_bad_lines=lambda bad_line: bad_line,
        chunksize=chunk_size,
        skip_blank_lines=True,
        encoding="utf-8",
        encoding_errors="replace",
    )
    with reader:
        for chunk in reader:
            if chunk.shape[1] < MIN_CSV_COLUMNS:
                continue
            yield from chunk.itertuples(index=False, name=None)


def _count_data_lines(csv_path: Path) -> int:
    """Non-blank lines after the header."""
    with open(csv_path, "rb") as handle:
        lines = sum(1 for line in handle if line.strip())
    return max(lines - 1, 0)


def read_dataset_from_csv(csv_path: Path, chunk_size: int = 5000) -> Tuple[RecipeRecord, ...]:
    """
    The drop count in the summary log is taken against physical data lines,
    so rows pandas skips or merges while recovering from a broken quote are
    counted too.
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        return ()

    records: List[RecipeRecord] = []
    dropped = 0
    try:
        with warnings.catch_warnings():
            # Over-wide rows are truncated to the header width on purpose.
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            for row in _iter_csv_rows(csv_path, chunk_size):
                if _is_missing(row[NER_COL]):
                    dropped += 1
                    continue
                record = build_record(
                    len(records),
                    _cell(row[TITLE_COL]),
                    safe_parse_array(_cell(row[INGREDIENTS_COL])),
                    safe_parse_array(_cell(row[DIRECTIONS_COL])),
                    _cell(row[LINK_COL]),
                    _cell(row[SOURCE_COL]),
                    safe_parse_array(_cell(row[NER_COL])),
                )
                if record is None:
                    dropped += 1
                    continue
                records.append(record)
    except pd.errors.EmptyDataError:
        logger.warning("Recipe CSV %s is empty", csv_path)
    except (pd.errors.ParserError, OSError) as exc:
        logger.warning("Stopped reading recipe CSV %s after %d records: %s", csv_path, len(records), exc)

    try:
        dropped = max(dropped, _count_data_lines(csv_path) - len(records))
    except OSError as exc:
        logger.debug("Could not count lines of %s: %s", csv_path, exc)

    logger.info("Loaded %d recipes from %s (%d rows dropped)", len(records), csv_path, dropped)
    return tuple(records)


def read_dataset_from_json(json_path: Path) -> Optional[Tuple[RecipeRecord, ...]]:
    """
    Returns None when the cache is absent or unusable, so the caller can fall
    back to the CSV; otherwise the (possibly empty) records.
    """
    json_path = Path(json_path)
    if not json_path.exists():
        return None
    try:
        payload = json.loads(json_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable recipe cache %s: %s", json_path, exc)
        return None
    if not isinstance(payload, list):
        logger.warning("Ignoring recipe cache %s: expected a JSON array", json_path)
        return None

    records: List[RecipeRecord] = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        record = build_record(
            len(records),
            entry.get("title") or "",
            entry.get("ingredients") or [],
            entry.get("directions") or [],
            entry.get("link"),
            entry.get("source"),
            entry.get("ner_tokens") or [],
        )
        if record is not None:
            records.append(record)

    logger.info("Loaded %d recipes from %s", len(records), json_path)
    return tuple(records)


def load_dataset(json_path: Path, csv_path: Path, chunk_size: int = 5000) -> Tuple[RecipeRecord, ...]:
    """
    Load the corpus, preferring the JSON cache. An absent, corrupt or empty cache
    falls back to the CSV; no source at all is a valid, empty dataset.
    """
    from_json = read_dataset_from_json(json_path)
    if from_json:
        return from_json
    return read_dataset_from_csv(csv_path, chunk_size)


def dataset_signature(json_path: Path, csv_path: Path) -> Optional[str]:
    """Cheap fingerprint (kind, size, mtime) of whichever source load_dataset reads first."""
    for kind, path in (("json", Path(json_path)), ("csv", Path(csv_path))):
        if not path.exists():
            continue
        try:
            stats = path.stat()
        except OSError:
            continue
        return f"{kind}:{stats.st_size}:{stats.st_mtime_ns}"
    return None


__all__ = [
    "build_record",
    "dataset_signature",
    "load_dataset",
    "normalize_link",
    "read_dataset_from_csv",
    "read_dataset_from_json",
    "safe_parse_array",
]
