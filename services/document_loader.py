"""Load categorized culinary documents from JSON source files.

Each category has one source file ``{documents_dir}/{category}.json`` holding
a JSON array of ``{"prompt": ..., "response": ...}`` objects. Every item
becomes a :class:`Document` with ``id = "{category}_{n}"`` (1-based).

A source that is missing or malformed is skipped with a warning; the rest
still load. The loader never raises — an empty result means there is no
knowledge available.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from pydantic import ValidationError

from models.document import Document, DocumentCategory

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES: tuple[str, ...] = tuple(
    c.value for c in DocumentCategory if c is not DocumentCategory.GENERAL
)


@dataclass
class LoadResult:
    """Documents loaded across all sources plus per-category diagnostics."""

    documents: list[Document] = field(default_factory=list)
    category_counts: dict[str, int] = field(default_factory=dict)
    failed_sources: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.documents


def _read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def parse_source(category: str, records: Any) -> list[Document]:
    """Convert the raw JSON content of one source into documents.

    Raises ``ValueError`` (or pydantic ``ValidationError``) when the content
    does not match the expected shape or the category is unknown.
    """
    if not isinstance(records, list):
        raise ValueError(f"expected a JSON array, got {type(records).__name__}")

    cat = DocumentCategory(category)
    documents: list[Document] = []
    for idx, item in enumerate(records, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"item {idx} is not an object")
        try:
            prompt, response = item["prompt"], item["response"]
        except KeyError as exc:
            raise ValueError(f"item {idx} is missing {exc}") from exc
        documents.append(
            Document(
                id=f"{cat.value}_{idx}",
                title=prompt,
                snippet=response,
                category=cat,
            )
        )
    return documents


async def load_documents(
    documents_dir: str | Path,
    categories: Sequence[str] = DEFAULT_CATEGORIES,
) -> LoadResult:
    """Load every category source, in order, skipping the ones that fail."""
    base = Path(documents_dir)
    result = LoadResult()
    logger.info("Loading documents from %s (%d categories)", base, len(categories))

    for category in categories:
        path = base / f"{category}.json"
        try:
            records = await asyncio.to_thread(_read_json, path)
            docs = parse_source(category, records)
        except (OSError, ValueError, ValidationError) as exc:
            # JSONDecodeError is a ValueError
            logger.warning("Skipping source %s: %s", path, exc)
            result.failed_sources.append(category)
            continue

        result.documents.extend(docs)
        result.category_counts[category] = len(docs)

    logger.info(
        "Loaded %d documents across %d categories (%d skipped)",
        len(result.documents),
        len(result.category_counts),
        len(result.failed_sources),
    )
    logger.info("Document breakdown by category: %s", result.category_counts)
    return result
