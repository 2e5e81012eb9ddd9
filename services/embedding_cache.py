"""Durable JSON snapshot of embedded documents.

The snapshot is a single JSON array; each record is
``{id, title, snippet, category, embedding, computedAt}``. It is either absent
or complete — a missing file, a parse error, a record without an embedding or
a dimension mismatch all make :meth:`EmbeddingCacheStore.load` return ``None``
so the caller recomputes from scratch.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from pydantic import TypeAdapter, ValidationError

from models.document import CacheRecord, Document

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(list[CacheRecord])


@dataclass(frozen=True)
class CacheSnapshot:
    documents: list[Document]
    computed_at: datetime | None


class CacheCorruptError(ValueError):
    """The snapshot parsed but violates the all-or-nothing invariant."""


class EmbeddingCacheStore:
    """Reads and writes the embeddings snapshot at a fixed path."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    # -- write ---------------------------------------------------------------

    async def save(self, documents: Sequence[Document]) -> datetime | None:
        """Write the snapshot, replacing any previous one.

        Returns the computation timestamp stamped on every record, or ``None``
        when the write failed. Failures are logged, never raised: the
        in-memory knowledge base stays usable without persistence.
        """
        computed_at = datetime.now(timezone.utc)
        try:
            payload = [
                CacheRecord(
                    id=doc.id,
                    title=doc.title,
                    snippet=doc.snippet,
                    category=doc.category,
                    embedding=doc.embedding or [],
                    computed_at=computed_at,
                ).to_wire()
                for doc in documents
            ]
            await asyncio.to_thread(self._write, payload)
        except (OSError, TypeError, ValueError, ValidationError):
            logger.critical(
                "Failed to save embeddings file %s", self._path, exc_info=True,
            )
            return None

        logger.info("Embeddings saved to %s (%d records)", self._path, len(payload))
        return computed_at

    def _write(self, payload: list[dict]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self._path)

    # -- read ----------------------------------------------------------------

    async def load(self) -> CacheSnapshot | None:
        """Load the snapshot, or ``None`` when it is absent or unusable."""
        try:
            raw = await asyncio.to_thread(self._path.read_bytes)
            records = _records_adapter.validate_json(raw)
            _check_complete(records)
        except FileNotFoundError:
            logger.info(
                "No embeddings file at %s — normal on first run, will compute",
                self._path,
            )
            return None
        except (OSError, ValueError, ValidationError) as exc:
            logger.info(
                "Ignoring unusable embeddings file %s (%s) — will recompute",
                self._path, exc,
            )
            return None

        computed_at = records[0].computed_at
        logger.info("Loaded %d embeddings from %s", len(records), self._path)
        return CacheSnapshot(
            documents=[r.to_document() for r in records],
            computed_at=computed_at,
        )


def _check_complete(records: list[CacheRecord]) -> None:
    if not records:
        raise CacheCorruptError("snapshot is empty")

    dims = {len(r.embedding) for r in records}
    if len(dims) != 1:
        raise CacheCorruptError(f"mixed embedding dimensions {sorted(dims)}")

    ids = [r.id for r in records]
    if len(set(ids)) != len(ids):
        raise CacheCorruptError("duplicate document ids")
