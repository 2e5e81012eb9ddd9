"""Knowledge base lifecycle: cache load, or load + embed + save, then serve.

One :class:`KnowledgeBase` instance owns the process's documents. It moves
through ``UNINITIALIZED -> INITIALIZING -> READY``; a failed attempt returns
it to ``UNINITIALIZED`` so a later :meth:`KnowledgeBase.initialize` call can
retry. Overlapping ``initialize()`` calls share a single in-flight task, so
there is at most one embedding computation at a time.

Documents are published in one assignment at the end of a successful
attempt; readers never observe a half-built set.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Sequence

from config.settings import Settings, get_settings
from errors.exceptions import EmbeddingDimensionError, KnowledgeBaseNotReadyError
from models.document import Document
from services.document_loader import DEFAULT_CATEGORIES, load_documents
from services.embedding_cache import EmbeddingCacheStore
from services.embedding_producer import (
    DEFAULT_BATCH_DELAY_SECONDS,
    DEFAULT_BATCH_SIZE,
    DEFAULT_TIMEOUT_SECONDS,
    apply_outcomes,
    embed_in_batches,
)
from services.llm_service import LLMService
from services.similarity import DEFAULT_TOP_K, ScoredDocument, rank_documents

logger = logging.getLogger(__name__)


class KnowledgeBaseState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


def check_dimensions(documents: Sequence[Document], expected: int = 0) -> int:
    """Return the shared embedding dimension, or raise if it is not uniform.

    ``expected=0`` accepts any dimension as long as all documents agree.
    """
    dims = {len(doc.embedding or []) for doc in documents}
    if len(dims) != 1 or 0 in dims or (expected and dims != {expected}):
        raise EmbeddingDimensionError(expected, dims)
    return dims.pop()


class KnowledgeBase:
    """Owns the embedded document set and its initialization."""

    def __init__(
        self,
        *,
        llm: LLMService,
        cache: EmbeddingCacheStore,
        documents_dir: str | Path,
        categories: Sequence[str] = DEFAULT_CATEGORIES,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
        embed_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        allow_partial: bool = False,
        embedding_dim: int = 0,
    ) -> None:
        self._llm = llm
        self._cache = cache
        self._documents_dir = Path(documents_dir)
        self._categories = tuple(categories)
        self._batch_size = batch_size
        self._batch_delay = batch_delay_seconds
        self._embed_timeout = embed_timeout_seconds
        self._allow_partial = allow_partial
        self._embedding_dim = embedding_dim

        self._documents: tuple[Document, ...] = ()
        self._computed_at: datetime | None = None
        self._state = KnowledgeBaseState.UNINITIALIZED
        self._task: asyncio.Task | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        llm: LLMService | None = None,
    ) -> KnowledgeBase:
        """Build a knowledge base wired from application settings."""
        settings = settings or get_settings()
        return cls(
            llm=llm or LLMService(settings),
            cache=EmbeddingCacheStore(settings.embeddings_file),
            documents_dir=settings.documents_dir,
            categories=settings.document_categories,
            batch_size=settings.embed_batch_size,
            batch_delay_seconds=settings.embed_batch_delay_seconds,
            embed_timeout_seconds=settings.embed_timeout_seconds,
            allow_partial=settings.allow_partial_embeddings,
            embedding_dim=settings.embedding_dim,
        )

    # -- read accessors (non-blocking, never raise) --------------------------

    @property
    def documents(self) -> tuple[Document, ...]:
        return self._documents

    @property
    def count(self) -> int:
        return len(self._documents)

    @property
    def computed_at(self) -> datetime | None:
        return self._computed_at

    @property
    def state(self) -> KnowledgeBaseState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is KnowledgeBaseState.READY

    def category_counts(self) -> dict[str, int]:
        return dict(Counter(doc.category.value for doc in self._documents))

    def stats(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "totalDocuments": self.count,
            "embeddingsComputedAt": (
                self._computed_at.isoformat() if self._computed_at else None
            ),
            "categories": self.category_counts(),
        }

    # -- retrieval -----------------------------------------------------------

    def retrieve(
        self,
        query_vector: Sequence[float],
        k: int = DEFAULT_TOP_K,
    ) -> list[ScoredDocument]:
        """Top-``k`` documents for an already-embedded query, with scores.

        The query must have the same dimension as the published embeddings.
        """
        if not self.is_ready:
            raise KnowledgeBaseNotReadyError(self._state.value)
        dim = len(self._documents[0].embedding or []) if self._documents else 0
        if dim and len(query_vector) != dim:
            raise EmbeddingDimensionError(dim, {len(query_vector)})
        if k <= 0:
            return []
        return rank_documents(query_vector, self._documents)[:k]

    # -- lifecycle -----------------------------------------------------------

    async def initialize(self, *, use_cache: bool = True) -> None:
        """Bring the knowledge base to READY, or leave it UNINITIALIZED on failure.

        Returns immediately when already READY. Concurrent callers await the
        same in-flight attempt. Never raises; failures are logged.
        """
        if self._state is KnowledgeBaseState.READY:
            logger.debug("Knowledge base already initialized — skipping")
            return

        task = self._task
        if task is None:
            self._state = KnowledgeBaseState.INITIALIZING
            task = self._task = asyncio.create_task(self._run(use_cache))
        else:
            logger.info("Initialization already in progress — waiting for it")

        # Shield: a cancelled waiter must not cancel the shared attempt
        await asyncio.shield(task)

    async def _run(self, use_cache: bool) -> None:
        logger.info("Initializing knowledge base...")
        try:
            published = False
            if use_cache:
                published = await self._adopt_cache()
            if not published:
                published = await self._compute()

            if published:
                logger.info("Knowledge base ready — %d documents loaded", self.count)
            else:
                self._state = KnowledgeBaseState.UNINITIALIZED
        except asyncio.CancelledError:
            logger.warning("Knowledge base initialization cancelled")
            self._state = KnowledgeBaseState.UNINITIALIZED
            raise
        except Exception:
            logger.critical("Unexpected error during knowledge base initialization", exc_info=True)
            self._state = KnowledgeBaseState.UNINITIALIZED
        finally:
            self._task = None

    async def _adopt_cache(self) -> bool:
        snapshot = await self._cache.load()
        if snapshot is None:
            return False

        try:
            check_dimensions(snapshot.documents, self._embedding_dim)
        except EmbeddingDimensionError as exc:
            logger.info("Cached embeddings are stale (%s) — recomputing", exc)
            return False

        logger.info("Using cached embeddings from %s", self._cache.path)
        self._publish(snapshot.documents, snapshot.computed_at)
        return True

    async def _compute(self) -> bool:
        logger.info("Computing embeddings from source documents...")
        loaded = await load_documents(self._documents_dir, self._categories)
        if loaded.is_empty:
            logger.error(
                "No documents found in %s — halting embedding, knowledge base stays uninitialized",
                self._documents_dir,
            )
            return False

        outcomes = await embed_in_batches(
            loaded.documents,
            self._llm,
            batch_size=self._batch_size,
            delay_seconds=self._batch_delay,
            timeout_seconds=self._embed_timeout,
        )
        report = apply_outcomes(loaded.documents, outcomes)

        documents = report.documents
        if not report.complete:
            if not self._allow_partial or not report.embedded:
                logger.error(
                    "%d of %d documents failed to embed (%d failed batches) — "
                    "nothing cached, next initialize() will retry",
                    len(report.pending_ids), len(report.documents), len(report.failures),
                )
                return False
            logger.warning(
                "Keeping %d embedded documents; %d pending: %s",
                report.embedded, len(report.pending_ids), report.pending_ids,
            )
            documents = report.embedded_documents

        try:
            check_dimensions(documents, self._embedding_dim)
        except EmbeddingDimensionError as exc:
            logger.error("Refusing to cache embeddings: %s", exc)
            return False

        computed_at = await self._cache.save(documents)
        # A failed save still leaves a valid in-memory knowledge base
        self._publish(documents, computed_at or datetime.now(timezone.utc))
        return True

    async def aclose(self) -> None:
        """Cancel an in-flight initialization and wait for it to unwind."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _publish(self, documents: Sequence[Document], computed_at: datetime | None) -> None:
        self._documents = tuple(documents)
        self._computed_at = computed_at
        self._state = KnowledgeBaseState.READY
