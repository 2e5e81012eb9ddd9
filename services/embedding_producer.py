"""Batch embedding of knowledge-base documents.

Documents are split into fixed-size batches, one remote call per batch, with
a pause between batches to respect the provider's rate limit. Each batch
produces a tagged outcome so the caller can tell which documents were
embedded and which are still pending:

    BatchSuccess(start, vectors)   vectors[i] belongs to documents[start + i]
    BatchFailure(start, size, reason)

A failed or timed-out batch never aborts its siblings.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Sequence, Union

from errors.exceptions import EmbeddingServiceError
from models.document import Document
from services.llm_service import EmbeddingInputType, LLMService

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 96
DEFAULT_BATCH_DELAY_SECONDS = 2.0
DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class BatchSuccess:
    start: int
    vectors: list[list[float]]

    @property
    def size(self) -> int:
        return len(self.vectors)


@dataclass(frozen=True)
class BatchFailure:
    start: int
    size: int
    reason: str


BatchOutcome = Union[BatchSuccess, BatchFailure]


@dataclass
class EmbeddingReport:
    """Documents after vectors were attached, plus what is still missing."""

    documents: list[Document] = field(default_factory=list)
    embedded: int = 0
    pending_ids: list[str] = field(default_factory=list)
    failures: list[BatchFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.pending_ids

    @property
    def embedded_documents(self) -> list[Document]:
        return [doc for doc in self.documents if doc.is_embedded]


async def embed_in_batches(
    documents: Sequence[Document],
    client: LLMService,
    batch_size: int = DEFAULT_BATCH_SIZE,
    delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> list[BatchOutcome]:
    """Embed ``documents`` batch by batch; one outcome per batch, in order."""
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    total_batches = -(-len(documents) // batch_size)
    outcomes: list[BatchOutcome] = []

    for number, start in enumerate(range(0, len(documents), batch_size), start=1):
        batch = documents[start:start + batch_size]
        logger.info("Embedding batch %d of %d (%d documents)", number, total_batches, len(batch))

        try:
            vectors = await asyncio.wait_for(
                client.embed(
                    [doc.text for doc in batch],
                    EmbeddingInputType.SEARCH_DOCUMENT,
                ),
                timeout=timeout_seconds,
            )
        except asyncio.TimeoutError:
            reason = f"timed out after {timeout_seconds:g}s"
            logger.error("Embedding batch %d %s", number, reason)
            outcomes.append(BatchFailure(start=start, size=len(batch), reason=reason))
        except EmbeddingServiceError as exc:
            logger.error("Error embedding batch %d: %s", number, exc)
            outcomes.append(BatchFailure(start=start, size=len(batch), reason=str(exc)))
        else:
            if len(vectors) != len(batch):
                reason = f"expected {len(batch)} vectors, got {len(vectors)}"
                logger.error("Embedding batch %d: %s", number, reason)
                outcomes.append(BatchFailure(start=start, size=len(batch), reason=reason))
            else:
                outcomes.append(BatchSuccess(start=start, vectors=vectors))

        if start + batch_size < len(documents):
            await asyncio.sleep(delay_seconds)

    return outcomes


def apply_outcomes(
    documents: Sequence[Document],
    outcomes: Sequence[BatchOutcome],
) -> EmbeddingReport:
    """Attach vectors to their documents by position.

    Documents covered by a failed batch (or by no batch at all) keep
    ``embedding=None`` and are listed in ``pending_ids``.
    """
    vectors: dict[int, list[float]] = {}
    report = EmbeddingReport()

    for outcome in outcomes:
        if isinstance(outcome, BatchSuccess):
            for offset, vector in enumerate(outcome.vectors):
                vectors[outcome.start + offset] = vector
        else:
            report.failures.append(outcome)

    for idx, doc in enumerate(documents):
        vector = vectors.get(idx)
        if vector is None:
            report.documents.append(doc)
            report.pending_ids.append(doc.id)
        else:
            report.documents.append(doc.model_copy(update={"embedding": vector}))
            report.embedded += 1

    return report
