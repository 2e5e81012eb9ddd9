"""Domain-specific exceptions for the culinary knowledge-base service.

These exceptions allow the API layer to distinguish between "the knowledge
base is still loading" and "the remote model service failed", and respond
with the matching HTTP status.
"""

from __future__ import annotations


class KnowledgeBaseError(Exception):
    """Base class for knowledge-base errors."""


class KnowledgeBaseNotReadyError(KnowledgeBaseError):
    """Retrieval was requested before the knowledge base reached READY."""

    def __init__(self, state: str) -> None:
        self.state = state
        super().__init__(f"Knowledge base is not ready (state={state})")


class EmbeddingServiceError(KnowledgeBaseError):
    """A remote embedding or chat call failed.

    Carries the model identifier so logs and HTTP error bodies can say
    which upstream model misbehaved.
    """

    def __init__(self, model: str, message: str) -> None:
        self.model = model
        super().__init__(f"Model '{model}' call failed: {message}")


class EmbeddingDimensionError(KnowledgeBaseError):
    """Embedded documents do not share the expected vector dimensionality."""

    def __init__(self, expected: int, found: set[int]) -> None:
        self.expected = expected
        self.found = found
        super().__init__(
            f"Embedding dimension mismatch: expected {expected or 'uniform'}, "
            f"found {sorted(found)}"
        )
