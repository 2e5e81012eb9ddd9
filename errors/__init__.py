"""Custom exception hierarchy for the culinary knowledge-base service."""

from errors.exceptions import (
    EmbeddingDimensionError,
    EmbeddingServiceError,
    KnowledgeBaseError,
    KnowledgeBaseNotReadyError,
)

__all__ = [
    "EmbeddingDimensionError",
    "EmbeddingServiceError",
    "KnowledgeBaseError",
    "KnowledgeBaseNotReadyError",
]
