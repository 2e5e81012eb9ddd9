"""Knowledge-base document models.

``Document`` is the in-memory unit of retrieval. ``CacheRecord`` is one
element of the durable embeddings snapshot: the same fields plus a required
embedding and the time the embeddings were computed.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import ConfigDict, Field

from models.base import CamelModel


class DocumentCategory(str, Enum):
    """Closed set of knowledge categories, one per source file."""

    RECIPES = "recipes"
    TECHNIQUES_TIPS = "techniques_Tips"
    NUTRITION_ADVICE = "nutrition_Advice"
    INGREDIENT_SUBSTITUTIONS = "ingredient_Substitutions"
    FOOD_SAFETY = "food_Safety"
    EQUIPMENT_USAGE = "equipment_Usage"
    COOKING_ADVICE = "cooking_Advice"
    # Only for cache records written without a category
    GENERAL = "general"


class Document(CamelModel):
    """A single knowledge-base entry (one prompt/response pair)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    snippet: str
    category: DocumentCategory = DocumentCategory.GENERAL
    embedding: list[float] | None = None

    @property
    def text(self) -> str:
        """Text sent to the embedding model and to the chat model as grounding."""
        return f"{self.title}. {self.snippet}"

    @property
    def is_embedded(self) -> bool:
        return bool(self.embedding)


class CacheRecord(Document):
    """One record of the persisted embeddings snapshot."""

    embedding: list[float] = Field(..., min_length=1)
    computed_at: datetime | None = None

    def to_document(self) -> Document:
        return Document(
            id=self.id,
            title=self.title,
            snippet=self.snippet,
            category=self.category,
            embedding=self.embedding,
        )
