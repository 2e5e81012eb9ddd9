"""API request / response models."""

from __future__ import annotations

from pydantic import Field, field_validator

from models.base import CamelModel


class PromptRequest(CamelModel):
    """POST /prompt — request body."""

    prompt: str = Field(..., min_length=1)
    recipe_context: str | None = None

    @field_validator("prompt")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt must not be blank")
        return value


class SourceDocument(CamelModel):
    """A retrieved document used to ground an answer."""

    id: str
    title: str
    category: str
    score: float


class PromptResponse(CamelModel):
    """POST /prompt — response body."""

    text: str
    documents_used: int
    sources: list[SourceDocument] = []


class KnowledgeBaseHealth(CamelModel):
    documents_loaded: int
    state: str
    status: str


class HealthResponse(CamelModel):
    """GET /health — response body."""

    status: str
    timestamp: str
    uptime: str
    memory_usage: str
    knowledge_base: KnowledgeBaseHealth


class KnowledgeBaseStats(CamelModel):
    state: str
    total_documents: int
    embeddings_computed_at: str | None = None
    model: str
    input_type: str
    categories: dict[str, int] = {}


class StatsResponse(CamelModel):
    """GET /stats — response body."""

    knowledge_base: KnowledgeBaseStats
