"""Health and knowledge-base statistics endpoints."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from api.deps import get_knowledge_base, get_llm_service
from models.request import (
    HealthResponse,
    KnowledgeBaseHealth,
    KnowledgeBaseStats,
    StatsResponse,
)
from services.knowledge_base import KnowledgeBase
from services.llm_service import EmbeddingInputType, LLMService
from services.monitoring import format_uptime, get_memory_stats

logger = logging.getLogger(__name__)

router = APIRouter(tags=["monitoring"])


@router.get("/health", response_model=HealthResponse)
async def health(request: Request, kb: KnowledgeBase = Depends(get_knowledge_base)):
    """Liveness plus knowledge-base readiness.

    Always 200; ``status`` distinguishes ``healthy`` from ``initializing``.
    """
    memory = get_memory_stats()
    ready = kb.is_ready
    return HealthResponse(
        status="healthy" if ready else "initializing",
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=format_uptime(request.app.state.started_at),
        memory_usage=f"{memory['rss']} MB RSS / {memory['systemTotal']} MB total",
        knowledge_base=KnowledgeBaseHealth(
            documents_loaded=kb.count,
            state=kb.state.value,
            status="Ready" if ready else "Not ready, initialization in progress or failed.",
        ),
    )


@router.get("/stats", response_model=StatsResponse)
async def stats(
    kb: KnowledgeBase = Depends(get_knowledge_base),
    llm: LLMService = Depends(get_llm_service),
):
    """Knowledge-base size, embedding timestamp and model."""
    return StatsResponse(
        knowledge_base=KnowledgeBaseStats(
            **kb.stats(),
            model=llm.embed_model,
            input_type=EmbeddingInputType.SEARCH_DOCUMENT.value,
        )
    )
