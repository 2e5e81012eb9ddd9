"""Grounded question answering — POST /prompt.

Embeds the question (query input type), retrieves the top-K knowledge-base
documents, and asks the chat model to answer from them. When the user is
looking at a recipe, the recipe is placed ahead of the retrieved documents.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_knowledge_base, get_llm_service
from config.settings import get_settings
from errors.exceptions import (
    EmbeddingDimensionError,
    EmbeddingServiceError,
    KnowledgeBaseNotReadyError,
)
from models.request import PromptRequest, PromptResponse, SourceDocument
from services.knowledge_base import KnowledgeBase
from services.llm_service import LLMService
from services.prompt_builder import build_grounded_prompt

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


@router.post("/prompt", response_model=PromptResponse)
async def prompt(
    req: PromptRequest,
    kb: KnowledgeBase = Depends(get_knowledge_base),
    llm: LLMService = Depends(get_llm_service),
):
    """Answer a culinary question grounded on the knowledge base."""
    if not kb.is_ready:
        logger.error("POST /prompt rejected: knowledge base is %s", kb.state.value)
        raise HTTPException(status_code=503, detail="Server is initializing, please try again.")

    logger.info("POST /prompt — embedding query: %r", req.prompt[:40])
    try:
        query_vector = await llm.embed_query(req.prompt)
        results = kb.retrieve(query_vector, k=get_settings().retrieval_top_k)
        mode = "recipe" if req.recipe_context else "general"
        logger.info("POST /prompt — %s mode, %d documents retrieved", mode, len(results))

        system = build_grounded_prompt(results, req.recipe_context)
        text = await llm.chat(req.prompt, system=system)
    except KnowledgeBaseNotReadyError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except (EmbeddingServiceError, EmbeddingDimensionError) as exc:
        logger.error("POST /prompt failed: %s", exc)
        raise HTTPException(
            status_code=502,
            detail=f"Error communicating with the model service: {exc}",
        ) from exc

    return PromptResponse(
        text=text,
        documents_used=len(results) + (1 if req.recipe_context else 0),
        sources=[
            SourceDocument(
                id=item.document.id,
                title=item.document.title,
                category=item.document.category.value,
                score=round(item.score, 4),
            )
            for item in results
        ],
    )
