"""FastAPI dependencies resolving the app-scoped service instances.

The knowledge base and model client are created once in the lifespan and
stored on ``app.state``; routes receive them through ``Depends`` so tests can
swap in their own instances.
"""

from __future__ import annotations

from fastapi import Request

from services.knowledge_base import KnowledgeBase
from services.llm_service import LLMService


def get_knowledge_base(request: Request) -> KnowledgeBase:
    return request.app.state.knowledge_base


def get_llm_service(request: Request) -> LLMService:
    return request.app.state.llm_service
