"""Render retrieved documents into grounding context for the chat model."""

from __future__ import annotations

from typing import Sequence

from config.prompts.chat import build_chat_prompt
from services.similarity import ScoredDocument


def render_documents(results: Sequence[ScoredDocument]) -> str:
    """One numbered block per document, most relevant first."""
    if not results:
        return "(no relevant documents found)"
    return "\n\n".join(
        f"[{i}] ({item.document.id}) {item.document.text}"
        for i, item in enumerate(results, start=1)
    )


def build_grounded_prompt(
    results: Sequence[ScoredDocument],
    recipe_context: str | None = None,
) -> str:
    """System prompt for one question, grounded on ``results``."""
    return build_chat_prompt(render_documents(results), recipe_context)
