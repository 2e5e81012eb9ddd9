"""Remote embedding and chat calls powered by LiteLLM.

Any provider LiteLLM supports works via the model name prefix; the defaults
target Cohere:
    - cohere/embed-multilingual-v3.0   (embeddings)
    - cohere_chat/command-r-plus       (chat)

Every call goes through :func:`rate_limited_llm_call` and carries a timeout.
Provider errors are re-raised as :class:`EmbeddingServiceError`.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Sequence

import litellm

from config.settings import Settings, get_settings
from errors.exceptions import EmbeddingServiceError
from services.concurrency import rate_limited_llm_call

logger = logging.getLogger(__name__)


class EmbeddingInputType(str, Enum):
    """Tells the embedding model which side of the search a text is on."""

    SEARCH_DOCUMENT = "search_document"
    SEARCH_QUERY = "search_query"


def _vector_of(item: Any) -> list[float]:
    # LiteLLM returns dicts for most providers, Embedding objects for some
    if isinstance(item, dict):
        return list(item["embedding"])
    return list(item.embedding)


class LLMService:
    """Thin async wrapper around ``litellm.aembedding`` / ``litellm.acompletion``."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.embed_model = settings.embed_model
        self.chat_model = settings.chat_model
        self._temperature = settings.chat_temperature
        self._max_tokens = settings.chat_max_tokens
        self._timeout = settings.embed_timeout_seconds

    async def embed(
        self,
        texts: Sequence[str],
        input_type: EmbeddingInputType,
    ) -> list[list[float]]:
        """Embed ``texts``; vectors come back in request order."""
        try:
            response = await rate_limited_llm_call(
                litellm.aembedding,
                model=self.embed_model,
                input=list(texts),
                input_type=input_type.value,
                timeout=self._timeout,
            )
        except Exception as exc:
            raise EmbeddingServiceError(self.embed_model, str(exc)) from exc

        try:
            vectors = [_vector_of(item) for item in response.data]
        except (AttributeError, KeyError, TypeError) as exc:
            raise EmbeddingServiceError(
                self.embed_model, f"malformed embedding response: {exc!r}"
            ) from exc
        logger.debug("Embedded %d texts (%s)", len(vectors), input_type.value)
        return vectors

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single user question with the query input type."""
        vectors = await self.embed([text], EmbeddingInputType.SEARCH_QUERY)
        if not vectors:
            raise EmbeddingServiceError(self.embed_model, "empty embedding response")
        return vectors[0]

    async def chat(self, message: str, system: str = "", **overrides: Any) -> str:
        """Send one grounded user turn and return the answer text."""
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": message})

        kwargs: dict[str, Any] = {
            "model": self.chat_model,
            "messages": messages,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "timeout": self._timeout,
        }
        # Per-call overrides win
        kwargs.update(overrides)

        try:
            response = await rate_limited_llm_call(litellm.acompletion, **kwargs)
        except Exception as exc:
            raise EmbeddingServiceError(self.chat_model, str(exc)) from exc

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as exc:
            raise EmbeddingServiceError(
                self.chat_model, f"malformed chat response: {exc!r}"
            ) from exc
        if not content:
            logger.warning("Chat model %s returned empty content", self.chat_model)
            return ""
        return content
