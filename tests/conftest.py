"""Shared pytest fixtures for knowledge-base tests.

Provides:
- ``FakeLLM``: in-process stand-in for the remote embedding/chat service that
  counts calls and can fail or stall chosen calls
- ``write_sources``: writes category source files with N records each
- ``make_kb``: factory for a KnowledgeBase rooted in ``tmp_path``
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Callable

import pytest

from errors.exceptions import EmbeddingServiceError
from services.embedding_cache import EmbeddingCacheStore
from services.knowledge_base import KnowledgeBase
from services.llm_service import EmbeddingInputType


def fake_vector(text: str, dim: int = 3) -> list[float]:
    """Deterministic, never-zero vector for ``text``."""
    seed = sum(map(ord, text))
    return [float((seed + i) % 11 + 1) for i in range(dim)]


class FakeLLM:
    """Records every embed call; call numbers in ``fail_calls`` raise."""

    embed_model = "fake/embed-model"
    chat_model = "fake/chat-model"

    def __init__(
        self,
        dim: int = 3,
        fail_calls: set[int] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.dim = dim
        self.fail_calls = fail_calls or set()
        self.delay = delay
        self.embed_calls: list[tuple[list[str], EmbeddingInputType]] = []

    async def embed(self, texts, input_type):
        self.embed_calls.append((list(texts), input_type))
        call_number = len(self.embed_calls)
        if self.delay:
            await asyncio.sleep(self.delay)
        if call_number in self.fail_calls:
            raise EmbeddingServiceError(self.embed_model, f"call {call_number} rejected")
        return [fake_vector(t, self.dim) for t in texts]

    async def embed_query(self, text):
        return (await self.embed([text], EmbeddingInputType.SEARCH_QUERY))[0]

    async def chat(self, message, system="", **overrides):
        return f"answer to: {message}"


def write_sources(directory: Path, counts: dict[str, int]) -> Path:
    """Write ``{category}.json`` with ``n`` prompt/response records each."""
    directory.mkdir(parents=True, exist_ok=True)
    for category, n in counts.items():
        records = [
            {"prompt": f"{category} question {i}", "response": f"{category} answer {i}"}
            for i in range(1, n + 1)
        ]
        (directory / f"{category}.json").write_text(json.dumps(records), encoding="utf-8")
    return directory


@pytest.fixture
def sources_dir(tmp_path: Path) -> Path:
    return write_sources(
        tmp_path / "documents",
        {"recipes": 3, "food_Safety": 2},
    )


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / "embeddings" / "embeddings.json"


@pytest.fixture
def make_kb(sources_dir: Path, cache_path: Path) -> Callable[..., KnowledgeBase]:
    """Build a KnowledgeBase over ``sources_dir`` with no rate-limit pause."""

    def _make(llm, **overrides) -> KnowledgeBase:
        kwargs = dict(
            llm=llm,
            cache=EmbeddingCacheStore(cache_path),
            documents_dir=sources_dir,
            categories=["recipes", "food_Safety"],
            batch_size=2,
            batch_delay_seconds=0,
            embed_timeout_seconds=5,
            embedding_dim=3,
        )
        kwargs.update(overrides)
        return KnowledgeBase(**kwargs)

    return _make
