"""Tests for the embeddings snapshot store."""

from __future__ import annotations

import json

import pytest

from models.document import Document, DocumentCategory
from services.embedding_cache import EmbeddingCacheStore


def _docs() -> list[Document]:
    return [
        Document(
            id="recipes_1",
            title="Tomato sauce",
            snippet="Simmer tomatoes with garlic.",
            category=DocumentCategory.RECIPES,
            embedding=[0.1, 0.2, 0.3],
        ),
        Document(
            id="food_Safety_1",
            title="Leftovers",
            snippet="Refrigerate within two hours. Ça marche.",
            category=DocumentCategory.FOOD_SAFETY,
            embedding=[-1.0, 0.0, 2.5],
        ),
    ]


@pytest.mark.asyncio
async def test_absent_file_loads_as_none(cache_path):
    store = EmbeddingCacheStore(cache_path)
    assert not store.exists()
    assert await store.load() is None


@pytest.mark.asyncio
async def test_round_trip(cache_path):
    store = EmbeddingCacheStore(cache_path)
    docs = _docs()

    computed_at = await store.save(docs)
    snapshot = await store.load()

    assert computed_at is not None
    assert store.exists()
    assert snapshot is not None
    assert snapshot.documents == docs
    assert snapshot.computed_at == computed_at


@pytest.mark.asyncio
async def test_wire_format(cache_path):
    store = EmbeddingCacheStore(cache_path)
    await store.save(_docs())

    records = json.loads(cache_path.read_text(encoding="utf-8"))

    assert isinstance(records, list) and len(records) == 2
    assert set(records[0]) == {"id", "title", "snippet", "category", "embedding", "computedAt"}
    assert records[0]["category"] == "recipes"
    assert records[0]["computedAt"] == records[1]["computedAt"]


@pytest.mark.asyncio
async def test_save_overwrites_previous_snapshot(cache_path):
    store = EmbeddingCacheStore(cache_path)
    await store.save(_docs())
    await store.save(_docs()[:1])

    snapshot = await store.load()
    assert [d.id for d in snapshot.documents] == ["recipes_1"]


@pytest.mark.asyncio
async def test_missing_category_defaults_to_general(cache_path):
    cache_path.parent.mkdir(parents=True)
    cache_path.write_text(
        json.dumps([{"id": "x_1", "title": "t", "snippet": "s", "embedding": [1.0, 2.0]}]),
        encoding="utf-8",
    )

    snapshot = await EmbeddingCacheStore(cache_path).load()

    assert snapshot.documents[0].category is DocumentCategory.GENERAL
    assert snapshot.computed_at is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[]",
        json.dumps({"id": "x"}),
        # record without an embedding
        json.dumps([
            {"id": "a", "title": "t", "snippet": "s", "category": "recipes", "embedding": [1.0]},
            {"id": "b", "title": "t", "snippet": "s", "category": "recipes"},
        ]),
        # mixed dimensions
        json.dumps([
            {"id": "a", "title": "t", "snippet": "s", "category": "recipes", "embedding": [1.0]},
            {"id": "b", "title": "t", "snippet": "s", "category": "recipes", "embedding": [1.0, 2.0]},
        ]),
        # unknown category
        json.dumps([
            {"id": "a", "title": "t", "snippet": "s", "category": "desserts", "embedding": [1.0]},
        ]),
        # duplicate ids
        json.dumps([
            {"id": "a", "title": "t", "snippet": "s", "category": "recipes", "embedding": [1.0]},
            {"id": "a", "title": "t", "snippet": "s", "category": "recipes", "embedding": [2.0]},
        ]),
    ],
)
async def test_unusable_snapshot_is_absent(cache_path, content):
    cache_path.parent.mkdir(parents=True)
    cache_path.write_text(content, encoding="utf-8")

    assert await EmbeddingCacheStore(cache_path).load() is None


@pytest.mark.asyncio
async def test_save_failure_does_not_raise(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file where the directory should be", encoding="utf-8")
    store = EmbeddingCacheStore(blocker / "embeddings.json")

    assert await store.save(_docs()) is None
    assert not store.exists()


@pytest.mark.asyncio
async def test_save_refuses_unembedded_documents(cache_path):
    store = EmbeddingCacheStore(cache_path)
    docs = _docs() + [Document(id="x", title="t", snippet="s", category=DocumentCategory.RECIPES)]

    assert await store.save(docs) is None
    assert not store.exists()
