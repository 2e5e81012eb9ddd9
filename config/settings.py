"""Pydantic Settings — typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    service_port: int = 5000
    cors_origins: list[str] = ["*"]
    debug: bool = False
    log_level: str = "INFO"

    # ── Remote models (LiteLLM identifiers) ──────────────────
    embed_model: str = "cohere/embed-multilingual-v3.0"
    chat_model: str = "cohere_chat/command-r-plus"
    chat_temperature: float = 0.3
    chat_max_tokens: int = 1024
    # Provider API key (read by LiteLLM automatically via env)
    cohere_api_key: str = ""

    # ── Knowledge Base ───────────────────────────────────────
    documents_dir: str = "documents"
    document_categories: list[str] = [
        "recipes",
        "techniques_Tips",
        "nutrition_Advice",
        "ingredient_Substitutions",
        "food_Safety",
        "equipment_Usage",
        "cooking_Advice",
    ]
    embeddings_file: str = "embeddings/embeddings.json"
    embed_batch_size: int = 96  # Cohere accepts up to 96 texts per embed call
    embed_batch_delay_seconds: float = 2.0  # pause between batches (rate limit)
    embed_timeout_seconds: float = 60.0  # per batch; a timeout fails the batch
    embedding_dim: int = 1024  # 0 = accept any dimension (still uniform)
    # False: any failed batch aborts the attempt and nothing is cached
    allow_partial_embeddings: bool = False

    # ── Retrieval ────────────────────────────────────────────
    retrieval_top_k: int = 5

    # ── Concurrency ──────────────────────────────────────────
    max_concurrent_llm: int = 10  # outbound embed/chat calls per worker
    max_concurrent_prompts: int = 15  # in-flight POST /prompt per worker

    # ── Startup ──────────────────────────────────────────────
    initialize_on_startup: bool = True
    # False: serve immediately and let the knowledge base load in the background
    block_startup_on_initialize: bool = True


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()
