"""FastAPI entry point for the CulinaryGPT knowledge-base service."""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import litellm
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings
from services.concurrency import ConcurrencyLimitMiddleware
from services.knowledge_base import KnowledgeBase
from services.llm_service import LLMService
from services.middleware import RequestIdMiddleware

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ── Global LiteLLM settings ──────────────────────────────────
litellm.request_timeout = settings.embed_timeout_seconds
litellm.suppress_debug_info = True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the knowledge base, load it, and tear down background work."""
    app.state.started_at = datetime.now(timezone.utc)
    llm = LLMService(settings)
    kb = KnowledgeBase.from_settings(settings, llm=llm)
    app.state.llm_service = llm
    app.state.knowledge_base = kb

    init_task: asyncio.Task | None = None
    if settings.initialize_on_startup:
        if settings.block_startup_on_initialize:
            # Do not accept requests until the knowledge base is loaded
            logger.info("Initializing knowledge base (may take a moment on first run)...")
            await kb.initialize()
        else:
            logger.info("Initializing knowledge base in the background")
            init_task = asyncio.create_task(kb.initialize())

    if kb.is_ready:
        logger.info("Knowledge base ready — %d documents", kb.count)
    elif init_task is None and settings.initialize_on_startup:
        logger.warning("Knowledge base not ready — /prompt will return 503 until it loads")

    yield

    # Stop the shared attempt first; the waiter task then ends with it
    await kb.aclose()
    if init_task is not None:
        init_task.cancel()
        try:
            await init_task
        except asyncio.CancelledError:
            pass


app = FastAPI(
    title="CulinaryGPT",
    description="Retrieval-augmented culinary assistant over an embedded knowledge base",
    version="1.0.0",
    lifespan=lifespan,
)

# ── Middleware stack (last added is outermost) ─────────────────
# Request path: CORS → RequestId → ConcurrencyLimit → route handler
app.add_middleware(ConcurrencyLimitMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Register routers ────────────────────────────────────────
from api.chat import router as chat_router  # noqa: E402
from api.monitoring import router as monitoring_router  # noqa: E402

app.include_router(chat_router)
app.include_router(monitoring_router)


if __name__ == "__main__":
    if settings.debug:
        # Development: single worker with reload
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            reload=True,
        )
    else:
        # Production: prefer gunicorn main:app -c deploy/gunicorn.conf.py
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.service_port,
            workers=2,
            timeout_keep_alive=120,
        )
