"""Global concurrency controls for model API calls and the prompt endpoint.

Keeps embedding/chat traffic under the provider's rate limits. Uses
asyncio.Semaphore to cap the number of *concurrent* outbound model requests
per worker process.

The middleware is pure ASGI (not BaseHTTPMiddleware) so it stays cheap on
the lightweight monitoring routes.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Coroutine

from starlette.types import ASGIApp, Receive, Scope, Send

from config.settings import get_settings

logger = logging.getLogger(__name__)

# ── Global model-call semaphore ──────────────────────────────

_llm_semaphore: asyncio.Semaphore | None = None


def _get_semaphore() -> asyncio.Semaphore:
    """Lazy-init to ensure semaphore is bound to the running event loop."""
    global _llm_semaphore
    if _llm_semaphore is None:
        limit = get_settings().max_concurrent_llm
        _llm_semaphore = asyncio.Semaphore(limit)
        logger.info("Model call semaphore initialized (max=%d)", limit)
    return _llm_semaphore


async def rate_limited_llm_call(
    func: Callable[..., Coroutine[Any, Any, Any]],
    *args: Any,
    **kwargs: Any,
) -> Any:
    """Execute an async model call with concurrency limiting.

    Usage::

        resp = await rate_limited_llm_call(litellm.aembedding, model=..., input=...)
    """
    sem = _get_semaphore()
    async with sem:
        return await func(*args, **kwargs)


# ── Prompt endpoint concurrency middleware (pure ASGI) ───────
# Requests over the limit receive 503 instead of queuing forever.

_HEAVY_PATHS = frozenset({"/prompt"})

_heavy_semaphore: asyncio.Semaphore | None = None


def _get_heavy_semaphore() -> asyncio.Semaphore:
    global _heavy_semaphore
    if _heavy_semaphore is None:
        limit = get_settings().max_concurrent_prompts
        _heavy_semaphore = asyncio.Semaphore(limit)
        logger.info("Prompt endpoint semaphore initialized (max=%d)", limit)
    return _heavy_semaphore


class ConcurrencyLimitMiddleware:
    """Reject prompt requests with 503 + Retry-After when the worker is at capacity.

    Monitoring endpoints (health, stats) pass through unaffected.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") not in _HEAVY_PATHS:
            await self.app(scope, receive, send)
            return

        sem = _get_heavy_semaphore()

        if sem.locked():
            logger.warning("Concurrency limit reached for %s — returning 503", scope["path"])
            body = json.dumps(
                {"detail": "Server busy — too many concurrent requests. Please retry."}
            ).encode()
            await send({
                "type": "http.response.start",
                "status": 503,
                "headers": [
                    (b"content-type", b"application/json"),
                    (b"retry-after", b"5"),
                ],
            })
            await send({"type": "http.response.body", "body": body})
            return

        async with sem:
            await self.app(scope, receive, send)
