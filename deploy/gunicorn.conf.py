"""Gunicorn configuration for the CulinaryGPT service.

Usage:
    gunicorn main:app -c deploy/gunicorn.conf.py

Each worker holds its own copy of the knowledge base. Only the first worker
to start on a cold machine computes embeddings; the rest find the cache file
once it has been written (or compute their own if they start concurrently).
Run ``python scripts/build_embeddings.py`` before deploying to avoid that.
"""

import multiprocessing
import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:5000")
backlog = 2048

# ─── Worker processes ───────────────────────────────────────────
#
# I/O-bound async service: 1 worker per core, capped at 4.

workers = int(os.getenv("WORKERS", min(multiprocessing.cpu_count(), 4)))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────
#
# First-run startup embeds every document (batches of 96, 2s apart);
# /prompt makes one embed call and one chat call.

timeout = 180
graceful_timeout = 30
keepalive = 30

# ─── Worker recycling ──────────────────────────────────────────

max_requests = 5000
max_requests_jitter = 500

# ─── Logging ────────────────────────────────────────────────────

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info")

proc_name = "culinary-gpt"


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info(
        "Starting CulinaryGPT — workers=%d, timeout=%ds, bind=%s",
        workers,
        timeout,
        bind,
    )


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)
