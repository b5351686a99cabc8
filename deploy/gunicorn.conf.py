"""Gunicorn configuration for the catalogue entity resolution service.

Usage:
    gunicorn main:app -c deploy/gunicorn.conf.py

Each resolution batch is I/O-bound: store reads, semantic-matcher model
calls (up to ``SEMANTIC_MATCH_TIMEOUT``) and image generation (up to
``IMAGE_GENERATION_TIMEOUT``) per item, five items in flight at a time.

Note: every worker holds its own context cache.  A creation in one worker
is visible to the others after at most ``CONTEXT_CACHE_TTL`` seconds.
"""

import multiprocessing
import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:5000")
backlog = 1024

# ─── Worker processes ───────────────────────────────────────────
#
# For async ASGI: 1 worker per core.  The event loop carries the
# concurrency; more workers only multiply caches and DB pools.

workers = int(os.getenv("WORKERS", min(multiprocessing.cpu_count(), 4)))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────
#
# Worst case for a 10-material batch: two waves of five items, each
# bounded by the semantic-match and image-generation timeouts.

timeout = int(os.getenv("WORKER_TIMEOUT", 420))
graceful_timeout = 60
keepalive = 30

# ─── Worker recycling ──────────────────────────────────────────

max_requests = 2000
max_requests_jitter = 200

# ─── Logging ────────────────────────────────────────────────────

accesslog = "-"                     # stdout
errorlog = "-"                      # stderr
loglevel = os.getenv("LOG_LEVEL", "info")
access_log_format = (
    '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" %(D)sμs'
)

# ─── Process naming ─────────────────────────────────────────────

proc_name = "catalogue-resolution"

# ─── Server hooks ───────────────────────────────────────────────


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info(
        "Starting catalogue resolution service — workers=%d, timeout=%ds, bind=%s",
        workers,
        timeout,
        bind,
    )


def worker_exit(server, worker):
    """Called when a worker has been killed or exited."""
    server.log.info("Worker exit (pid: %s)", worker.pid)
