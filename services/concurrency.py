"""Concurrency controls for outbound model calls and batch fan-out.

Two layers of limiting:

- a process-wide semaphore around every semantic-matcher model call, so that
  several batches running at once cannot exceed provider rate limits;
- a per-batch semaphore (see :func:`run_bounded`) that caps in-flight items.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, Iterable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ── Global LLM semaphore ─────────────────────────────────────

_llm_semaphore: asyncio.Semaphore | None = None


def _get_semaphore() -> asyncio.Semaphore:
    """Lazy-init to ensure semaphore is bound to the running event loop."""
    global _llm_semaphore
    if _llm_semaphore is None:
        from config.settings import get_settings

        limit = get_settings().max_concurrent_llm
        _llm_semaphore = asyncio.Semaphore(limit)
        logger.info("LLM concurrency semaphore initialized (max=%d)", limit)
    return _llm_semaphore


async def rate_limited_llm_call(
    func: Callable[..., Coroutine[Any, Any, T]],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Execute an async model call with process-wide concurrency limiting.

    Usage::

        result = await rate_limited_llm_call(agent.run, prompt, model_settings=...)
    """
    async with _get_semaphore():
        return await func(*args, **kwargs)


# ── Bounded fan-out ──────────────────────────────────────────


async def run_bounded(
    factories: Iterable[Callable[[], Awaitable[T]]],
    limit: int,
) -> list[T]:
    """Run coroutine factories with at most *limit* in flight.

    Results are returned in submission order; completion order is whatever
    the scheduler produces.  Exceptions propagate, so callers that need
    per-item isolation must catch inside each factory.
    """
    if limit < 1:
        raise ValueError("limit must be >= 1")
    semaphore = asyncio.Semaphore(limit)

    async def _guarded(factory: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            return await factory()

    return list(await asyncio.gather(*(_guarded(f) for f in factories)))
