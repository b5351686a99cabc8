"""Image generation for newly created catalogue entities.

Uses ``volcenginesdkarkruntime.AsyncArk`` (Seedream) with ARK_API_KEY
authentication.  ``client.images.generate(model, prompt, size)`` returns
immediately with ``response.data[i].url``.

Every failure, including missing configuration, is raised as
:class:`ImageGenerationFailed`; the entity creator always recovers from it.
"""

from __future__ import annotations

import asyncio
import logging
import time
from functools import lru_cache
from typing import Any, Protocol

from config.prompts.image import build_image_prompt
from config.settings import get_settings
from errors import ImageGenerationFailed
from models.catalogue import EntityKind, LocalizedName, QualityTier
from services.metrics import OP_IMAGE_GENERATION, MetricsCollector, get_metrics_collector

logger = logging.getLogger(__name__)


class ImageGenerator(Protocol):
    """Image-generation collaborator; may fail or return zero urls."""

    async def generate(
        self,
        kind: EntityKind,
        name: LocalizedName,
        tier: QualityTier,
        attributes: dict[str, Any] | None = None,
    ) -> list[str]: ...


# ── Singleton AsyncArk client ─────────────────────────────


@lru_cache
def _get_ark_client():
    """Lazy-init singleton AsyncArk client.  Raises RuntimeError if ARK_API_KEY unset."""
    from volcenginesdkarkruntime import AsyncArk

    s = get_settings()
    if not s.ark_api_key:
        raise RuntimeError("ARK_API_KEY is not configured")
    return AsyncArk(base_url=s.ark_base_url, api_key=s.ark_api_key)


class ArkImageGenerator:
    """:class:`ImageGenerator` backed by Volcengine Seedream."""

    def __init__(
        self,
        *,
        model: str = "",
        size: str = "",
        metrics: MetricsCollector | None = None,
    ) -> None:
        settings = get_settings()
        self._model = model or settings.ark_image_model
        self._size = size or settings.image_size
        self._metrics = metrics or get_metrics_collector()

    async def generate(
        self,
        kind: EntityKind,
        name: LocalizedName,
        tier: QualityTier,
        attributes: dict[str, Any] | None = None,
    ) -> list[str]:
        display_name = name.en or name.he
        if not display_name.strip():
            raise ImageGenerationFailed(display_name, "name is required")

        attributes = attributes or {}
        prompt = build_image_prompt(kind, display_name, tier, finish=attributes.get("finish"))

        started = time.perf_counter()
        try:
            client = _get_ark_client()
            response = await client.images.generate(
                model=self._model,
                prompt=prompt,
                size=self._size,
            )
        except asyncio.CancelledError:
            # Cancelled by the EntityCreator timeout.
            self._record("timeout", started)
            raise
        except Exception as exc:
            self._record("error", started)
            logger.warning("Seedream image generation failed for %r: %s", display_name, exc)
            raise ImageGenerationFailed(display_name, str(exc) or type(exc).__name__) from exc

        urls = [item.url for item in (response.data or []) if getattr(item, "url", None)]
        cost = self._record("ok", started, images=len(urls))
        logger.info(
            "Generated %d image(s) for %s %r, ~$%.4f", len(urls), kind.value, display_name, cost
        )
        return urls

    def _record(self, status: str, started: float, images: int = 0) -> float:
        return self._metrics.record_call(
            operation=OP_IMAGE_GENERATION,
            status=status,
            latency_ms=(time.perf_counter() - started) * 1000,
            model=self._model,
            images=images,
        )
