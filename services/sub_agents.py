"""Catalogue resolution service — material and texture sub-agents.

Long-lived owner of one :class:`ContextCache` and one
:class:`BatchOrchestrator` per entity kind.  The upstream style workflow
calls :meth:`CatalogueResolutionService.process_style_materials` with the
material names it generated and
:meth:`~CatalogueResolutionService.process_style_textures` with either
texture names or free-text material guidance.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from agents.semantic_matcher import MatchClient, SemanticMatcher
from config.settings import Settings, get_settings
from models.catalogue import EntityKind
from models.resolution import BatchResult, ElementReference, ResolveRequest
from services.catalogue_store import CatalogueStore, get_catalogue_store
from services.context_cache import ContextCache
from services.entity_creator import EntityCreator
from services.guidance_parser import parse_material_guidance
from services.image_generation import ArkImageGenerator, ImageGenerator
from services.link_manager import LinkManager
from services.orchestrator import BatchOrchestrator, ProgressCallback

logger = logging.getLogger(__name__)


class CatalogueResolutionService:
    def __init__(
        self,
        store: CatalogueStore | None = None,
        *,
        match_client: MatchClient | None = None,
        image_generator: ImageGenerator | None = None,
        clock: Callable[[], float] = time.monotonic,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.store = store or get_catalogue_store()

        matcher = SemanticMatcher(match_client, timeout=settings.semantic_match_timeout)
        creator = EntityCreator(
            self.store,
            image_generator if image_generator is not None else ArkImageGenerator(),
            image_timeout=settings.image_generation_timeout,
        )
        linker = LinkManager(self.store)

        self._caches: dict[EntityKind, ContextCache] = {}
        self._orchestrators: dict[EntityKind, BatchOrchestrator] = {}
        max_items = {
            EntityKind.MATERIAL: settings.max_materials_per_batch,
            EntityKind.TEXTURE: settings.max_textures_per_batch,
        }
        for kind in EntityKind:
            cache = ContextCache(
                self.store,
                kind,
                ttl_seconds=settings.context_cache_ttl,
                entity_limit=settings.context_entity_limit,
                texture_limit=settings.context_texture_limit,
                clock=clock,
            )
            self._caches[kind] = cache
            self._orchestrators[kind] = BatchOrchestrator(
                kind,
                store=self.store,
                cache=cache,
                matcher=matcher,
                creator=creator,
                linker=linker,
                concurrency=settings.resolution_concurrency,
                heuristic_threshold=settings.heuristic_confidence_threshold,
                max_items=max_items[kind],
            )

    def cache(self, kind: EntityKind) -> ContextCache:
        return self._caches[kind]

    async def process_style_materials(
        self,
        request: ResolveRequest,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Resolve the material names of one style."""
        references = _references_from_names(request.references)
        if not references:
            logger.info("No materials to resolve for style %s", request.style_id)
            return BatchResult()
        return await self._run(EntityKind.MATERIAL, request, references, on_progress)

    async def process_style_textures(
        self,
        request: ResolveRequest,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        """Resolve textures named explicitly or parsed from material guidance."""
        references = _references_from_names(request.references)
        if not references and request.material_guidance:
            references = parse_material_guidance(request.material_guidance, request.quality_tier)
            logger.info(
                "Parsed %d texture(s) from material guidance for style %s",
                len(references),
                request.style_id,
            )
        if not references:
            logger.info("No textures to resolve for style %s", request.style_id)
            return BatchResult()
        return await self._run(EntityKind.TEXTURE, request, references, on_progress)

    def clear_caches(self) -> None:
        for cache in self._caches.values():
            cache.invalidate()

    async def _run(
        self,
        kind: EntityKind,
        request: ResolveRequest,
        references: list[ElementReference],
        on_progress: ProgressCallback | None,
    ) -> BatchResult:
        return await self._orchestrators[kind].run(
            request.style_id,
            references,
            quality_tier=request.quality_tier,
            generate_images=request.generate_images,
            max_items=request.max_items,
            style_context=request.style_context or request.style_name.en or None,
            on_progress=on_progress,
        )


def _references_from_names(names: list[str]) -> list[ElementReference]:
    return [ElementReference(name=n.strip()) for n in names if n and n.strip()]


# ── Module-level Singleton ───────────────────────────────────

_service: CatalogueResolutionService | None = None


def get_resolution_service() -> CatalogueResolutionService:
    """Get the singleton resolution service bound to the configured store."""
    global _service
    if _service is None:
        _service = CatalogueResolutionService()
    return _service
