"""Batch orchestrator — resolves one style's references with bounded concurrency.

Per item the cascade is strictly sequential and stops at the first tier that
yields an entity::

    exact store lookup → heuristic (≥ threshold) → semantic → create → link

The context pool is loaded once before fan-out and never mutated during the
batch.  Every exception raised inside an item is caught at the item boundary
and recorded as that item's error.  Only a failure to load the pool escapes
:meth:`BatchOrchestrator.run`.

References repeated within one batch (case-insensitive) are resolved once;
concurrent items cannot see each other's creations, so duplicates would
otherwise create duplicate entities.

Progress is reported in completion order, not submission order.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from agents.semantic_matcher import MatchContext, SemanticMatcher
from models.catalogue import AvailableEntityPool, EntityKind, QualityTier
from models.resolution import BatchResult, ElementReference, HeuristicMatch, ItemOutcome, ResolutionTier
from services.catalogue_store import CatalogueStore
from services.concurrency import run_bounded
from services.context_cache import ContextCache
from services.entity_creator import EntityCreator
from services.heuristic_matcher import heuristic_match
from services.link_manager import LinkManager
from services.stats import aggregate
from services.vocabulary import to_hebrew

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], Any]
HeuristicFn = Callable[[str, AvailableEntityPool], HeuristicMatch]


class BatchOrchestrator:
    """Runs the resolution cascade for one entity kind."""

    def __init__(
        self,
        kind: EntityKind,
        *,
        store: CatalogueStore,
        cache: ContextCache,
        matcher: SemanticMatcher,
        creator: EntityCreator,
        linker: LinkManager,
        concurrency: int = 5,
        heuristic_threshold: float = 0.85,
        max_items: int = 10,
        heuristic: HeuristicFn = heuristic_match,
    ) -> None:
        self.kind = kind
        self._store = store
        self._cache = cache
        self._matcher = matcher
        self._creator = creator
        self._linker = linker
        self._concurrency = concurrency
        self._threshold = heuristic_threshold
        self._max_items = max_items
        self._heuristic = heuristic

    async def run(
        self,
        style_id: str,
        references: list[ElementReference],
        *,
        quality_tier: QualityTier = QualityTier.REGULAR,
        generate_images: bool = True,
        max_items: int | None = None,
        style_context: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchResult:
        limit = self._max_items if max_items is None else max_items
        items = _dedupe(references)[:limit]
        if not items:
            return BatchResult()

        logger.info(
            "[%s] Resolving %d reference(s) for style %s (tier=%s, concurrency=%d)",
            self.kind.value,
            len(items),
            style_id,
            quality_tier.value,
            self._concurrency,
        )
        await _notify(
            on_progress,
            f"Processing {len(items)} {self.kind.value}s in parallel "
            f"({self._concurrency} concurrent)...",
            0,
            len(items),
        )

        # Setup failure (store unreachable) is fatal for the whole batch.
        pool = await self._cache.get()
        context = MatchContext(style_context=style_context, quality_tier=quality_tier)

        total = len(items)
        completed = 0

        def _factory(index: int, reference: ElementReference):
            async def _run() -> ItemOutcome:
                nonlocal completed
                outcome = await self._resolve_item(
                    reference,
                    pool,
                    context,
                    style_id=style_id,
                    quality_tier=quality_tier,
                    generate_images=generate_images,
                    display_order=index,
                )
                completed += 1
                mark = "✗" if outcome.error else "✓"
                await _notify(
                    on_progress, f"[{completed}/{total}] {reference.name} {mark}", completed, total
                )
                return outcome

            return _run

        outcomes = await run_bounded(
            (_factory(i, ref) for i, ref in enumerate(items)), self._concurrency
        )
        result = aggregate(outcomes)

        if any(o.created for o in outcomes):
            self._cache.invalidate()

        logger.info(
            "[%s] Batch complete for style %s: matched=%d created=%d images=%d errors=%d",
            self.kind.value,
            style_id,
            result.stats.matched,
            result.stats.created,
            result.stats.images,
            result.stats.errors,
        )
        return result

    async def _resolve_item(
        self,
        reference: ElementReference,
        pool: AvailableEntityPool,
        context: MatchContext,
        *,
        style_id: str,
        quality_tier: QualityTier,
        generate_images: bool,
        display_order: int,
    ) -> ItemOutcome:
        name = reference.name
        created_id: str | None = None
        try:
            # Tier 1: exact store lookup, English then Hebrew.
            existing = await self._store.find_exact(self.kind, name, "en")
            if existing is None:
                existing = await self._store.find_exact(self.kind, to_hebrew(name), "he")
            if existing is not None:
                logger.info("Exact match: %r → %s", name, existing.id)
                await self._linker.link(self.kind, existing.id, style_id)
                return ItemOutcome(name, entity_id=existing.id, tier=ResolutionTier.EXACT)

            # Tier 2: heuristic, authoritative only above the threshold.
            heuristic = self._heuristic(name, pool)
            if heuristic.matched and heuristic.confidence >= self._threshold:
                logger.info(
                    "Heuristic match: %r → %s (%.2f)", name, heuristic.entity_id, heuristic.confidence
                )
                await self._linker.link(self.kind, heuristic.entity_id, style_id)
                return ItemOutcome(name, entity_id=heuristic.entity_id, tier=ResolutionTier.HEURISTIC)

            # Tier 3: semantic matcher.
            verdict = await self._matcher.match(name, pool, context)
            if verdict.action == "link":
                logger.info("Semantic match: %r → %s", name, verdict.matched_entity_id)
                await self._linker.link(self.kind, verdict.matched_entity_id, style_id)
                return ItemOutcome(
                    name, entity_id=verdict.matched_entity_id, tier=ResolutionTier.SEMANTIC
                )

            # Tier 4: create, then link.
            creation = await self._creator.create(
                self.kind,
                reference,
                verdict,
                pool,
                style_id=style_id,
                quality_tier=quality_tier,
                generate_images=generate_images,
                display_order=display_order,
            )
            created_id = creation.entity.id
            await self._linker.link(self.kind, created_id, style_id)
            return ItemOutcome(
                name,
                entity_id=creation.entity.id,
                tier=ResolutionTier.CREATED,
                created=True,
                image_generated=creation.image_generated,
            )
        except Exception as exc:
            logger.exception("Error resolving %s %r: %s", self.kind.value, name, exc)
            # An entity persisted before the failure still counts for cache invalidation.
            return ItemOutcome(
                name, error=str(exc) or type(exc).__name__, created=created_id is not None
            )


def _dedupe(references: list[ElementReference]) -> list[ElementReference]:
    seen: set[str] = set()
    unique: list[ElementReference] = []
    for reference in references:
        key = reference.name.strip().casefold()
        if key in seen:
            logger.info("Skipping duplicate reference %r", reference.name)
            continue
        seen.add(key)
        unique.append(reference)
    return unique


async def _notify(
    callback: ProgressCallback | None,
    message: str,
    current: int | None,
    total: int | None,
) -> None:
    if callback is None:
        return
    try:
        result = callback(message, current, total)
        if inspect.isawaitable(result):
            await result
    except Exception as exc:
        logger.warning("Progress callback failed: %s", exc)
