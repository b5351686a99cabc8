"""Context cache — read-through, TTL-bounded snapshot of the catalogue.

One :class:`ContextCache` per entity kind, owned by a long-lived service
instance and passed explicitly to the orchestrator.  The snapshot may be up
to ``ttl_seconds`` stale; the exact-lookup and heuristic tiers run before
the cache is consulted for semantic matching, which keeps the duplicate risk
small.

Concurrent callers that miss at the same time may each rebuild the pool.
Rebuilding is idempotent, so no lock is taken.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from errors import CatalogueStoreError
from models.catalogue import (
    AvailableEntityPool,
    CatalogueEntity,
    Category,
    EntityKind,
    PoolEntity,
    PoolTexture,
)
from services.catalogue_store import CatalogueStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
DEFAULT_ENTITY_LIMIT = 200
DEFAULT_TEXTURE_LIMIT = 100


def _project(entity: CatalogueEntity, categories: dict[str, Category]) -> PoolEntity:
    category = categories.get(entity.category_id or "")
    return PoolEntity(
        id=entity.id,
        name=entity.name,
        category_id=entity.category_id,
        category_slug=category.slug if category else None,
        category_name=category.name if category else None,
        type_id=entity.type_id,
        finish=entity.finish,
        sheen=entity.sheen,
    )


class ContextCache:
    """Holds the :class:`AvailableEntityPool` for one catalogue kind."""

    def __init__(
        self,
        store: CatalogueStore,
        kind: EntityKind,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        entity_limit: int = DEFAULT_ENTITY_LIMIT,
        texture_limit: int = DEFAULT_TEXTURE_LIMIT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._kind = kind
        self._ttl = ttl_seconds
        self._entity_limit = entity_limit
        self._texture_limit = texture_limit
        self._clock = clock
        self._pool: AvailableEntityPool | None = None

    @property
    def kind(self) -> EntityKind:
        return self._kind

    @property
    def is_warm(self) -> bool:
        """True if a cached pool exists and has not expired."""
        return self._pool is not None and (self._clock() - self._pool.loaded_at) < self._ttl

    async def get(self) -> AvailableEntityPool:
        """Return the cached pool, rebuilding it from the store when expired."""
        if self._pool is not None and self.is_warm:
            return self._pool

        logger.info("[%s] Loading match context from catalogue store...", self._kind.value)
        try:
            pool = await self._load()
        except CatalogueStoreError:
            raise
        except Exception as exc:
            raise CatalogueStoreError("load_context", str(exc)) from exc

        self._pool = pool
        logger.info(
            "[%s] Loaded: %d entities, %d categories, %d types, %d textures",
            self._kind.value,
            len(pool.entities),
            len(pool.categories),
            len(pool.types),
            len(pool.textures),
        )
        return pool

    def invalidate(self) -> None:
        """Drop the cached pool so the next :meth:`get` reloads it."""
        self._pool = None
        logger.info("[%s] Match context cache cleared", self._kind.value)

    async def _load(self) -> AvailableEntityPool:
        entities = await self._store.bulk_list(self._kind, self._entity_limit)
        categories = await self._store.list_categories()
        by_id = {c.id: c for c in categories}

        types = []
        textures: list[PoolTexture] = []
        if self._kind == EntityKind.MATERIAL:
            types = await self._store.list_types()
            for texture in await self._store.bulk_list(EntityKind.TEXTURE, self._texture_limit):
                category = by_id.get(texture.category_id or "")
                textures.append(
                    PoolTexture(
                        id=texture.id,
                        name=texture.name,
                        category_slug=category.slug if category else None,
                    )
                )

        return AvailableEntityPool(
            kind=self._kind,
            entities=[_project(e, by_id) for e in entities],
            categories=categories,
            types=types,
            textures=textures,
            loaded_at=self._clock(),
        )
