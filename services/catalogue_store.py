"""Catalogue store — persistence for materials, textures and style links.

Provides an abstract interface with an in-memory implementation (single
instance / tests) and a PostgreSQL implementation backed by an asyncpg pool.
Entities are stored as JSON documents; the pipeline never deletes them.
"""

from __future__ import annotations

import json
import logging
import uuid
from abc import ABC, abstractmethod

from errors import CatalogueStoreError
from models.catalogue import (
    CatalogueEntity,
    Category,
    EntityKind,
    MaterialType,
    StyleElementLink,
    StyleImage,
)

logger = logging.getLogger(__name__)


def generate_entity_id() -> str:
    return uuid.uuid4().hex[:24]


# ── Abstract Interface ───────────────────────────────────────


class CatalogueStore(ABC):
    """Abstract catalogue store — implement for different backends."""

    async def start(self) -> None:
        """Acquire backend resources.  No-op by default."""

    async def close(self) -> None:
        """Release backend resources.  No-op by default."""

    @abstractmethod
    async def find_exact(
        self, kind: EntityKind, name: str, locale: str
    ) -> CatalogueEntity | None:
        """Case-sensitive lookup of an entity by its name in *locale*."""
        ...

    @abstractmethod
    async def bulk_list(self, kind: EntityKind, limit: int) -> list[CatalogueEntity]:
        """Return up to *limit* entities of *kind*."""
        ...

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        ...

    @abstractmethod
    async def list_types(self) -> list[MaterialType]:
        ...

    @abstractmethod
    async def create(self, entity: CatalogueEntity) -> CatalogueEntity:
        """Persist a new entity and return it with its assigned id."""
        ...

    @abstractmethod
    async def increment_usage(self, kind: EntityKind, entity_id: str) -> None:
        ...

    @abstractmethod
    async def find_link(
        self, kind: EntityKind, style_id: str, entity_id: str
    ) -> StyleElementLink | None:
        ...

    @abstractmethod
    async def create_link(
        self, kind: EntityKind, style_id: str, entity_id: str
    ) -> StyleElementLink:
        """Create a style link.  Must not duplicate an existing pair."""
        ...

    @abstractmethod
    async def add_style_image(self, image: StyleImage) -> None:
        ...


# ── In-Memory Implementation ────────────────────────────────


class InMemoryCatalogueStore(CatalogueStore):
    """Dict-backed store.  Suitable for a single process and for tests."""

    def __init__(
        self,
        *,
        entities: list[CatalogueEntity] | None = None,
        categories: list[Category] | None = None,
        types: list[MaterialType] | None = None,
    ) -> None:
        self._entities: dict[str, CatalogueEntity] = {}
        self._categories: list[Category] = list(categories or [])
        self._types: list[MaterialType] = list(types or [])
        self._links: dict[tuple[EntityKind, str, str], StyleElementLink] = {}
        self._images: list[StyleImage] = []
        for entity in entities or []:
            if not entity.id:
                entity = entity.model_copy(update={"id": generate_entity_id()})
            self._entities[entity.id] = entity

    async def find_exact(
        self, kind: EntityKind, name: str, locale: str
    ) -> CatalogueEntity | None:
        if not name:
            return None
        for entity in self._entities.values():
            if entity.kind == kind and entity.name.get(locale) == name:
                return entity
        return None

    async def bulk_list(self, kind: EntityKind, limit: int) -> list[CatalogueEntity]:
        return [e for e in self._entities.values() if e.kind == kind][:limit]

    async def list_categories(self) -> list[Category]:
        return list(self._categories)

    async def list_types(self) -> list[MaterialType]:
        return list(self._types)

    async def create(self, entity: CatalogueEntity) -> CatalogueEntity:
        stored = entity.model_copy(update={"id": entity.id or generate_entity_id()})
        self._entities[stored.id] = stored
        return stored

    async def increment_usage(self, kind: EntityKind, entity_id: str) -> None:
        entity = self._entities.get(entity_id)
        if entity is None or entity.kind != kind:
            raise CatalogueStoreError("increment_usage", f"{kind.value} {entity_id} not found")
        entity.usage += 1

    async def find_link(
        self, kind: EntityKind, style_id: str, entity_id: str
    ) -> StyleElementLink | None:
        return self._links.get((kind, style_id, entity_id))

    async def create_link(
        self, kind: EntityKind, style_id: str, entity_id: str
    ) -> StyleElementLink:
        key = (kind, style_id, entity_id)
        if key not in self._links:
            self._links[key] = StyleElementLink(
                style_id=style_id, entity_id=entity_id, kind=kind
            )
        return self._links[key]

    async def add_style_image(self, image: StyleImage) -> None:
        self._images.append(image)

    # -- inspection helpers ---------------------------------------------------

    def get(self, entity_id: str) -> CatalogueEntity | None:
        return self._entities.get(entity_id)

    def links_for_style(self, style_id: str) -> list[StyleElementLink]:
        return [link for link in self._links.values() if link.style_id == style_id]

    @property
    def style_images(self) -> list[StyleImage]:
        return list(self._images)

    @property
    def size(self) -> int:
        return len(self._entities)


# ── PostgreSQL Implementation ────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS catalogue_entities (
    id TEXT PRIMARY KEY,
    kind TEXT NOT NULL,
    doc JSONB NOT NULL,
    usage INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE INDEX IF NOT EXISTS catalogue_entities_name_en
    ON catalogue_entities (kind, (doc->'name'->>'en'));
CREATE INDEX IF NOT EXISTS catalogue_entities_name_he
    ON catalogue_entities (kind, (doc->'name'->>'he'));
CREATE TABLE IF NOT EXISTS catalogue_categories (
    id TEXT PRIMARY KEY,
    slug TEXT UNIQUE NOT NULL,
    doc JSONB NOT NULL
);
CREATE TABLE IF NOT EXISTS catalogue_types (
    id TEXT PRIMARY KEY,
    category_id TEXT NOT NULL REFERENCES catalogue_categories (id),
    doc JSONB NOT NULL
);
CREATE TABLE IF NOT EXISTS style_element_links (
    kind TEXT NOT NULL,
    style_id TEXT NOT NULL,
    entity_id TEXT NOT NULL REFERENCES catalogue_entities (id),
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (kind, style_id, entity_id)
);
CREATE TABLE IF NOT EXISTS style_images (
    id BIGSERIAL PRIMARY KEY,
    style_id TEXT NOT NULL,
    doc JSONB NOT NULL
);
"""


class PostgresCatalogueStore(CatalogueStore):
    """asyncpg-backed store.  Link idempotency relies on the primary key."""

    def __init__(self, pg_uri: str, *, min_size: int = 2, max_size: int = 10) -> None:
        self._pg_uri = pg_uri
        self._min_size = min_size
        self._max_size = max_size
        self._pool = None  # asyncpg connection pool

    async def start(self) -> None:
        if self._pool is not None:
            return
        import asyncpg

        try:
            self._pool = await asyncpg.create_pool(
                dsn=self._pg_uri,
                min_size=self._min_size,
                max_size=self._max_size,
                max_inactive_connection_lifetime=300,
            )
            async with self._pool.acquire() as conn:
                await conn.execute(_SCHEMA)
        except (OSError, asyncpg.PostgresError) as exc:
            raise CatalogueStoreError("start", str(exc)) from exc
        logger.info(
            "Catalogue store PostgreSQL pool created (min=%d, max=%d)",
            self._min_size,
            self._max_size,
        )

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Catalogue store PostgreSQL pool closed")

    def _require_pool(self, operation: str):
        if self._pool is None:
            raise CatalogueStoreError(operation, "store not started")
        return self._pool

    @staticmethod
    def _entity_from_row(row) -> CatalogueEntity:
        doc = json.loads(row["doc"])
        doc["id"] = row["id"]
        doc["usage"] = row["usage"]
        return CatalogueEntity.model_validate(doc)

    async def find_exact(
        self, kind: EntityKind, name: str, locale: str
    ) -> CatalogueEntity | None:
        if not name or locale not in ("en", "he"):
            return None
        pool = self._require_pool("find_exact")
        row = await pool.fetchrow(
            "SELECT id, doc, usage FROM catalogue_entities "
            f"WHERE kind = $1 AND doc->'name'->>'{locale}' = $2 "
            "ORDER BY created_at LIMIT 1",
            kind.value,
            name,
        )
        return self._entity_from_row(row) if row else None

    async def bulk_list(self, kind: EntityKind, limit: int) -> list[CatalogueEntity]:
        pool = self._require_pool("bulk_list")
        rows = await pool.fetch(
            "SELECT id, doc, usage FROM catalogue_entities "
            "WHERE kind = $1 ORDER BY created_at LIMIT $2",
            kind.value,
            limit,
        )
        return [self._entity_from_row(r) for r in rows]

    async def list_categories(self) -> list[Category]:
        pool = self._require_pool("list_categories")
        rows = await pool.fetch("SELECT id, slug, doc FROM catalogue_categories ORDER BY slug")
        return [
            Category(id=r["id"], slug=r["slug"], name=json.loads(r["doc"]).get("name", {}))
            for r in rows
        ]

    async def list_types(self) -> list[MaterialType]:
        pool = self._require_pool("list_types")
        rows = await pool.fetch("SELECT id, category_id, doc FROM catalogue_types")
        types: list[MaterialType] = []
        for r in rows:
            doc = json.loads(r["doc"])
            types.append(
                MaterialType(
                    id=r["id"],
                    category_id=r["category_id"],
                    name=doc.get("name", {}),
                    slug=doc.get("slug", ""),
                )
            )
        return types

    async def create(self, entity: CatalogueEntity) -> CatalogueEntity:
        pool = self._require_pool("create")
        stored = entity.model_copy(update={"id": entity.id or generate_entity_id()})
        doc = stored.to_document(exclude={"id", "usage"})
        await pool.execute(
            "INSERT INTO catalogue_entities (id, kind, doc, usage) VALUES ($1, $2, $3::jsonb, $4)",
            stored.id,
            stored.kind.value,
            json.dumps(doc, ensure_ascii=False),
            stored.usage,
        )
        return stored

    async def increment_usage(self, kind: EntityKind, entity_id: str) -> None:
        pool = self._require_pool("increment_usage")
        status = await pool.execute(
            "UPDATE catalogue_entities SET usage = usage + 1 WHERE id = $1 AND kind = $2",
            entity_id,
            kind.value,
        )
        if status.endswith(" 0"):
            raise CatalogueStoreError("increment_usage", f"{kind.value} {entity_id} not found")

    async def find_link(
        self, kind: EntityKind, style_id: str, entity_id: str
    ) -> StyleElementLink | None:
        pool = self._require_pool("find_link")
        row = await pool.fetchrow(
            "SELECT created_at FROM style_element_links "
            "WHERE kind = $1 AND style_id = $2 AND entity_id = $3",
            kind.value,
            style_id,
            entity_id,
        )
        if row is None:
            return None
        return StyleElementLink(
            style_id=style_id, entity_id=entity_id, kind=kind, created_at=row["created_at"]
        )

    async def create_link(
        self, kind: EntityKind, style_id: str, entity_id: str
    ) -> StyleElementLink:
        pool = self._require_pool("create_link")
        await pool.execute(
            "INSERT INTO style_element_links (kind, style_id, entity_id) "
            "VALUES ($1, $2, $3) ON CONFLICT DO NOTHING",
            kind.value,
            style_id,
            entity_id,
        )
        link = await self.find_link(kind, style_id, entity_id)
        if link is None:
            raise CatalogueStoreError("create_link", f"link {style_id}/{entity_id} not visible")
        return link

    async def add_style_image(self, image: StyleImage) -> None:
        pool = self._require_pool("add_style_image")
        await pool.execute(
            "INSERT INTO style_images (style_id, doc) VALUES ($1, $2::jsonb)",
            image.style_id,
            json.dumps(image.to_document(), ensure_ascii=False),
        )


# ── Module-level Singleton ───────────────────────────────────

_store: CatalogueStore | None = None


def get_catalogue_store() -> CatalogueStore:
    """Get the singleton catalogue store instance."""
    global _store
    if _store is None:
        from config.settings import get_settings

        settings = get_settings()
        if settings.catalogue_store_type == "postgres":
            _store = PostgresCatalogueStore(settings.pg_uri)
            logger.info("Initialized PostgresCatalogueStore")
        else:
            _store = InMemoryCatalogueStore()
            logger.info("Initialized InMemoryCatalogueStore")
    return _store
