"""Catalogue models — materials, textures, their categories and style links.

Defines the persisted shapes the resolution pipeline reads and writes, plus
the flattened in-memory read model (:class:`AvailableEntityPool`) that the
context cache hands to the matchers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import Field

from models.base import CamelModel


class EntityKind(str, Enum):
    """Which catalogue collection an entity lives in."""

    MATERIAL = "material"
    TEXTURE = "texture"


class GenerationStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class QualityTier(str, Enum):
    """Price / quality tier that shapes generated names and images."""

    REGULAR = "REGULAR"
    LUXURY = "LUXURY"


class LocalizedName(CamelModel):
    """Bilingual display name (Hebrew + English)."""

    he: str = ""
    en: str = ""

    def get(self, locale: str) -> str:
        return self.he if locale == "he" else self.en


class Category(CamelModel):
    """A material category (e.g. ``stone-finishes``)."""

    id: str
    name: LocalizedName = Field(default_factory=LocalizedName)
    slug: str


class MaterialType(CamelModel):
    """A material type; always belongs to exactly one category."""

    id: str
    category_id: str
    name: LocalizedName = Field(default_factory=LocalizedName)
    slug: str = ""


class EntityAssets(CamelModel):
    thumbnail: str = ""
    images: list[str] = Field(default_factory=list)


class CatalogueEntity(CamelModel):
    """A persisted Material or Texture record.

    ``id`` is empty until the store assigns one on :meth:`create`.
    """

    id: str = ""
    kind: EntityKind
    name: LocalizedName
    sku: str | None = None
    category_id: str | None = None
    type_id: str | None = None
    texture_id: str | None = None
    sub_type: str | None = None
    finish: list[str] = Field(default_factory=list)
    sheen: str | None = None
    base_color: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_abstract: bool = False
    generation_status: GenerationStatus = GenerationStatus.PENDING
    ai_description: str = ""
    assets: EntityAssets = Field(default_factory=EntityAssets)
    usage: int = 0


class StyleElementLink(CamelModel):
    """Join record between a style aggregate and a catalogue entity."""

    style_id: str
    entity_id: str
    kind: EntityKind
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class StyleImage(CamelModel):
    """Gallery image attached to a style (material close-ups)."""

    style_id: str
    url: str
    image_category: str = "MATERIAL"
    display_order: int = 0
    description: str = ""
    tags: list[str] = Field(default_factory=list)


# ── Read model held by the context cache ─────────────────────


class PoolEntity(CamelModel):
    """Flattened projection of a catalogue entity used for matching."""

    id: str
    name: LocalizedName
    category_id: str | None = None
    category_slug: str | None = None
    category_name: LocalizedName | None = None
    type_id: str | None = None
    finish: list[str] = Field(default_factory=list)
    sheen: str | None = None


class PoolTexture(CamelModel):
    """Texture reference offered to the material matcher as a hint."""

    id: str
    name: LocalizedName
    category_slug: str | None = None


class AvailableEntityPool(CamelModel):
    """Searchable snapshot of one catalogue kind plus its categories/types."""

    kind: EntityKind
    entities: list[PoolEntity] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    types: list[MaterialType] = Field(default_factory=list)
    textures: list[PoolTexture] = Field(default_factory=list)
    loaded_at: float = 0.0

    def has_entity(self, entity_id: str | None) -> bool:
        return bool(entity_id) and any(e.id == entity_id for e in self.entities)

    def has_texture(self, texture_id: str | None) -> bool:
        return bool(texture_id) and any(t.id == texture_id for t in self.textures)

    def category_by_id(self, category_id: str | None) -> Category | None:
        if not category_id:
            return None
        return next((c for c in self.categories if c.id == category_id), None)

    def category_by_slug(self, slug: str | None) -> Category | None:
        if not slug:
            return None
        return next((c for c in self.categories if c.slug == slug), None)

    def types_for_category(self, category_id: str) -> list[MaterialType]:
        return [t for t in self.types if t.category_id == category_id]
