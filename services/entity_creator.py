"""Entity creator — synthesizes a catalogue entity when nothing matched.

Steps, in order:

1. optional image generation (timeout-guarded, never fatal);
2. category / type assignment: matcher hint → reference hint → keyword
   rule → first available category (logged) → :class:`NoCategoriesAvailable`;
3. persist with ``is_abstract=True`` and ``generation_status=COMPLETED``.

Materials that got an image also get a ``MATERIAL`` gallery image on the
style.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass

from config.settings import get_settings
from errors import CatalogueStoreError, NoCategoriesAvailable
from models.catalogue import (
    AvailableEntityPool,
    CatalogueEntity,
    Category,
    EntityAssets,
    EntityKind,
    GenerationStatus,
    LocalizedName,
    QualityTier,
    StyleImage,
)
from models.resolution import CategorySource, ElementReference, MatchVerdict, NewEntitySpec
from services.catalogue_store import CatalogueStore
from services.category_rules import infer_category_slug
from services.image_generation import ImageGenerator
from services.vocabulary import to_hebrew

logger = logging.getLogger(__name__)


@dataclass
class CreationResult:
    entity: CatalogueEntity
    image_generated: bool
    category_source: CategorySource


def generate_sku() -> str:
    return f"AI-{uuid.uuid4().hex[:8].upper()}"


def resolve_category(
    reference: ElementReference,
    spec: NewEntitySpec | None,
    pool: AvailableEntityPool,
) -> tuple[Category, CategorySource]:
    """Pick the category for a new entity from what *pool* actually contains."""
    if spec is not None:
        hinted = pool.category_by_id(spec.category_id)
        if hinted is not None:
            return hinted, CategorySource.HINT

    from_reference = pool.category_by_slug(reference.category_slug)
    if from_reference is not None:
        return from_reference, CategorySource.REFERENCE

    for name in (reference.name, spec.name.en if spec else ""):
        inferred = pool.category_by_slug(infer_category_slug(name)) if name else None
        if inferred is not None:
            return inferred, CategorySource.RULE

    if not pool.categories:
        raise NoCategoriesAvailable(reference.name)

    fallback = pool.categories[0]
    logger.warning(
        "No category rule matched %r, falling back to first category %r",
        reference.name,
        fallback.slug,
    )
    return fallback, CategorySource.FIRST_AVAILABLE


class EntityCreator:
    """Creates abstract (AI-synthesized) materials and textures."""

    def __init__(
        self,
        store: CatalogueStore,
        image_generator: ImageGenerator | None = None,
        *,
        image_timeout: float | None = None,
    ) -> None:
        self._store = store
        self._images = image_generator
        self._image_timeout = (
            image_timeout if image_timeout is not None else get_settings().image_generation_timeout
        )

    async def create(
        self,
        kind: EntityKind,
        reference: ElementReference,
        verdict: MatchVerdict | None,
        pool: AvailableEntityPool,
        *,
        style_id: str,
        quality_tier: QualityTier = QualityTier.REGULAR,
        generate_images: bool = True,
        display_order: int = 0,
    ) -> CreationResult:
        spec = verdict.new_entity_spec if verdict is not None else None
        reasoning = verdict.reasoning if verdict is not None else ""
        name = self._entity_name(reference, spec)

        finish = list(spec.finish) if spec and spec.finish else []
        if not finish and reference.finish:
            finish = [reference.finish]

        # Materials only get an image when the matcher proposed the entity.
        image_url: str | None = None
        wants_image = generate_images and (kind == EntityKind.TEXTURE or spec is not None)
        if wants_image:
            image_url = await self._generate_image(
                kind, name, quality_tier, finish[0] if finish else None
            )

        category, category_source = resolve_category(reference, spec, pool)

        assets = EntityAssets(
            thumbnail=image_url or "",
            images=[image_url] if image_url else [],
        )
        if kind == EntityKind.MATERIAL:
            entity = CatalogueEntity(
                kind=kind,
                name=name,
                sku=generate_sku(),
                category_id=category.id,
                type_id=self._pick_type(spec, category, pool),
                texture_id=spec.texture_id if spec else None,
                sub_type=(spec.sub_type if spec else None) or reference.name,
                finish=finish,
                sheen=spec.sheen if spec else None,
                base_color=spec.base_color if spec else None,
                is_abstract=True,
                generation_status=GenerationStatus.COMPLETED,
                ai_description=f"AI-generated material: {reference.name}. {reasoning}".strip(),
                assets=assets,
            )
        else:
            entity = CatalogueEntity(
                kind=kind,
                name=name,
                category_id=category.id,
                finish=finish,
                sheen=spec.sheen if spec else None,
                base_color=spec.base_color if spec else None,
                tags=reference.keywords or [quality_tier.value],
                is_abstract=True,
                generation_status=GenerationStatus.COMPLETED,
                ai_description=f"AI-generated texture for {name.en}. {reasoning}".strip(),
                assets=assets,
            )

        created = await self._store.create(entity)
        logger.info(
            "Created %s %s (%r, category=%s via %s)",
            kind.value,
            created.id,
            name.en,
            category.slug,
            category_source.value,
        )

        if kind == EntityKind.MATERIAL and image_url:
            await self._add_gallery_image(
                style_id, reference.name, image_url, quality_tier, display_order
            )

        return CreationResult(
            entity=created,
            image_generated=image_url is not None,
            category_source=category_source,
        )

    @staticmethod
    def _entity_name(reference: ElementReference, spec: NewEntitySpec | None) -> LocalizedName:
        en = (spec.name.en if spec else "") or reference.name.strip()
        he = (spec.name.he if spec else "") or to_hebrew(en)
        return LocalizedName(he=he, en=en)

    @staticmethod
    def _pick_type(
        spec: NewEntitySpec | None,
        category: Category,
        pool: AvailableEntityPool,
    ) -> str | None:
        types = pool.types_for_category(category.id)
        if spec and spec.type_id and any(t.id == spec.type_id for t in types):
            return spec.type_id
        return types[0].id if types else None

    async def _generate_image(
        self,
        kind: EntityKind,
        name: LocalizedName,
        tier: QualityTier,
        finish: str | None,
    ) -> str | None:
        if self._images is None:
            return None
        attributes = {"finish": finish} if finish else {}
        try:
            urls = await asyncio.wait_for(
                self._images.generate(kind, name, tier, attributes),
                timeout=self._image_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Image generation for %r timed out after %gs", name.en, self._image_timeout
            )
            return None
        except Exception as exc:
            logger.warning("Image generation for %r failed: %s", name.en, exc)
            return None

        if not urls:
            logger.warning("Image generation for %r returned no images", name.en)
            return None
        return urls[0]

    async def _add_gallery_image(
        self,
        style_id: str,
        material_name: str,
        url: str,
        tier: QualityTier,
        display_order: int,
    ) -> None:
        image = StyleImage(
            style_id=style_id,
            url=url,
            display_order=display_order,
            description=f"{material_name} material close-up",
            tags=[tier.value.lower(), material_name.lower()],
        )
        try:
            await self._store.add_style_image(image)
        except CatalogueStoreError as exc:
            logger.warning("Could not record gallery image for %r: %s", material_name, exc)
