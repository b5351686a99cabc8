"""Shared pytest fixtures for the resolution pipeline tests.

Provides:
- ``store``: in-memory catalogue seeded with categories, types, materials, textures
- ``empty_store``: categories and types only, no entities
- ``counting_store``: seeded store that counts calls per operation
- ``match_client``: scripted :class:`MatchClient` stand-in
- ``image_generator``: scripted image-generation stand-in
- ``clock``: manually advanced monotonic clock
- ``make_orchestrator``: factory wiring a :class:`BatchOrchestrator` from the above
"""

from __future__ import annotations

import asyncio
from collections import Counter
from typing import Any

import pytest

from agents.semantic_matcher import MatchContext, SemanticMatcher
from errors import ImageGenerationFailed
from models.catalogue import (
    AvailableEntityPool,
    CatalogueEntity,
    Category,
    EntityKind,
    LocalizedName,
    MaterialType,
    QualityTier,
)
from models.resolution import MatchVerdict, NewEntitySpec
from services.catalogue_store import InMemoryCatalogueStore
from services.context_cache import ContextCache
from services.entity_creator import EntityCreator
from services.link_manager import LinkManager
from services.orchestrator import BatchOrchestrator


# ── Catalogue data ─────────────────────────────────────────────


def _name(en: str, he: str = "") -> LocalizedName:
    return LocalizedName(en=en, he=he)


CATEGORIES = [
    Category(id="cat-wall", slug="wall-finishes", name=_name("Wall Finishes", "גימורי קיר")),
    Category(id="cat-wood", slug="wood-finishes", name=_name("Wood Finishes", "גימורי עץ")),
    Category(id="cat-metal", slug="metal-finishes", name=_name("Metal Finishes", "גימורי מתכת")),
    Category(id="cat-fabric", slug="fabric-textures", name=_name("Fabric Textures", "טקסטורות בד")),
    # id equals slug, the shape the semantic matcher sometimes echoes back
    Category(id="stone-finishes", slug="stone-finishes", name=_name("Stone Finishes", "גימורי אבן")),
]

TYPES = [
    MaterialType(id="type-solid-wood", category_id="cat-wood", name=_name("Solid Wood", "עץ מלא")),
    MaterialType(id="type-veneer", category_id="cat-wood", name=_name("Veneer", "פורניר")),
    MaterialType(id="type-natural-stone", category_id="stone-finishes", name=_name("Natural Stone")),
    MaterialType(id="type-sheet-metal", category_id="cat-metal", name=_name("Sheet Metal")),
]


def material(entity_id: str, en: str, he: str, category_id: str | None = None) -> CatalogueEntity:
    return CatalogueEntity(
        id=entity_id,
        kind=EntityKind.MATERIAL,
        name=_name(en, he),
        category_id=category_id,
    )


def texture(entity_id: str, en: str, he: str, category_id: str | None = None) -> CatalogueEntity:
    return CatalogueEntity(
        id=entity_id,
        kind=EntityKind.TEXTURE,
        name=_name(en, he),
        category_id=category_id,
        finish=["matte"],
    )


def seeded_entities() -> list[CatalogueEntity]:
    return [
        material("mat-oak", "Oak Wood", "עץ אלון", "cat-wood"),
        material("mat-marble", "Marble", "שיש", "stone-finishes"),
        material("mat-brass", "Brass", "פליז", "cat-metal"),
        material("mat-velvet", "Velvet", "קטיפה", "cat-fabric"),
        texture("tex-plaster", "Matte Plaster", "טיח מט", "cat-wall"),
        texture("tex-linen", "Linen Weave", "אריג פשתן", "cat-fabric"),
    ]


# ── Stores ─────────────────────────────────────────────────────


class CountingStore(InMemoryCatalogueStore):
    """In-memory store that records every call as ``(operation, kind)``."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.calls: Counter = Counter()

    async def find_exact(self, kind, name, locale):
        self.calls[("find_exact", kind)] += 1
        return await super().find_exact(kind, name, locale)

    async def bulk_list(self, kind, limit):
        self.calls[("bulk_list", kind)] += 1
        return await super().bulk_list(kind, limit)

    async def list_categories(self):
        self.calls[("list_categories", None)] += 1
        return await super().list_categories()

    async def create(self, entity):
        self.calls[("create", entity.kind)] += 1
        return await super().create(entity)

    def count(self, operation: str, kind: EntityKind | None = None) -> int:
        return self.calls[(operation, kind)]

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


@pytest.fixture
def store() -> InMemoryCatalogueStore:
    return InMemoryCatalogueStore(entities=seeded_entities(), categories=CATEGORIES, types=TYPES)


@pytest.fixture
def empty_store() -> CountingStore:
    return CountingStore(categories=CATEGORIES, types=TYPES)


@pytest.fixture
def counting_store() -> CountingStore:
    return CountingStore(entities=seeded_entities(), categories=CATEGORIES, types=TYPES)


# ── Collaborator stand-ins ─────────────────────────────────────


def create_verdict(reference: str, **spec: Any) -> MatchVerdict:
    spec.setdefault("name", LocalizedName(en=reference))
    return MatchVerdict(
        input_name=reference,
        action="create",
        confidence=0.9,
        new_entity_spec=NewEntitySpec(**spec),
        reasoning="No existing entity matches",
    )


def link_verdict(reference: str, entity_id: str, confidence: float = 0.9) -> MatchVerdict:
    return MatchVerdict(
        input_name=reference,
        action="link",
        matched_entity_id=entity_id,
        confidence=confidence,
        reasoning="Same base material",
    )


class FakeMatchClient:
    """Scripted :class:`MatchClient`.

    Returns ``verdicts[reference]`` when present, otherwise a plain create
    verdict.  References in ``fail_on`` raise; ``delays`` adds latency.
    """

    def __init__(self) -> None:
        self.verdicts: dict[str, MatchVerdict | dict] = {}
        self.fail_on: set[str] = set()
        self.delays: dict[str, float] = {}
        self.calls: list[tuple[str, MatchContext]] = []

    async def match_or_propose(
        self, reference: str, pool: AvailableEntityPool, context: MatchContext
    ):
        self.calls.append((reference, context))
        delay = self.delays.get(reference)
        if delay:
            await asyncio.sleep(delay)
        if reference in self.fail_on:
            raise ConnectionError("model endpoint unreachable")
        return self.verdicts.get(reference) or create_verdict(reference)

    @property
    def called_with(self) -> list[str]:
        return [ref for ref, _ in self.calls]


class FakeImageGenerator:
    def __init__(self, urls: list[str] | None = None) -> None:
        self.urls = urls if urls is not None else ["https://cdn.test/img-1.png"]
        self.fail = False
        self.delay = 0.0
        self.calls: list[tuple[EntityKind, LocalizedName, QualityTier, dict]] = []

    async def generate(self, kind, name, tier, attributes=None):
        self.calls.append((kind, name, tier, attributes or {}))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ImageGenerationFailed(name.en, "quota exceeded")
        return list(self.urls)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def match_client() -> FakeMatchClient:
    return FakeMatchClient()


@pytest.fixture
def image_generator() -> FakeImageGenerator:
    return FakeImageGenerator()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ── Orchestrator factory ───────────────────────────────────────


@pytest.fixture
def make_orchestrator(match_client, image_generator, clock):
    """Build ``(orchestrator, cache)`` for a store and kind."""

    def _make(
        store,
        kind: EntityKind = EntityKind.MATERIAL,
        **kwargs: Any,
    ) -> tuple[BatchOrchestrator, ContextCache]:
        cache = ContextCache(store, kind, ttl_seconds=300, clock=clock)
        orchestrator = BatchOrchestrator(
            kind,
            store=store,
            cache=cache,
            matcher=SemanticMatcher(match_client, timeout=kwargs.pop("match_timeout", 5.0)),
            creator=EntityCreator(
                store, image_generator, image_timeout=kwargs.pop("image_timeout", 5.0)
            ),
            linker=LinkManager(store),
            **kwargs,
        )
        return orchestrator, cache

    return _make
