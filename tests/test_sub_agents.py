"""Tests for services/sub_agents.py — the long-lived resolution service."""

import pytest

from config.settings import Settings
from models.catalogue import EntityKind, LocalizedName, QualityTier
from models.resolution import ResolveRequest
from services.sub_agents import CatalogueResolutionService


@pytest.fixture
def settings():
    return Settings(
        semantic_match_timeout=5.0,
        image_generation_timeout=5.0,
        max_materials_per_batch=10,
        max_textures_per_batch=5,
    )


@pytest.fixture
def service(counting_store, match_client, image_generator, clock, settings):
    return CatalogueResolutionService(
        counting_store,
        match_client=match_client,
        image_generator=image_generator,
        clock=clock,
        settings=settings,
    )


@pytest.mark.asyncio
async def test_materials_resolved_and_linked(service, counting_store):
    request = ResolveRequest(style_id="style-1", references=["Marble", "Smoked Glass"], generate_images=False)

    result = await service.process_style_materials(request)

    assert result.stats.matched == 1
    assert result.stats.created == 1
    assert len(counting_store.links_for_style("style-1")) == 2


@pytest.mark.asyncio
async def test_empty_request_touches_no_store(service, counting_store):
    result = await service.process_style_materials(ResolveRequest(style_id="style-1", references=["  ", ""]))

    assert result.success is True
    assert result.entity_ids == []
    assert counting_store.total_calls == 0


@pytest.mark.asyncio
async def test_textures_parsed_from_guidance(service, counting_store, match_client):
    request = ResolveRequest(
        style_id="style-1",
        material_guidance="Brushed brass hardware; limewashed plaster walls",
        quality_tier=QualityTier.LUXURY,
        generate_images=False,
    )

    result = await service.process_style_textures(request)

    assert match_client.called_with == ["Brass"]
    # "Plaster" is a substring heuristic hit on "Matte Plaster"
    assert "tex-plaster" in result.entity_ids
    assert result.stats.created == 1
    created = counting_store.get(result.entity_ids[0])
    assert created.kind == EntityKind.TEXTURE
    assert created.category_id == "cat-metal"
    assert created.finish == ["brushed"]


@pytest.mark.asyncio
async def test_explicit_texture_names_take_precedence(service, match_client):
    request = ResolveRequest(
        style_id="style-1",
        references=["Linen Weave"],
        material_guidance="Brushed brass hardware",
    )

    result = await service.process_style_textures(request)

    assert result.entity_ids == ["tex-linen"]
    assert match_client.calls == []


@pytest.mark.asyncio
async def test_texture_batches_capped_at_five(service):
    names = [f"Panel Texture {i}" for i in range(8)]
    result = await service.process_style_textures(
        ResolveRequest(style_id="style-1", references=names, generate_images=False)
    )

    assert len(result.entity_ids) == 5


@pytest.mark.asyncio
async def test_style_name_used_as_context(service, match_client):
    request = ResolveRequest(
        style_id="style-1",
        style_name=LocalizedName(en="Warm Minimalism", he="מינימליזם חם"),
        references=["Smoked Glass"],
        generate_images=False,
    )

    await service.process_style_materials(request)

    _, context = match_client.calls[0]
    assert context.style_context == "Warm Minimalism"


@pytest.mark.asyncio
async def test_caches_are_per_kind_and_clearable(service, counting_store):
    await service.process_style_materials(ResolveRequest(style_id="s", references=["Marble"]))
    await service.process_style_textures(ResolveRequest(style_id="s", references=["Linen Weave"]))

    assert service.cache(EntityKind.MATERIAL).is_warm
    assert service.cache(EntityKind.TEXTURE).is_warm
    assert service.cache(EntityKind.MATERIAL) is not service.cache(EntityKind.TEXTURE)

    service.clear_caches()

    assert not service.cache(EntityKind.MATERIAL).is_warm
    assert not service.cache(EntityKind.TEXTURE).is_warm
