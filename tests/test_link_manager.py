"""Tests for services/link_manager.py — idempotent linking and usage."""

import pytest

from errors import CatalogueStoreError
from models.catalogue import EntityKind
from services.link_manager import LinkManager


@pytest.mark.asyncio
async def test_link_twice_creates_one_link_and_counts_usage_twice(store):
    linker = LinkManager(store)

    first = await linker.link(EntityKind.MATERIAL, "mat-oak", "style-1")
    second = await linker.link(EntityKind.MATERIAL, "mat-oak", "style-1")

    assert first is True
    assert second is False
    assert len(store.links_for_style("style-1")) == 1
    assert store.get("mat-oak").usage == 2


@pytest.mark.asyncio
async def test_same_entity_different_styles(store):
    linker = LinkManager(store)
    await linker.link(EntityKind.MATERIAL, "mat-oak", "style-1")
    await linker.link(EntityKind.MATERIAL, "mat-oak", "style-2")

    assert len(store.links_for_style("style-1")) == 1
    assert len(store.links_for_style("style-2")) == 1
    assert store.get("mat-oak").usage == 2


@pytest.mark.asyncio
async def test_texture_links_are_separate(store):
    linker = LinkManager(store)
    await linker.link(EntityKind.TEXTURE, "tex-plaster", "style-1")

    [link] = store.links_for_style("style-1")
    assert link.kind == EntityKind.TEXTURE
    assert store.get("tex-plaster").usage == 1


@pytest.mark.asyncio
async def test_missing_entity_raises(store):
    linker = LinkManager(store)
    with pytest.raises(CatalogueStoreError):
        await linker.link(EntityKind.MATERIAL, "mat-ghost", "style-1")
