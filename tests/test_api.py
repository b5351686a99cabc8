"""FastAPI endpoint tests using httpx.AsyncClient."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from config.settings import Settings
from errors import CatalogueStoreError
from main import app
from models.catalogue import EntityKind
from models.resolution import BatchResult, BatchStats
from services.metrics import OP_IMAGE_GENERATION, get_metrics_collector
from services.sub_agents import CatalogueResolutionService, get_resolution_service


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def service(counting_store, match_client, image_generator, clock):
    svc = CatalogueResolutionService(
        counting_store,
        match_client=match_client,
        image_generator=image_generator,
        clock=clock,
        settings=Settings(semantic_match_timeout=5.0, image_generation_timeout=5.0),
    )
    app.dependency_overrides[get_resolution_service] = lambda: svc
    yield svc
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"


# ── Resolution endpoints ───────────────────────────────────────


@pytest.mark.asyncio
async def test_resolve_materials(client, service, counting_store):
    resp = await client.post(
        "/api/styles/style-9/materials/resolve",
        json={"styleId": "ignored", "references": ["Marble", "Smoked Glass"], "generateImages": False},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["allFailed"] is False
    assert data["stats"] == {"matched": 1, "created": 1, "images": 0, "errors": 0}
    assert len(data["entityIds"]) == 2
    assert len(counting_store.links_for_style("style-9")) == 2
    assert counting_store.links_for_style("ignored") == []


@pytest.mark.asyncio
async def test_resolve_textures_from_guidance(client, service, match_client):
    resp = await client.post(
        "/api/styles/style-9/textures/resolve",
        json={"materialGuidance": "Brushed brass hardware", "generateImages": False},
    )

    assert resp.status_code == 200
    assert resp.json()["stats"]["created"] == 1
    assert match_client.called_with == ["Brass"]


@pytest.mark.asyncio
async def test_item_errors_reported_not_raised(client, service, match_client):
    match_client.fail_on.add("Cork")
    resp = await client.post(
        "/api/styles/style-9/materials/resolve",
        json={"references": ["Cork"], "generateImages": False},
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is False
    assert data["errors"][0]["reference"] == "Cork"


@pytest.mark.asyncio
async def test_store_unavailable_returns_503(client):
    svc = MagicMock()
    svc.process_style_materials = AsyncMock(side_effect=CatalogueStoreError("load_context", "refused"))
    app.dependency_overrides[get_resolution_service] = lambda: svc
    try:
        resp = await client.post("/api/styles/s/materials/resolve", json={"references": ["Oak"]})
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 503
    assert "refused" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_path_style_id_passed_to_service(client):
    svc = MagicMock()
    svc.process_style_textures = AsyncMock(return_value=BatchResult(stats=BatchStats(matched=1)))
    app.dependency_overrides[get_resolution_service] = lambda: svc
    try:
        resp = await client.post(
            "/api/styles/style-42/textures/resolve",
            json={"styleId": "other", "references": ["Linen Weave"], "qualityTier": "LUXURY"},
        )
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 200
    request = svc.process_style_textures.call_args.args[0]
    assert request.style_id == "style-42"
    assert request.quality_tier.value == "LUXURY"


@pytest.mark.asyncio
async def test_invalid_body_rejected(client, service):
    resp = await client.post("/api/styles/s/materials/resolve", json={"maxItems": -1})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_clear_cache(client, service):
    await service.cache(EntityKind.MATERIAL).get()
    assert service.cache(EntityKind.MATERIAL).is_warm

    resp = await client.post("/api/catalogue/cache/clear")

    assert resp.status_code == 200
    assert resp.json() == {"status": "cleared"}
    assert not service.cache(EntityKind.MATERIAL).is_warm


# ── Internal secret ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_secret_required_when_configured(client, service):
    with patch("api.security.get_settings", return_value=Settings(internal_api_secret="s3cret")):
        denied = await client.post("/api/catalogue/cache/clear")
        allowed = await client.post(
            "/api/catalogue/cache/clear", headers={"X-Internal-Secret": "s3cret"}
        )

    assert denied.status_code == 403
    assert allowed.status_code == 200


@pytest.mark.asyncio
async def test_health_is_public(client):
    with patch("api.security.get_settings", return_value=Settings(internal_api_secret="s3cret")):
        resp = await client.get("/api/health")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_call_metrics_endpoint(client):
    collector = get_metrics_collector()
    collector.reset()
    collector.record_call(operation=OP_IMAGE_GENERATION, status="ok", latency_ms=800, images=1)
    try:
        resp = await client.get("/api/catalogue/metrics")
    finally:
        collector.reset()

    assert resp.status_code == 200
    image_stats = resp.json()["operations"][OP_IMAGE_GENERATION]
    assert image_stats["count"] == 1
    assert image_stats["images"] == 1
