"""Resolution endpoints — called by the style-generation workflow.

All endpoints require the X-Internal-Secret header when
``INTERNAL_API_SECRET`` is configured.  The path ``style_id`` wins over any
``styleId`` in the body.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from api.security import verify_internal_secret
from errors import CatalogueStoreError
from models.resolution import BatchResult, ResolveRequest
from services.metrics import get_metrics_collector
from services.sub_agents import CatalogueResolutionService, get_resolution_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["resolution"],
    dependencies=[Depends(verify_internal_secret)],
)


@router.post(
    "/styles/{style_id}/materials/resolve",
    response_model=BatchResult,
    response_model_by_alias=True,
)
async def resolve_materials(
    style_id: str,
    req: ResolveRequest,
    service: CatalogueResolutionService = Depends(get_resolution_service),
):
    """Resolve material names to catalogue materials and link them to the style."""
    req = req.model_copy(update={"style_id": style_id})
    try:
        return await service.process_style_materials(req)
    except CatalogueStoreError as exc:
        logger.error("Material resolution aborted for style %s: %s", style_id, exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.post(
    "/styles/{style_id}/textures/resolve",
    response_model=BatchResult,
    response_model_by_alias=True,
)
async def resolve_textures(
    style_id: str,
    req: ResolveRequest,
    service: CatalogueResolutionService = Depends(get_resolution_service),
):
    """Resolve texture names (or material guidance) and link them to the style."""
    req = req.model_copy(update={"style_id": style_id})
    try:
        return await service.process_style_textures(req)
    except CatalogueStoreError as exc:
        logger.error("Texture resolution aborted for style %s: %s", style_id, exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.post("/catalogue/cache/clear")
async def clear_cache(
    service: CatalogueResolutionService = Depends(get_resolution_service),
):
    service.clear_caches()
    return {"status": "cleared"}


@router.get("/catalogue/metrics")
async def call_metrics():
    """Latency, token usage and estimated cost of matcher and image calls."""
    return get_metrics_collector().snapshot()
