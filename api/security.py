"""Shared-secret check for internal (service → service) calls."""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from config.settings import get_settings

logger = logging.getLogger(__name__)


def verify_internal_secret(request: Request) -> None:
    """Verify the ``X-Internal-Secret`` header when a secret is configured."""
    settings = get_settings()
    if not settings.internal_api_secret:
        logger.warning("INTERNAL_API_SECRET not configured, resolution endpoints unprotected")
        return

    provided = request.headers.get("X-Internal-Secret", "")
    if provided != settings.internal_api_secret:
        raise HTTPException(status_code=403, detail="Invalid internal secret")
