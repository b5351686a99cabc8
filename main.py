"""FastAPI entry point for the catalogue entity resolution service."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings
from services.catalogue_store import get_catalogue_store

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle — open/close the catalogue store."""
    store = get_catalogue_store()
    await store.start()
    logger.info("Catalogue store ready (%s)", type(store).__name__)

    yield

    await store.close()


app = FastAPI(
    title="Catalogue Entity Resolution",
    description="Resolves AI-generated material and texture names to catalogue entities",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Middleware stack (outermost first) ─────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Register routers ────────────────────────────────────────
from api.health import router as health_router  # noqa: E402
from api.resolution import router as resolution_router  # noqa: E402

app.include_router(health_router)
app.include_router(resolution_router)


if __name__ == "__main__":
    # Production runs under gunicorn: gunicorn main:app -c deploy/gunicorn.conf.py
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.service_port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
