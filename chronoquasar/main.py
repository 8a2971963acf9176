"""
FastAPI Application — entry point.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chronoquasar import __version__
from chronoquasar.config import settings
from chronoquasar.database import store
from chronoquasar.errors import (
    CredentialMissingError,
    NotFoundError,
    ProviderQueryError,
    ValidationError,
)
from chronoquasar.routes import router
from chronoquasar.routes.analytics import analytics_router
from chronoquasar.routes.sessions import session_router
from chronoquasar.routes.settings import settings_router
from chronoquasar.services.refresher import periodic_analytics_refresh
from chronoquasar.services.snapshots import periodic_hourly_snapshots

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown hook."""
    logger.info("🚀 Starting ChronoQuasar API v%s", __version__)
    logger.info("📊 Plausible: %s", settings.plausible_base_url)
    logger.info("🔑 API Key: %s", "Configured" if store.api_key else "Not configured")

    tasks: list[asyncio.Task] = []
    if settings.schedulers_enabled:
        tasks.append(asyncio.create_task(periodic_analytics_refresh(store)))
        tasks.append(asyncio.create_task(periodic_hourly_snapshots(store)))
        logger.info(
            "⏰ Analytics auto-refresh every %d min, hourly snapshots every %d min",
            settings.refresh_interval_minutes,
            settings.snapshot_interval_minutes,
        )
    else:
        logger.info("ℹ️ Background schedulers disabled")

    yield

    # Shutdown
    for task in tasks:
        task.cancel()
    for task in tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass
    logger.info("👋 Shutdown complete")


app = FastAPI(
    title="ChronoQuasar API",
    description=(
        "Content-operations dashboard — daily article sessions, focus sets, "
        "and Plausible traffic analytics for tracked URLs."
    ),
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error mapping ───────────────────────────────────────

@app.exception_handler(NotFoundError)
async def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ValidationError)
async def _invalid(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(CredentialMissingError)
async def _no_credential(request: Request, exc: CredentialMissingError):
    return JSONResponse(
        status_code=400,
        content={"detail": exc.message, "error": exc.message, "needsApiKey": True},
    )


@app.exception_handler(ProviderQueryError)
async def _provider_failed(request: Request, exc: ProviderQueryError):
    logger.error("Plausible query failed: %s", exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


app.include_router(router, prefix="/api")
app.include_router(session_router, prefix="/api")
app.include_router(analytics_router, prefix="/api")
app.include_router(settings_router, prefix="/api")


@app.get("/", include_in_schema=False)
async def root():
    return {
        "service": "ChronoQuasar API",
        "version": __version__,
        "docs": "/docs",
    }
