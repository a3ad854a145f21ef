"""Media Tracker — FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.api import health, media, stats, achievements, rewards, users, search
from app.services.tracker import MediaNotFoundError, QuickCommandError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup: create tables, probe database and TMDB
    from app.database import init_db, engine
    from app.services.integration_probe import probe_all

    await init_db()
    app.state.integrations = await probe_all(settings)
    logger.info(f"{settings.app_name} started: {app.state.integrations}")
    yield
    # Shutdown: close DB pool
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description="Personal media tracker with progress, stats and achievements",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
)

# CORS: configured frontend origins + production URL
app.add_middleware(
    CORSMiddleware,
    allow_origins=[*settings.cors_origins, settings.app_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error handlers ───────────────────────────────────────────────

@app.exception_handler(MediaNotFoundError)
async def not_found_handler(request: Request, exc: MediaNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(QuickCommandError)
async def quick_command_handler(request: Request, exc: QuickCommandError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error: %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ── Mount routers ────────────────────────────────────────────────
app.include_router(health.router,        prefix="/api/v1", tags=["system"])
app.include_router(media.router,         prefix="/api/v1", tags=["media"])
app.include_router(stats.router,         prefix="/api/v1", tags=["stats"])
app.include_router(achievements.router,  prefix="/api/v1", tags=["achievements"])
app.include_router(rewards.router,       prefix="/api/v1", tags=["rewards"])
app.include_router(users.router,         prefix="/api/v1", tags=["users"])
app.include_router(search.router,        prefix="/api/v1", tags=["search"])
