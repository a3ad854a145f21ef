"""Health and system status endpoints."""

from fastapi import APIRouter, Request
from datetime import datetime, timezone

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Service health check with database and TMDB status from startup."""
    integrations = getattr(request.app.state, "integrations", {})
    return {
        "status": "ok",
        "version": request.app.version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "integrations": integrations,
    }
