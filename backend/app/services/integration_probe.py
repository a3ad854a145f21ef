"""Probe the database and configured integrations on startup and report status."""

import logging

import httpx
from app.config import Settings
from app.database import ping_db

logger = logging.getLogger(__name__)


async def probe_all(settings: Settings) -> dict:
    """Check reachability of the database and TMDB. Returns status dict."""
    results = {}

    try:
        await ping_db()
        results["database"] = {"status": "ok"}
    except Exception as e:
        logger.warning(f"Database probe failed: {e}")
        results["database"] = {"status": "error", "detail": str(e)[:200]}

    async with httpx.AsyncClient(timeout=5.0) as client:
        if settings.has_tmdb:
            results["tmdb"] = await _probe(
                client,
                f"https://api.themoviedb.org/3/configuration?api_key={settings.tmdb_api_key}",
            )
        else:
            results["tmdb"] = {"status": "not_configured"}

    return results


async def _probe(client: httpx.AsyncClient, url: str) -> dict:
    """Probe a single endpoint."""
    try:
        resp = await client.get(url)
        return {
            "status": "ok" if resp.status_code < 400 else "error",
            "code": resp.status_code,
        }
    except httpx.ConnectError:
        return {"status": "unreachable"}
    except Exception as e:
        return {"status": "error", "detail": str(e)[:200]}
