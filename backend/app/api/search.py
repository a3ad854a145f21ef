"""External catalog search (TMDB) for prefilling new items."""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_tmdb_client
from app.clients.tmdb import TmdbClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/search/external")
async def search_external(
    q: str = Query(..., min_length=1),
    media_type: str = Query("Movies", alias="type"),
    tmdb: TmdbClient = Depends(get_tmdb_client),
):
    """Catalog matches for Movies / TV Shows / Anime; text media return none."""
    try:
        results = await tmdb.search(q.strip(), media_type)
    except httpx.HTTPError as e:
        logger.warning(f"TMDB search failed for '{q}': {e}")
        raise HTTPException(status_code=502, detail="External search failed")
    return {"results": results, "total": len(results)}
