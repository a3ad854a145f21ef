"""Shared FastAPI dependencies."""

from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.tmdb import TmdbClient
from app.config import settings
from app.database import get_db
from app.services.storage import MediaStorage
from app.services.tracker import TrackerService


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Authentication stub: the X-User-Id header, else the configured default user."""
    user_id = (x_user_id or "").strip()
    return user_id or settings.default_user_id


async def get_storage(db: AsyncSession = Depends(get_db)) -> MediaStorage:
    return MediaStorage(db)


async def get_tracker(storage: MediaStorage = Depends(get_storage)) -> TrackerService:
    return TrackerService(storage)


async def get_tmdb_client() -> TmdbClient:
    if not settings.has_tmdb:
        raise HTTPException(status_code=503, detail="TMDB is not configured")
    return TmdbClient(settings.tmdb_api_key, settings.tmdb_language)
