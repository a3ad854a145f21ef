"""Media library endpoints: CRUD, progress, quick update and bulk actions."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field, field_validator

from app.api.deps import get_current_user_id, get_tracker
from app.api.serializers import achievement_out, item_out, items_out
from app.config import settings
from app.services.tracker import MutationResult, TrackerService

router = APIRouter()


# ── Request schemas ──────────────────────────────────────────────

# Upper bound of a PostgreSQL INTEGER column
MAX_INT = 2**31 - 1


class MediaFields(BaseModel):
    status: Optional[str] = None
    progress: Optional[str] = None
    season: Optional[int] = Field(None, ge=0, le=MAX_INT)
    episode: Optional[int] = Field(None, ge=0, le=MAX_INT)
    chapter: Optional[int] = Field(None, ge=0, le=MAX_INT)
    total_episodes: Optional[int] = Field(None, ge=0, le=MAX_INT)
    total_seasons: Optional[int] = Field(None, ge=0, le=MAX_INT)
    total_chapters: Optional[int] = Field(None, ge=0, le=MAX_INT)
    genre: Optional[str] = None
    notes: Optional[str] = None
    rating: Optional[int] = Field(None, ge=0, le=10)
    time_spent: Optional[int] = Field(None, ge=0, le=MAX_INT)
    image_url: Optional[str] = None
    description: Optional[str] = None
    external_id: Optional[str] = None
    release_year: Optional[int] = Field(None, ge=-MAX_INT, le=MAX_INT)


class MediaCreate(MediaFields):
    title: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)


class MediaUpdate(MediaFields):
    title: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = Field(None, min_length=1)
    is_archived: Optional[bool] = None

    @field_validator("title", "type", "status", "is_archived")
    @classmethod
    def not_null(cls, value):
        # Omitting a required column is fine; nulling it is not
        if value is None:
            raise ValueError("must not be null")
        return value


class IncrementRequest(BaseModel):
    amount: int = Field(1, ge=-MAX_INT, le=MAX_INT)


class ProgressRequest(BaseModel):
    value: int = Field(..., ge=0, le=MAX_INT)


class QuickUpdateRequest(BaseModel):
    command: str = Field(..., min_length=1)
    item_id: Optional[str] = None


class BulkUpdateRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)
    updates: MediaUpdate


class BulkDeleteRequest(BaseModel):
    ids: list[str] = Field(..., min_length=1)


def _mutation_out(result: MutationResult) -> dict:
    return {
        "item": item_out(result.item),
        "achievements": [achievement_out(a) for a in result.achievements],
    }


# ── Collection routes (declared before /media/{item_id}) ─────────

@router.get("/media")
async def list_media(
    media_type: Optional[str] = Query(None, alias="type"),
    status: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Library listing, filterable by type and status (or planned/inprogress/... aliases)."""
    items = await tracker.list_media(user_id, media_type, status)
    return {"items": items_out(items), "total": len(items)}


@router.post("/media", status_code=201)
async def create_media(
    body: MediaCreate,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    result = await tracker.create_media(user_id, body.model_dump(exclude_unset=True))
    return _mutation_out(result)


@router.get("/media/in-progress")
async def in_progress(
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    items = await tracker.in_progress(user_id)
    return {"items": items_out(items), "total": len(items)}


@router.get("/media/recent")
async def recent(
    limit: int = Query(settings.recent_limit, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    items = await tracker.recent(user_id, limit)
    return {"items": items_out(items), "total": len(items)}


@router.get("/media/search")
async def search_media(
    q: str = "",
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    if not q.strip():
        raise HTTPException(status_code=400, detail="Query parameter 'q' is required")
    items = await tracker.search(user_id, q)
    return {"items": items_out(items), "total": len(items)}


@router.get("/media/random")
async def random_media(
    media_type: Optional[str] = Query(None, alias="type"),
    status: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    item = await tracker.random_pick(user_id, media_type, status)
    return item_out(item)


@router.get("/media/collections")
async def collections(
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Dashboard shelves: continue watching, almost done, dropping soon, binge ready."""
    shelves = await tracker.collections(user_id)
    return {name: items_out(items) for name, items in shelves.items()}


@router.post("/media/quick-update")
async def quick_update(
    body: QuickUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Apply "+3", "7" (with item_id) or "attack on titan 5" style commands."""
    result = await tracker.quick_update(user_id, body.command, body.item_id)
    return _mutation_out(result)


@router.post("/media/bulk/update")
async def bulk_update(
    body: BulkUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    items, unlocked = await tracker.bulk_update(
        user_id, body.ids, body.updates.model_dump(exclude_unset=True),
    )
    return {
        "updated": len(items),
        "items": items_out(items),
        "achievements": [achievement_out(a) for a in unlocked],
    }


@router.post("/media/bulk/delete")
async def bulk_delete(
    body: BulkDeleteRequest,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    deleted = await tracker.bulk_delete(user_id, body.ids)
    return {"deleted": deleted}


# ── Single item ──────────────────────────────────────────────────

@router.get("/media/{item_id}")
async def get_media(
    item_id: str,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    return item_out(await tracker.get_media(user_id, item_id))


@router.patch("/media/{item_id}")
async def update_media(
    item_id: str,
    body: MediaUpdate,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    result = await tracker.update_media(user_id, item_id, body.model_dump(exclude_unset=True))
    return _mutation_out(result)


@router.delete("/media/{item_id}", status_code=204)
async def delete_media(
    item_id: str,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    await tracker.delete_media(user_id, item_id)
    return Response(status_code=204)


@router.post("/media/{item_id}/increment")
async def increment(
    item_id: str,
    body: Optional[IncrementRequest] = None,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Advance the current episode/chapter (default +1)."""
    amount = body.amount if body else 1
    result = await tracker.increment_progress(user_id, item_id, amount)
    return _mutation_out(result)


@router.post("/media/{item_id}/complete")
async def complete(
    item_id: str,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    result = await tracker.complete_media(user_id, item_id)
    return _mutation_out(result)


@router.put("/media/{item_id}/progress")
async def set_progress(
    item_id: str,
    body: ProgressRequest,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Set the current episode/chapter to an absolute value."""
    result = await tracker.set_progress(user_id, item_id, body.value)
    return _mutation_out(result)
