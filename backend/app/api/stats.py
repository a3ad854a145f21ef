"""Library statistics endpoints."""

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user_id, get_tracker
from app.api.serializers import items_out, user_stats_out
from app.services.tracker import TrackerService

router = APIRouter()

RECENTLY_ADDED = 5


@router.get("/stats")
async def library_stats(
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Fresh snapshot: counts by status/type/genre, completion rate, time spent."""
    snapshot = await tracker.stats(user_id)
    recent = await tracker.recent(user_id, RECENTLY_ADDED)
    return {**snapshot.to_dict(), "recently_added": items_out(recent)}


@router.get("/stats/user")
async def user_stats(
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Persisted per-user counters and reward state."""
    return user_stats_out(await tracker.user_stats(user_id))
