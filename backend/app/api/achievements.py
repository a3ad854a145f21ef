"""Achievement endpoints."""

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user_id, get_tracker
from app.api.serializers import achievement_out
from app.services.tracker import TrackerService

router = APIRouter()


@router.get("/achievements")
async def list_achievements(
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Unlocked achievements, newest first."""
    unlocked = await tracker.achievements(user_id)
    return {"achievements": [achievement_out(a) for a in unlocked], "total": len(unlocked)}


@router.get("/achievements/progress")
async def achievement_progress(
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    return {"achievements": await tracker.achievement_progress(user_id)}


@router.post("/achievements/check")
async def check_achievements(
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Evaluate now and return anything newly unlocked."""
    unlocked = await tracker.check_achievements(user_id)
    return {"unlocked": [achievement_out(a) for a in unlocked]}
