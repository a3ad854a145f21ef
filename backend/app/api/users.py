"""User profile endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from app.api.deps import get_current_user_id, get_tracker
from app.api.serializers import user_out, user_stats_out
from app.services.tracker import TrackerService

router = APIRouter()


class NicknameRequest(BaseModel):
    nickname: Optional[str] = Field(None, max_length=100)


@router.get("/users/me")
async def me(
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Current user's profile with points and counters."""
    user, stats = await tracker.profile(user_id)
    return {**user_out(user), "stats": user_stats_out(stats)}


@router.patch("/users/me/nickname")
async def set_nickname(
    body: NicknameRequest,
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Set or clear (empty string) the leaderboard nickname."""
    return user_out(await tracker.set_nickname(user_id, body.nickname))
