"""Daily rewards, points and leaderboard endpoints."""

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_user_id, get_tracker
from app.services.rewards import DAILY_REWARD_CYCLE
from app.services.tracker import TrackerService

router = APIRouter()


@router.post("/rewards/daily")
async def claim_daily(
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    """Claim today's login reward (once per calendar day)."""
    reward, row = await tracker.claim_daily_reward(user_id)
    return {
        "claimed": reward.claimed,
        "day": reward.day,
        "label": reward.label,
        "points_awarded": reward.points,
        "total_points": row.points or 0,
        "current_streak": reward.streak,
        "longest_streak": reward.longest_streak,
        "cycle": list(DAILY_REWARD_CYCLE),
    }


@router.get("/rewards/points")
async def points(
    user_id: str = Depends(get_current_user_id),
    tracker: TrackerService = Depends(get_tracker),
):
    row = await tracker.user_stats(user_id)
    return {
        "points": row.points or 0,
        "current_streak": row.current_streak or 0,
        "longest_streak": row.longest_streak or 0,
        "last_login_date": row.last_login_date.isoformat() if row.last_login_date else None,
    }


@router.get("/leaderboard")
async def leaderboard(
    limit: int = Query(10, ge=1, le=100),
    tracker: TrackerService = Depends(get_tracker),
):
    entries = await tracker.leaderboard(limit)
    return {"leaderboard": [entry.to_dict() for entry in entries]}
