"""ORM row -> JSON dict helpers shared by the routers."""

from datetime import datetime
from typing import Optional

from app.models.tables import MediaItem, Achievement, User, UserStats
from app.services.progress import progress_percent


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def item_out(item: MediaItem) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "type": item.type,
        "status": item.status,
        "progress": item.progress or "",
        "progress_percent": progress_percent(item),
        "season": item.season,
        "episode": item.episode,
        "chapter": item.chapter,
        "total_episodes": item.total_episodes,
        "total_seasons": item.total_seasons,
        "total_chapters": item.total_chapters,
        "genre": item.genre,
        "notes": item.notes,
        "rating": item.rating,
        "time_spent": item.time_spent,
        "is_archived": bool(item.is_archived),
        "image_url": item.image_url,
        "description": item.description,
        "external_id": item.external_id,
        "release_year": item.release_year,
        "date_added": _iso(item.date_added),
        "updated_at": _iso(item.updated_at),
        "date_completed": _iso(item.date_completed),
    }


def items_out(items: list[MediaItem]) -> list[dict]:
    return [item_out(item) for item in items]


def achievement_out(achievement: Achievement) -> dict:
    return {
        "id": achievement.id,
        "type": achievement.type,
        "title": achievement.title,
        "description": achievement.description,
        "unlocked_at": _iso(achievement.unlocked_at),
        "metadata": achievement.details or {},
    }


def user_stats_out(stats: UserStats) -> dict:
    return {
        "total_items": stats.total_items or 0,
        "completed_items": stats.completed_items or 0,
        "in_progress_items": stats.in_progress_items or 0,
        "planned_items": stats.planned_items or 0,
        "dropped_items": stats.dropped_items or 0,
        "total_time_spent": stats.total_time_spent or 0,
        "points": stats.points or 0,
        "current_streak": stats.current_streak or 0,
        "longest_streak": stats.longest_streak or 0,
        "last_login_date": stats.last_login_date.isoformat() if stats.last_login_date else None,
        "last_activity": _iso(stats.last_activity),
    }


def user_out(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "nickname": user.nickname,
        "display_name": user.display_name,
        "profile_image_url": user.profile_image_url,
        "created_at": _iso(user.created_at),
    }
