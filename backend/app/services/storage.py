"""Data access for media items, achievements, users and per-user stats.

Thin async wrapper over the ORM tables. Queries over media items always
exclude archived rows except ``get_item``/``get_items``, which address rows
directly by id.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import select, and_, desc
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.tables import User, MediaItem, Achievement, UserStats
from app.services.achievements import AchievementDescriptor

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def contains_pattern(query: str) -> str:
    """LIKE pattern matching ``query`` literally anywhere in the value."""
    escaped = (
        query.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def title_search(user_id: str, query: str):
    """Unarchived items whose title contains ``query``, newest first."""
    return (
        select(MediaItem)
        .where(
            and_(
                MediaItem.user_id == user_id,
                MediaItem.is_archived.is_(False),
                MediaItem.title.ilike(contains_pattern(query), escape=LIKE_ESCAPE),
            )
        )
        .order_by(desc(MediaItem.date_added))
    )


def achievement_insert(user_id: str, descriptor: AchievementDescriptor, unlocked_at: datetime):
    """INSERT ... ON CONFLICT (user_id, type) DO NOTHING RETURNING the new row."""
    return (
        pg_insert(Achievement)
        .values(
            user_id=user_id,
            type=descriptor.type,
            title=descriptor.title,
            description=descriptor.description,
            details=descriptor.metadata,
            unlocked_at=unlocked_at,
        )
        .on_conflict_do_nothing(index_elements=["user_id", "type"])
        .returning(Achievement)
    )


class MediaStorage:
    """Persistence collaborator for TrackerService."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Media items ──────────────────────────────────────────────

    async def list_items(
        self,
        user_id: str,
        media_type: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None,
    ) -> list[MediaItem]:
        query = select(MediaItem).where(
            and_(MediaItem.user_id == user_id, MediaItem.is_archived.is_(False))
        )
        if media_type:
            query = query.where(MediaItem.type == media_type)
        if statuses:
            query = query.where(MediaItem.status.in_(list(statuses)))
        query = query.order_by(desc(MediaItem.date_added))

        result = await self.db.execute(query)
        return list(result.scalars())

    async def get_item(self, user_id: str, item_id: str) -> Optional[MediaItem]:
        result = await self.db.execute(
            select(MediaItem).where(
                and_(MediaItem.id == item_id, MediaItem.user_id == user_id)
            )
        )
        return result.scalar_one_or_none()

    async def get_items(self, user_id: str, item_ids: Sequence[str]) -> list[MediaItem]:
        if not item_ids:
            return []
        result = await self.db.execute(
            select(MediaItem).where(
                and_(MediaItem.user_id == user_id, MediaItem.id.in_(list(item_ids)))
            )
        )
        return list(result.scalars())

    async def search_items(self, user_id: str, query: str) -> list[MediaItem]:
        """Case-insensitive substring match on title."""
        result = await self.db.execute(title_search(user_id, query))
        return list(result.scalars())

    async def recent_items(self, user_id: str, limit: int = 10) -> list[MediaItem]:
        result = await self.db.execute(
            select(MediaItem)
            .where(and_(MediaItem.user_id == user_id, MediaItem.is_archived.is_(False)))
            .order_by(desc(MediaItem.date_added))
            .limit(limit)
        )
        return list(result.scalars())

    async def save(self, obj):
        """Add or update any ORM row and load server-side defaults."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, obj) -> None:
        await self.db.delete(obj)
        await self.db.flush()

    # ── Achievements ─────────────────────────────────────────────

    async def list_achievements(self, user_id: str) -> list[Achievement]:
        result = await self.db.execute(
            select(Achievement)
            .where(Achievement.user_id == user_id)
            .order_by(desc(Achievement.unlocked_at))
        )
        return list(result.scalars())

    async def unlocked_achievement_types(self, user_id: str) -> set[str]:
        result = await self.db.execute(
            select(Achievement.type).where(Achievement.user_id == user_id)
        )
        return set(result.scalars())

    async def add_achievement(
        self,
        user_id: str,
        descriptor: AchievementDescriptor,
        unlocked_at: datetime,
    ) -> Optional[Achievement]:
        """Persist an unlock; returns None if (user_id, type) already exists."""
        result = await self.db.execute(achievement_insert(user_id, descriptor, unlocked_at))
        achievement = result.scalar_one_or_none()
        if achievement is None:
            logger.debug(f"Achievement {descriptor.type} already unlocked for {user_id}")
        return achievement

    # ── Users & stats ────────────────────────────────────────────

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def ensure_user(self, user_id: str) -> User:
        user = await self.get_user(user_id)
        if user is None:
            user = await self.save(User(id=user_id))
            logger.info(f"Created user {user_id}")
        return user

    async def get_user_stats(self, user_id: str) -> Optional[UserStats]:
        result = await self.db.execute(
            select(UserStats).where(UserStats.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def ensure_user_stats(self, user_id: str) -> UserStats:
        stats = await self.get_user_stats(user_id)
        if stats is None:
            stats = await self.save(UserStats(
                user_id=user_id,
                total_items=0,
                completed_items=0,
                in_progress_items=0,
                planned_items=0,
                dropped_items=0,
                total_time_spent=0,
                points=0,
                current_streak=0,
                longest_streak=0,
            ))
        return stats

    async def leaderboard_rows(self) -> list[dict]:
        """Points and display names for every user with a stats row."""
        result = await self.db.execute(
            select(UserStats, User).outerjoin(User, User.id == UserStats.user_id)
        )
        rows = []
        for stats, user in result.all():
            rows.append({
                "user_id": stats.user_id,
                "display_name": user.display_name if user else stats.user_id,
                "points": stats.points or 0,
                "current_streak": stats.current_streak or 0,
            })
        return rows
