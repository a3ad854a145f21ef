"""Tracker service — orchestrates the library, progress and gamification.

Every mutation follows the same path: apply the change, re-derive the
progress string through the codec, then ``_sync`` the user's denormalised
counters and unlock any achievements the fresh snapshot qualifies for.
"""

import logging
import random
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from difflib import SequenceMatcher
from typing import Callable, Iterable, Optional

from app.models.tables import MediaItem, Achievement, User, UserStats
from app.services.achievements import evaluate_achievements, achievement_progress
from app.services.collections import smart_collections
from app.services.progress import (
    ProgressUpdate, format_progress, increment_progress, set_progress,
    parse_progress, parse_quick_command,
)
from app.services.rewards import DailyReward, LeaderboardEntry, claim_daily_reward, rank_leaderboard
from app.services.statistics import StatsSnapshot, aggregate
from app.services.vocabulary import (
    ProgressShape, StatusBucket, completed_status, planned_status, progress_shape,
    resolve_status_filter, status_bucket, statuses_in,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title", "type", "status", "season", "episode", "chapter",
    "total_episodes", "total_seasons", "total_chapters", "genre", "notes",
    "rating", "time_spent", "is_archived", "image_url", "description",
    "external_id", "release_year",
)
PROGRESS_FIELDS = ("season", "episode", "chapter")

# Minimum difflib ratio for a fuzzy title match
TITLE_MATCH_THRESHOLD = 0.5


class MediaNotFoundError(LookupError):
    """No media item matches the requested id or title."""


class QuickCommandError(ValueError):
    """A quick-update command could not be applied."""


@dataclass
class MutationResult:
    item: MediaItem
    achievements: list[Achievement] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_title(text: str) -> str:
    text = re.sub(r"[^\w\s]", "", text.casefold())
    return re.sub(r"\s+", " ", text).strip()


def _initials(title: str) -> str:
    return "".join(word[0] for word in title.split() if word)


def match_title(query: str, items: Iterable[MediaItem]) -> Optional[MediaItem]:
    """Best title match: exact, then initials ("aot"), substring, similarity."""
    q = _normalize_title(query)
    if not q:
        return None
    candidates = [(item, _normalize_title(item.title or "")) for item in items]

    for item, title in candidates:
        if title == q:
            return item
    for item, title in candidates:
        if _initials(title) == q.replace(" ", ""):
            return item
    for item, title in candidates:
        if q in title:
            return item

    best, best_score = None, TITLE_MATCH_THRESHOLD
    for item, title in candidates:
        score = SequenceMatcher(None, q, title).ratio()
        if score >= best_score:
            best, best_score = item, score
    return best


class TrackerService:
    """Media library operations for one request's storage session."""

    def __init__(self, storage, clock: Optional[Callable[[], datetime]] = None):
        self.storage = storage
        self.clock = clock or _utcnow

    # ── Library ──────────────────────────────────────────────────

    async def list_media(
        self,
        user_id: str,
        media_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[MediaItem]:
        if media_type == "all":
            media_type = None
        return await self.storage.list_items(
            user_id, media_type=media_type, statuses=resolve_status_filter(status),
        )

    async def get_media(self, user_id: str, item_id: str) -> MediaItem:
        item = await self.storage.get_item(user_id, item_id)
        if item is None:
            raise MediaNotFoundError(f"Media item {item_id} not found")
        return item

    async def create_media(self, user_id: str, data: dict) -> MutationResult:
        now = self.clock()
        await self.storage.ensure_user(user_id)

        item = MediaItem(user_id=user_id, is_archived=False, date_added=now, updated_at=now)
        self._apply(item, data)
        if not item.status:
            item.status = planned_status(item.type)
        if status_bucket(item.status) is StatusBucket.COMPLETED:
            item.date_completed = now
        self._refresh_progress(item)

        await self.storage.save(item)
        logger.info(f"Added {item.type} '{item.title}' for {user_id}")
        return MutationResult(item, await self._sync(user_id))

    async def update_media(self, user_id: str, item_id: str, data: dict) -> MutationResult:
        item = await self.get_media(user_id, item_id)
        self._update(item, data, self.clock())
        await self.storage.save(item)
        return MutationResult(item, await self._sync(user_id))

    async def delete_media(self, user_id: str, item_id: str) -> None:
        item = await self.get_media(user_id, item_id)
        await self.storage.delete(item)
        await self._sync(user_id)

    # ── Progress ─────────────────────────────────────────────────

    async def increment_progress(self, user_id: str, item_id: str, amount: int = 1) -> MutationResult:
        item = await self.get_media(user_id, item_id)
        update = increment_progress(item.type, item.season, item.episode, item.chapter, amount)
        return await self._save_progress(user_id, item, update)

    async def set_progress(self, user_id: str, item_id: str, value: int) -> MutationResult:
        item = await self.get_media(user_id, item_id)
        update = set_progress(item.type, value, item.season, item.episode, item.chapter)
        return await self._save_progress(user_id, item, update)

    async def complete_media(self, user_id: str, item_id: str) -> MutationResult:
        item = await self.get_media(user_id, item_id)
        self._update(item, {"status": completed_status(item.type)}, self.clock())
        await self.storage.save(item)
        return MutationResult(item, await self._sync(user_id))

    async def quick_update(
        self, user_id: str, command: str, item_id: Optional[str] = None,
    ) -> MutationResult:
        """Apply a quick command: ``"+3"``, ``"7"`` (needs item_id) or ``"aot 5"``."""
        parsed = parse_quick_command(command)
        if parsed is None:
            raise QuickCommandError(f"Unrecognised command: {command!r}")

        if parsed.title:
            item = match_title(parsed.title, await self.storage.list_items(user_id))
            if item is None:
                raise MediaNotFoundError(f"No media item matches '{parsed.title}'")
        elif item_id:
            item = await self.get_media(user_id, item_id)
        else:
            raise QuickCommandError("Select an item or include a title in the command")

        if progress_shape(item.type) is ProgressShape.NONE:
            raise QuickCommandError(f"'{item.title}' has no episode or chapter progress")

        if parsed.relative:
            update = increment_progress(item.type, item.season, item.episode, item.chapter, parsed.amount)
        else:
            update = set_progress(item.type, parsed.amount, item.season, item.episode, item.chapter)
        return await self._save_progress(user_id, item, update)

    # ── Bulk ─────────────────────────────────────────────────────

    async def bulk_update(self, user_id: str, item_ids: list[str], data: dict) -> tuple[list[MediaItem], list[Achievement]]:
        now = self.clock()
        items = await self.storage.get_items(user_id, item_ids)
        for item in items:
            self._update(item, data, now)
            await self.storage.save(item)
        logger.info(f"Bulk updated {len(items)}/{len(item_ids)} items for {user_id}")
        return items, await self._sync(user_id)

    async def bulk_delete(self, user_id: str, item_ids: list[str]) -> int:
        items = await self.storage.get_items(user_id, item_ids)
        for item in items:
            await self.storage.delete(item)
        logger.info(f"Bulk deleted {len(items)}/{len(item_ids)} items for {user_id}")
        await self._sync(user_id)
        return len(items)

    # ── Views ────────────────────────────────────────────────────

    async def in_progress(self, user_id: str) -> list[MediaItem]:
        return await self.storage.list_items(user_id, statuses=statuses_in(StatusBucket.ACTIVE))

    async def recent(self, user_id: str, limit: int = 10) -> list[MediaItem]:
        return await self.storage.recent_items(user_id, limit)

    async def search(self, user_id: str, query: str) -> list[MediaItem]:
        return await self.storage.search_items(user_id, query.strip())

    async def random_pick(
        self,
        user_id: str,
        media_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> MediaItem:
        items = await self.list_media(user_id, media_type, status)
        if not items:
            raise MediaNotFoundError("No media items match the filters")
        return random.choice(items)

    async def collections(self, user_id: str) -> dict[str, list[MediaItem]]:
        return smart_collections(await self.storage.list_items(user_id), self.clock())

    # ── Stats & achievements ─────────────────────────────────────

    async def stats(self, user_id: str) -> StatsSnapshot:
        return aggregate(await self.storage.list_items(user_id))

    async def user_stats(self, user_id: str) -> UserStats:
        return await self.storage.ensure_user_stats(user_id)

    async def achievements(self, user_id: str) -> list[Achievement]:
        return await self.storage.list_achievements(user_id)

    async def achievement_progress(self, user_id: str) -> list[dict]:
        stats = await self.stats(user_id)
        unlocked = await self.storage.unlocked_achievement_types(user_id)
        return achievement_progress(stats, unlocked)

    async def check_achievements(self, user_id: str) -> list[Achievement]:
        return await self._sync(user_id)

    # ── Rewards ──────────────────────────────────────────────────

    async def claim_daily_reward(self, user_id: str) -> tuple[DailyReward, UserStats]:
        await self.storage.ensure_user(user_id)
        row = await self.storage.ensure_user_stats(user_id)
        today = self.clock().date()

        reward = claim_daily_reward(row.last_login_date, row.current_streak, row.longest_streak, today)
        if reward.claimed:
            row.points = (row.points or 0) + reward.points
            row.current_streak = reward.streak
            row.longest_streak = reward.longest_streak
            row.last_login_date = today
            await self.storage.save(row)
            logger.info(f"{user_id} claimed {reward.points} points ({reward.label})")
        return reward, row

    async def leaderboard(self, limit: Optional[int] = 10) -> list[LeaderboardEntry]:
        return rank_leaderboard(await self.storage.leaderboard_rows(), limit)

    # ── Profile ──────────────────────────────────────────────────

    async def profile(self, user_id: str) -> tuple[User, UserStats]:
        user = await self.storage.ensure_user(user_id)
        return user, await self.storage.ensure_user_stats(user_id)

    async def set_nickname(self, user_id: str, nickname: Optional[str]) -> User:
        user = await self.storage.ensure_user(user_id)
        user.nickname = (nickname or "").strip() or None
        user.updated_at = self.clock()
        return await self.storage.save(user)

    # ── Internals ────────────────────────────────────────────────

    def _apply(self, item: MediaItem, data: dict) -> None:
        for name in EDITABLE_FIELDS:
            if name in data:
                setattr(item, name, data[name])
        # A progress string only counts when no numeric field was sent
        text = data.get("progress")
        if text and not any(name in data for name in PROGRESS_FIELDS):
            parsed = parse_progress(item.type, text)
            for name in PROGRESS_FIELDS:
                value = getattr(parsed, name)
                if value is not None:
                    setattr(item, name, value)

    def _refresh_progress(self, item: MediaItem) -> None:
        if progress_shape(item.type) is ProgressShape.EPISODIC and item.episode is not None and item.season is None:
            item.season = 1
        item.progress = format_progress(item.type, item.season, item.episode, item.chapter)

    def _update(self, item: MediaItem, data: dict, now: datetime) -> None:
        was_completed = status_bucket(item.status) is StatusBucket.COMPLETED
        self._apply(item, data)
        is_completed = status_bucket(item.status) is StatusBucket.COMPLETED
        if is_completed and not was_completed:
            item.date_completed = now
        elif not is_completed:
            item.date_completed = None
        self._refresh_progress(item)
        item.updated_at = now

    async def _save_progress(self, user_id: str, item: MediaItem, update: ProgressUpdate) -> MutationResult:
        item.season, item.episode, item.chapter = update.season, update.episode, update.chapter
        self._refresh_progress(item)
        item.updated_at = self.clock()
        await self.storage.save(item)
        return MutationResult(item, await self._sync(user_id))

    async def _sync(self, user_id: str) -> list[Achievement]:
        """Refresh persisted counters and persist newly qualified achievements."""
        now = self.clock()
        stats = aggregate(await self.storage.list_items(user_id))

        row = await self.storage.ensure_user_stats(user_id)
        row.total_items = stats.total
        row.completed_items = stats.completed_count
        row.in_progress_items = stats.in_progress_count
        row.planned_items = stats.planned_count
        row.dropped_items = stats.dropped_count
        row.total_time_spent = stats.time_spent_minutes
        row.last_activity = now
        await self.storage.save(row)

        unlocked = await self.storage.unlocked_achievement_types(user_id)
        new = []
        for descriptor in evaluate_achievements(stats, unlocked):
            achievement = await self.storage.add_achievement(user_id, descriptor, now)
            if achievement is not None:
                logger.info(f"Unlocked {descriptor.type} for {user_id}")
                new.append(achievement)
        return new
