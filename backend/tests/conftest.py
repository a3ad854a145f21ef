"""Shared fixtures: an in-memory storage double, a controllable clock, an API client."""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_tracker
from app.main import app
from app.models.tables import User, MediaItem, Achievement, UserStats
from app.services.tracker import TrackerService


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeStorage:
    """Dict-backed stand-in for MediaStorage with the same async interface."""

    def __init__(self):
        self.items: dict[str, MediaItem] = {}
        self.achievements: list[Achievement] = []
        self.users: dict[str, User] = {}
        self.stats: dict[str, UserStats] = {}

    def _live(self, user_id):
        live = [i for i in self.items.values() if i.user_id == user_id and not i.is_archived]
        return sorted(live, key=lambda i: i.date_added, reverse=True)

    async def list_items(self, user_id, media_type=None, statuses=None):
        items = self._live(user_id)
        if media_type:
            items = [i for i in items if i.type == media_type]
        if statuses:
            items = [i for i in items if i.status in statuses]
        return items

    async def get_item(self, user_id, item_id):
        item = self.items.get(item_id)
        return item if item is not None and item.user_id == user_id else None

    async def get_items(self, user_id, item_ids):
        return [i for i in self.items.values() if i.user_id == user_id and i.id in item_ids]

    async def search_items(self, user_id, query):
        q = query.casefold()
        return [i for i in self._live(user_id) if q in i.title.casefold()]

    async def recent_items(self, user_id, limit=10):
        return self._live(user_id)[:limit]

    async def save(self, obj):
        if isinstance(obj, MediaItem):
            if obj.id is None:
                obj.id = str(uuid.uuid4())
            self.items[obj.id] = obj
        elif isinstance(obj, User):
            self.users[obj.id] = obj
        elif isinstance(obj, UserStats):
            self.stats[obj.user_id] = obj
        return obj

    async def delete(self, obj):
        self.items.pop(obj.id, None)

    async def list_achievements(self, user_id):
        mine = [a for a in self.achievements if a.user_id == user_id]
        return sorted(mine, key=lambda a: a.unlocked_at, reverse=True)

    async def unlocked_achievement_types(self, user_id):
        return {a.type for a in self.achievements if a.user_id == user_id}

    async def add_achievement(self, user_id, descriptor, unlocked_at):
        if descriptor.type in await self.unlocked_achievement_types(user_id):
            return None
        achievement = Achievement(
            id=str(uuid.uuid4()),
            user_id=user_id,
            type=descriptor.type,
            title=descriptor.title,
            description=descriptor.description,
            details=descriptor.metadata,
            unlocked_at=unlocked_at,
        )
        self.achievements.append(achievement)
        return achievement

    async def get_user(self, user_id):
        return self.users.get(user_id)

    async def ensure_user(self, user_id):
        if user_id not in self.users:
            self.users[user_id] = User(id=user_id)
        return self.users[user_id]

    async def get_user_stats(self, user_id):
        return self.stats.get(user_id)

    async def ensure_user_stats(self, user_id):
        if user_id not in self.stats:
            self.stats[user_id] = UserStats(
                user_id=user_id, total_items=0, completed_items=0,
                in_progress_items=0, planned_items=0, dropped_items=0,
                total_time_spent=0, points=0, current_streak=0, longest_streak=0,
            )
        return self.stats[user_id]

    async def leaderboard_rows(self):
        rows = []
        for user_id, stats in self.stats.items():
            user = self.users.get(user_id)
            rows.append({
                "user_id": user_id,
                "display_name": user.display_name if user else user_id,
                "points": stats.points,
                "current_streak": stats.current_streak,
            })
        return rows


def make_item(**overrides):
    """Attribute bag shaped like a MediaItem row, for the pure modules."""
    fields = dict(
        id=None, title="Untitled", type="Anime", status="To Watch", progress="",
        season=None, episode=None, chapter=None,
        total_episodes=None, total_seasons=None, total_chapters=None,
        genre=None, time_spent=None, is_archived=False,
        date_added=None, updated_at=None, date_completed=None,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


@pytest.fixture
def now():
    return datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(now):
    return FakeClock(now)


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def tracker(storage, clock):
    return TrackerService(storage, clock=clock)


@pytest.fixture
def client(tracker):
    # No context manager: the lifespan (database setup) stays off
    app.dependency_overrides[get_tracker] = lambda: tracker
    yield TestClient(app)
    app.dependency_overrides.clear()
