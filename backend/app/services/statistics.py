"""Statistics aggregator — single-pass reduction of a library into a snapshot.

Snapshots are recomputed on every request and never cached. Unrecognised
statuses still count towards ``by_status`` but towards none of the collapsed
buckets, so ``completed_count + in_progress_count`` may be less than
``total``.
"""

import math
from dataclasses import dataclass, field, asdict
from typing import Iterable, Optional

from app.services.progress import current_unit
from app.services.vocabulary import MediaType, StatusBucket, parse_media_type, status_bucket

UNKNOWN = "Unknown"

# Minutes per unit when an item carries no explicit time_spent
MINUTES_PER_UNIT = {
    MediaType.ANIME: 24,
    MediaType.TV_SHOWS: 45,
    MediaType.MANHWA: 3,
    MediaType.MANHUA: 3,
    MediaType.PORNHWA: 3,
}
MINUTES_PER_MOVIE = 120


@dataclass
class TypeBreakdown:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    planned: int = 0
    dropped: int = 0


@dataclass
class StatsSnapshot:
    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_type: dict[str, TypeBreakdown] = field(default_factory=dict)
    by_genre: dict[str, int] = field(default_factory=dict)
    completed_count: int = 0
    in_progress_count: int = 0
    planned_count: int = 0
    dropped_count: int = 0
    on_hold_count: int = 0
    time_spent_minutes: int = 0

    @property
    def top_genres(self) -> list[dict]:
        # sorted() is stable, so equal counts keep first-seen order
        ranked = sorted(self.by_genre.items(), key=lambda kv: kv[1], reverse=True)
        return [{"name": name, "count": count} for name, count in ranked]

    @property
    def completion_rate(self) -> int:
        if not self.total:
            return 0
        return math.floor(self.completed_count / self.total * 100 + 0.5)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["top_genres"] = self.top_genres
        data["completion_rate"] = self.completion_rate
        return data


def split_genres(genre: Optional[str]) -> list[str]:
    """``"Action, Drama, "`` -> ``["Action", "Drama"]``.

    Repeated segments are dropped, so a genre counts at most once per item:
    ``"Action, Action"`` -> ``["Action"]``.
    """
    if not isinstance(genre, str):
        return []
    seen: list[str] = []
    for segment in genre.split(","):
        segment = segment.strip()
        if segment and segment not in seen:
            seen.append(segment)
    return seen


def estimate_minutes(item) -> int:
    """Explicit ``time_spent`` if recorded, otherwise a per-type estimate."""
    if isinstance(item.time_spent, int) and item.time_spent > 0:
        return item.time_spent
    media_type = parse_media_type(item.type)
    if media_type is MediaType.MOVIES:
        completed = status_bucket(item.status) is StatusBucket.COMPLETED
        return MINUTES_PER_MOVIE if completed else 0
    per_unit = MINUTES_PER_UNIT.get(media_type)
    if per_unit is None:
        return 0
    return current_unit(item) * per_unit


def aggregate(items: Iterable) -> StatsSnapshot:
    """Reduce items to a StatsSnapshot. Archived items are skipped."""
    stats = StatsSnapshot()

    for item in items:
        if getattr(item, "is_archived", False):
            continue
        status = item.status or UNKNOWN
        media_type = item.type or UNKNOWN

        stats.total += 1
        stats.by_status[status] = stats.by_status.get(status, 0) + 1

        breakdown = stats.by_type.get(media_type)
        if breakdown is None:
            breakdown = stats.by_type[media_type] = TypeBreakdown()
        breakdown.total += 1

        bucket = status_bucket(status)
        if bucket is StatusBucket.COMPLETED:
            breakdown.completed += 1
            stats.completed_count += 1
        elif bucket is StatusBucket.ACTIVE:
            breakdown.in_progress += 1
            stats.in_progress_count += 1
        elif bucket is StatusBucket.PLANNED:
            breakdown.planned += 1
            stats.planned_count += 1
        elif bucket is StatusBucket.DROPPED:
            breakdown.dropped += 1
            stats.dropped_count += 1
        elif bucket is StatusBucket.ON_HOLD:
            stats.on_hold_count += 1

        for genre in split_genres(item.genre):
            stats.by_genre[genre] = stats.by_genre.get(genre, 0) + 1

        stats.time_spent_minutes += estimate_minutes(item)

    return stats
