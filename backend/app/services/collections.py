"""Dashboard shelves derived from the library."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from app.services.progress import current_unit, unit_total
from app.services.vocabulary import StatusBucket, status_bucket

CONTINUE_WATCHING_LIMIT = 6
SHELF_LIMIT = 4
ALMOST_DONE_RATIO = 0.8
STALE_AFTER = timedelta(days=14)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # Naive timestamps are stored as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def last_touched(item) -> datetime:
    return (
        _aware(item.updated_at)
        or _aware(item.date_added)
        or datetime.min.replace(tzinfo=timezone.utc)
    )


def smart_collections(items: Iterable, now: datetime) -> dict[str, list]:
    """Group items into continue_watching / almost_done / dropping_soon / binge_ready."""
    now = _aware(now)
    live = [item for item in items if not getattr(item, "is_archived", False)]
    active = [item for item in live if status_bucket(item.status) is StatusBucket.ACTIVE]

    continue_watching = sorted(active, key=last_touched, reverse=True)[:CONTINUE_WATCHING_LIMIT]

    almost_done = []
    for item in live:
        total = unit_total(item)
        if not total or status_bucket(item.status) is StatusBucket.COMPLETED:
            continue
        if current_unit(item) / total >= ALMOST_DONE_RATIO:
            almost_done.append(item)

    dropping_soon = [item for item in active if now - last_touched(item) >= STALE_AFTER]

    binge_ready = [
        item for item in live
        if status_bucket(item.status) is StatusBucket.PLANNED and unit_total(item)
    ]

    return {
        "continue_watching": continue_watching,
        "almost_done": almost_done[:SHELF_LIMIT],
        "dropping_soon": dropping_soon[:SHELF_LIMIT],
        "binge_ready": binge_ready[:SHELF_LIMIT],
    }
