"""Media type and status vocabulary.

Types and statuses are user-entered free text extended from a fixed palette,
so every lookup here is lenient: known values map onto enums, anything else
falls through to an explicit escape hatch (``None`` type, ``OTHER`` bucket)
instead of raising.
"""

from enum import Enum
from typing import Optional


class MediaType(str, Enum):
    MOVIES = "Movies"
    TV_SHOWS = "TV Shows"
    ANIME = "Anime"
    NOVELS = "Novels"
    MANHWA = "Manhwa"
    MANHUA = "Manhua"
    PORNHWA = "Pornhwa"
    BOOKS = "Books"


class ProgressShape(str, Enum):
    """Which numeric fields carry progress for a media type."""
    EPISODIC = "episodic"      # season + episode
    CHAPTERED = "chaptered"    # chapter
    NONE = "none"


class StatusBucket(str, Enum):
    """Collapsed status used for aggregation."""
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"
    ON_HOLD = "on_hold"
    OTHER = "other"


SCREEN_TYPES = frozenset({MediaType.MOVIES, MediaType.TV_SHOWS, MediaType.ANIME})

TEXT_TYPES = frozenset({
    MediaType.NOVELS, MediaType.MANHWA, MediaType.MANHUA,
    MediaType.PORNHWA, MediaType.BOOKS,
})

PROGRESS_SHAPES = {
    MediaType.TV_SHOWS: ProgressShape.EPISODIC,
    MediaType.ANIME: ProgressShape.EPISODIC,
    MediaType.NOVELS: ProgressShape.CHAPTERED,
    MediaType.MANHWA: ProgressShape.CHAPTERED,
    MediaType.MANHUA: ProgressShape.CHAPTERED,
    MediaType.PORNHWA: ProgressShape.CHAPTERED,
    MediaType.BOOKS: ProgressShape.CHAPTERED,
}

# Both modal vocabularies ("Watched"/"Read" and "Completed"/"Watching"/"Reading")
# collapse onto the same buckets.
STATUS_BUCKETS = {
    "To Watch": StatusBucket.PLANNED,
    "To Read": StatusBucket.PLANNED,
    "Planned": StatusBucket.PLANNED,
    "In Progress": StatusBucket.ACTIVE,
    "Watching": StatusBucket.ACTIVE,
    "Reading": StatusBucket.ACTIVE,
    "Watched": StatusBucket.COMPLETED,
    "Read": StatusBucket.COMPLETED,
    "Completed": StatusBucket.COMPLETED,
    "Dropped": StatusBucket.DROPPED,
    "On Hold": StatusBucket.ON_HOLD,
}

# Query-string aliases accepted by list filters
STATUS_FILTER_ALIASES = {
    "planned": StatusBucket.PLANNED,
    "inprogress": StatusBucket.ACTIVE,
    "in_progress": StatusBucket.ACTIVE,
    "active": StatusBucket.ACTIVE,
    "completed": StatusBucket.COMPLETED,
    "dropped": StatusBucket.DROPPED,
    "onhold": StatusBucket.ON_HOLD,
    "on_hold": StatusBucket.ON_HOLD,
}

_TYPES_BY_KEY = {t.value.casefold(): t for t in MediaType}
_BUCKETS_BY_KEY = {status.casefold(): bucket for status, bucket in STATUS_BUCKETS.items()}


def parse_media_type(value: Optional[str]) -> Optional[MediaType]:
    """Known media type for a free-text tag, or None for custom types."""
    if not isinstance(value, str):
        return None
    return _TYPES_BY_KEY.get(value.strip().casefold())


def progress_shape(media_type: Optional[str]) -> ProgressShape:
    known = parse_media_type(media_type)
    return PROGRESS_SHAPES.get(known, ProgressShape.NONE)


def status_bucket(status: Optional[str]) -> StatusBucket:
    if not isinstance(status, str):
        return StatusBucket.OTHER
    return _BUCKETS_BY_KEY.get(status.strip().casefold(), StatusBucket.OTHER)


def is_screen_media(media_type: Optional[str]) -> bool:
    return parse_media_type(media_type) in SCREEN_TYPES


def is_text_media(media_type: Optional[str]) -> bool:
    return parse_media_type(media_type) in TEXT_TYPES


def completed_status(media_type: Optional[str]) -> str:
    """Status literal used when an item is marked complete."""
    if is_screen_media(media_type):
        return "Watched"
    if is_text_media(media_type):
        return "Read"
    return "Completed"


def planned_status(media_type: Optional[str]) -> str:
    if is_screen_media(media_type):
        return "To Watch"
    if is_text_media(media_type):
        return "To Read"
    return "Planned"


def statuses_in(bucket: StatusBucket) -> list[str]:
    return [status for status, b in STATUS_BUCKETS.items() if b is bucket]


def resolve_status_filter(value: Optional[str]) -> Optional[list[str]]:
    """Expand a status query value into literal statuses.

    ``None``/``"all"`` disables filtering; bucket aliases expand to every
    literal in the bucket; anything else filters on the literal itself.
    """
    if not value or value == "all":
        return None
    bucket = STATUS_FILTER_ALIASES.get(value.strip().lower())
    if bucket is not None:
        return statuses_in(bucket)
    return [value]
