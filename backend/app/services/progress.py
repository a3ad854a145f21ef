"""Progress codec — structured progress fields <-> display strings.

Numeric fields (season/episode for screen media, chapter for text media) are
authoritative; the ``progress`` string is a projection written only by
``format_progress``. Every function here is total: bad input yields an empty
string, zero, or an unchanged update rather than an exception.
"""

import math
import re
from dataclasses import dataclass, asdict
from typing import Any, Optional

from app.services.vocabulary import ProgressShape, progress_shape

_CANONICAL_EPISODIC = re.compile(r"^S(\d+)E(\d+)$")
_DIGITS = re.compile(r"\d+")

# Accepted when parsing user-entered progress back into fields
_PARSE_EPISODIC = re.compile(r"^s(?:eason)?\s*(\d+)\s*[ .x:/-]?\s*e(?:p(?:isode)?)?\.?\s*(\d+)$", re.IGNORECASE)
_PARSE_EPISODE = re.compile(r"^e(?:p(?:isode)?)?\.?\s*(\d+)$", re.IGNORECASE)
_PARSE_CHAPTER = re.compile(r"^ch(?:apter)?\.?\s*(\d+)$", re.IGNORECASE)
_PARSE_BARE = re.compile(r"^(\d+)$")

_QUICK_COMMAND = re.compile(r"^(?:(?P<title>.*\S)\s+)?(?P<sign>[+-])?(?P<number>\d+)$")


@dataclass
class ProgressUpdate:
    """Result of a progress mutation; ``progress`` always matches the numerics."""
    season: Optional[int] = None
    episode: Optional[int] = None
    chapter: Optional[int] = None
    progress: str = ""

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class QuickCommand:
    """A parsed quick-update command such as ``"+3"`` or ``"aot 5"``."""
    amount: int
    relative: bool
    title: Optional[str] = None


def _count(value: Any) -> Optional[int]:
    """Non-negative int, or None for missing/invalid values."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value >= 0 else None


def format_progress(media_type: Optional[str], season: Any, episode: Any, chapter: Any) -> str:
    shape = progress_shape(media_type)
    if shape is ProgressShape.EPISODIC:
        s, e = _count(season), _count(episode)
        if s is not None and e is not None:
            return f"S{s}E{e}"
    elif shape is ProgressShape.CHAPTERED:
        c = _count(chapter)
        if c is not None:
            return f"Ch{c}"
    return ""


def extract_number(progress: Optional[str]) -> int:
    """Current episode/chapter number recovered from a display string.

    The canonical ``S{s}E{e}`` form yields the episode; anything else yields
    its first run of digits, or 0 when there is none.
    """
    if not isinstance(progress, str):
        return 0
    text = progress.strip()
    canonical = _CANONICAL_EPISODIC.match(text)
    if canonical:
        return int(canonical.group(2))
    digits = _DIGITS.search(text)
    return int(digits.group()) if digits else 0


def increment_progress(
    media_type: Optional[str],
    season: Any,
    episode: Any,
    chapter: Any,
    amount: int = 1,
) -> ProgressUpdate:
    """Advance the unit matching the type's progress shape by ``amount``.

    Episodic items hold their season (1 when unset); counts clamp at zero.
    Shape-less types are returned unchanged.
    """
    shape = progress_shape(media_type)
    if shape is ProgressShape.EPISODIC:
        s = _count(season)
        s = 1 if s is None else s
        e = max(0, (_count(episode) or 0) + amount)
        return ProgressUpdate(s, e, chapter, format_progress(media_type, s, e, chapter))
    if shape is ProgressShape.CHAPTERED:
        c = max(0, (_count(chapter) or 0) + amount)
        return ProgressUpdate(season, episode, c, format_progress(media_type, season, episode, c))
    return ProgressUpdate(season, episode, chapter, format_progress(media_type, season, episode, chapter))


def set_progress(
    media_type: Optional[str],
    value: int,
    season: Any = None,
    episode: Any = None,
    chapter: Any = None,
) -> ProgressUpdate:
    """Set the current episode/chapter to an absolute value (clamped at zero)."""
    shape = progress_shape(media_type)
    value = max(0, value)
    if shape is ProgressShape.EPISODIC:
        s = _count(season)
        s = 1 if s is None else s
        return ProgressUpdate(s, value, chapter, format_progress(media_type, s, value, chapter))
    if shape is ProgressShape.CHAPTERED:
        return ProgressUpdate(season, episode, value, format_progress(media_type, season, episode, value))
    return ProgressUpdate(season, episode, chapter, format_progress(media_type, season, episode, chapter))


def parse_progress(media_type: Optional[str], text: Optional[str]) -> ProgressUpdate:
    """Parse a user-entered progress string into numeric fields.

    Fields the string does not mention stay ``None`` so callers can merge the
    result over existing values. Unparseable text yields an empty update.
    """
    shape = progress_shape(media_type)
    if shape is ProgressShape.NONE or not isinstance(text, str):
        return ProgressUpdate()
    text = text.strip()

    season = unit = None
    both = _PARSE_EPISODIC.match(text)
    if both:
        season, unit = int(both.group(1)), int(both.group(2))
    else:
        for pattern in (_PARSE_EPISODE, _PARSE_CHAPTER, _PARSE_BARE):
            found = pattern.match(text)
            if found:
                unit = int(found.group(1))
                break
    if unit is None:
        return ProgressUpdate()

    if shape is ProgressShape.EPISODIC:
        return ProgressUpdate(season=season, episode=unit)
    return ProgressUpdate(chapter=unit)


def parse_quick_command(text: Optional[str]) -> Optional[QuickCommand]:
    """``"+3"``/``"-1"`` are relative, ``"7"``/``"aot 5"`` absolute; None if unparseable."""
    if not isinstance(text, str):
        return None
    found = _QUICK_COMMAND.match(text.strip())
    if not found:
        return None
    number = int(found.group("number"))
    sign = found.group("sign")
    return QuickCommand(
        amount=-number if sign == "-" else number,
        relative=sign is not None,
        title=found.group("title"),
    )


# ── Completion percentages ───────────────────────────────────────

def percent_complete(current: Any, total: Any) -> int:
    """Half-up rounded percentage in [0, 100]; 0 without a positive total."""
    current, total = _count(current), _count(total)
    if not total:
        return 0
    percent = math.floor((current or 0) / total * 100 + 0.5)
    return min(100, max(0, percent))


def current_unit(item) -> int:
    """Current episode or chapter of an item, falling back to its progress string."""
    shape = progress_shape(item.type)
    if shape is ProgressShape.EPISODIC and _count(item.episode) is not None:
        return item.episode
    if shape is ProgressShape.CHAPTERED and _count(item.chapter) is not None:
        return item.chapter
    return extract_number(item.progress)


def unit_total(item) -> Optional[int]:
    shape = progress_shape(item.type)
    if shape is ProgressShape.EPISODIC:
        return _count(item.total_episodes)
    if shape is ProgressShape.CHAPTERED:
        return _count(item.total_chapters)
    return None


def progress_percent(item) -> int:
    return percent_complete(current_unit(item), unit_total(item))
