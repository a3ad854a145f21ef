"""Daily login rewards, streaks and leaderboard ranking."""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

# Points for day 1..7 of the weekly login cycle
DAILY_REWARD_CYCLE = (20, 30, 50, 100, 150, 200, 300)


@dataclass
class DailyReward:
    claimed: bool
    day: int            # position in the weekly cycle, 1..7
    points: int
    streak: int
    longest_streak: int

    @property
    def label(self) -> str:
        return f"Day {self.day}/{len(DAILY_REWARD_CYCLE)}"


def cycle_day(streak: int) -> int:
    return (max(streak, 1) - 1) % len(DAILY_REWARD_CYCLE) + 1


def claim_daily_reward(
    last_login: Optional[date],
    current_streak: int,
    longest_streak: int,
    today: date,
) -> DailyReward:
    """Work out today's login reward.

    A claim on the day after the last login extends the streak; a gap (or a
    first login) restarts it at 1. A second claim on the same day is refused
    and reports the current position without awarding points.
    """
    current_streak = current_streak or 0
    longest_streak = longest_streak or 0

    if last_login is not None:
        days_diff = (today - last_login).days
        if days_diff <= 0:
            return DailyReward(
                claimed=False,
                day=cycle_day(current_streak),
                points=0,
                streak=current_streak,
                longest_streak=longest_streak,
            )
        streak = current_streak + 1 if days_diff == 1 else 1
    else:
        streak = 1

    day = cycle_day(streak)
    return DailyReward(
        claimed=True,
        day=day,
        points=DAILY_REWARD_CYCLE[day - 1],
        streak=streak,
        longest_streak=max(longest_streak, streak),
    )


# ── Leaderboard ──────────────────────────────────────────────────

@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    display_name: str
    points: int
    current_streak: int = 0

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "user_id": self.user_id,
            "display_name": self.display_name,
            "points": self.points,
            "current_streak": self.current_streak,
        }


def rank_leaderboard(rows: Iterable[dict], limit: Optional[int] = None) -> list[LeaderboardEntry]:
    """Rank rows of ``{user_id, display_name, points, current_streak}``.

    Points descending; equal points share a rank (1, 2, 2, 4) and are listed
    by display name, then user id.
    """
    ordered = sorted(
        rows,
        key=lambda r: (
            -(r.get("points") or 0),
            (r.get("display_name") or "").casefold(),
            r["user_id"],
        ),
    )
    if limit is not None:
        ordered = ordered[:limit]

    entries: list[LeaderboardEntry] = []
    for position, row in enumerate(ordered, start=1):
        points = row.get("points") or 0
        if entries and entries[-1].points == points:
            rank = entries[-1].rank
        else:
            rank = position
        entries.append(LeaderboardEntry(
            rank=rank,
            user_id=row["user_id"],
            display_name=row.get("display_name") or row["user_id"],
            points=points,
            current_streak=row.get("current_streak") or 0,
        ))
    return entries
