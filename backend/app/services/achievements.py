"""Achievement evaluator — threshold rules over a stats snapshot.

Each achievement type is a one-way latch. The evaluator is stateless: the
caller supplies the already-unlocked types and persists whatever it returns,
keyed on ``(user_id, type)``. New rules are added to ``ACHIEVEMENT_RULES``.
"""

from dataclasses import dataclass, field
from typing import Iterable

from app.services.progress import percent_complete
from app.services.statistics import StatsSnapshot


@dataclass
class AchievementDescriptor:
    """A newly qualified achievement, not yet persisted."""
    type: str
    title: str
    description: str
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True)
class AchievementRule:
    type: str
    title: str
    description: str
    category: str
    threshold: int
    metric: str     # StatsSnapshot attribute compared against threshold

    def current(self, stats: StatsSnapshot) -> int:
        return getattr(stats, self.metric)

    def qualifies(self, stats: StatsSnapshot) -> bool:
        return self.current(stats) >= self.threshold

    def describe(self, stats: StatsSnapshot) -> AchievementDescriptor:
        return AchievementDescriptor(
            type=self.type,
            title=self.title,
            description=self.description,
            metadata={"count": self.current(stats)},
        )


ACHIEVEMENT_RULES = (
    AchievementRule(
        type="collector_10",
        title="Getting Started",
        description="Added your first 10 items",
        category="collector",
        threshold=10,
        metric="total",
    ),
    AchievementRule(
        type="collector_50",
        title="Collector",
        description="Added 50 items to your library",
        category="collector",
        threshold=50,
        metric="total",
    ),
    AchievementRule(
        type="collector_100",
        title="Curator",
        description="Added 100 items to your library",
        category="collector",
        threshold=100,
        metric="total",
    ),
    AchievementRule(
        type="completed_10",
        title="Finisher",
        description="Completed your first 10 items",
        category="completion",
        threshold=10,
        metric="completed_count",
    ),
)


def evaluate_achievements(
    stats: StatsSnapshot,
    already_unlocked: Iterable[str],
    rules: Iterable[AchievementRule] = ACHIEVEMENT_RULES,
) -> list[AchievementDescriptor]:
    """Rules that qualify and are not yet unlocked, in rule-table order."""
    unlocked = set(already_unlocked)
    return [
        rule.describe(stats)
        for rule in rules
        if rule.type not in unlocked and rule.qualifies(stats)
    ]


def achievement_progress(
    stats: StatsSnapshot,
    already_unlocked: Iterable[str],
    rules: Iterable[AchievementRule] = ACHIEVEMENT_RULES,
) -> list[dict]:
    """Every rule with its current value, target and unlock state."""
    unlocked = set(already_unlocked)
    progress = []
    for rule in rules:
        current = rule.current(stats)
        progress.append({
            "type": rule.type,
            "title": rule.title,
            "description": rule.description,
            "category": rule.category,
            "current": current,
            "target": rule.threshold,
            "percent": percent_complete(current, rule.threshold),
            "unlocked": rule.type in unlocked,
        })
    return progress
