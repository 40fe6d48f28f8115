"""
Insight generator — prioritized observations about a user's habits and moods.

Rules (all evaluated, not mutually exclusive)
---------------------------------------------
  1. GET_STARTED         no habits at all → the only insight returned
  2. GREAT_CONSISTENCY   best streak > 0, names the first habit holding it
  3. NEEDS_ATTENTION     any habit under 50% over 7 days, names all of them
  4. POSITIVE_MOOD /     ≥ 3 mood entries; mean of the last 7 (storage order)
     MOOD_SUPPORT        ≥ 4.0 → positive, < 2.5 → support, else nothing
  5. DIVERSIFY           < 4 distinct categories → first missing of
                         meditation, journaling, reading, exercise

Output is sorted by priority ascending (1 = most important); the sort is
stable so equal priorities keep rule order.

`generate_insights` is pure. `get_insights` loads its inputs from the store.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from mindtrack.models.habit import Habit, HabitCategory
from mindtrack.models.mood import MoodEntry
from mindtrack.services.stats import habit_rates
from mindtrack.services.store import get_habits, get_moods


class InsightType(str, enum.Enum):
    success = "success"
    warning = "warning"
    suggestion = "suggestion"


@dataclass(frozen=True)
class Insight:
    title: str
    description: str
    type: InsightType
    priority: int


# Thresholds
_LOW_COMPLETION_RATE = 50
_MIN_MOODS = 3
_MOOD_WINDOW = 7
_POSITIVE_MOOD = Decimal("4.0")
_LOW_MOOD = Decimal("2.5")
_BALANCED_CATEGORY_COUNT = 4

_DIVERSIFY_ORDER = (
    HabitCategory.meditation,
    HabitCategory.journaling,
    HabitCategory.reading,
    HabitCategory.exercise,
)


# ---------------------------------------------------------------------------
# Individual rules
# ---------------------------------------------------------------------------

def _rule_consistency(habits: Sequence[Habit]) -> Optional[Insight]:
    best = max(habits, key=lambda h: h.streak)
    if best.streak <= 0:
        return None
    return Insight(
        title="Great Consistency",
        description=(
            f'Your "{best.name}" habit has a {best.streak}-day streak. '
            "Keep the momentum going!"
        ),
        type=InsightType.success,
        priority=1,
    )


def _rule_needs_attention(habits: Sequence[Habit], rates: dict[int, int]) -> Optional[Insight]:
    low = [h.name for h in habits if rates.get(h.id, 0) < _LOW_COMPLETION_RATE]
    if not low:
        return None
    return Insight(
        title="Habits Need Attention",
        description=(
            f"{', '.join(low)} have low completion rates. "
            "Consider adjusting the time or difficulty."
        ),
        type=InsightType.warning,
        priority=2,
    )


def _rule_mood(moods: Sequence[MoodEntry]) -> Optional[Insight]:
    if len(moods) < _MIN_MOODS:
        return None
    recent = moods[-_MOOD_WINDOW:]
    avg = Decimal(sum(m.mood for m in recent)) / Decimal(len(recent))

    if avg >= _POSITIVE_MOOD:
        return Insight(
            title="Positive Mood Trend",
            description=(
                "Your mood has been consistently positive. "
                "Your habits are contributing to your wellness!"
            ),
            type=InsightType.success,
            priority=1,
        )
    if avg < _LOW_MOOD:
        return Insight(
            title="Mood Support",
            description="Consider adding meditation or journaling to help improve your mood.",
            type=InsightType.suggestion,
            priority=2,
        )
    return None


def _rule_diversify(habits: Sequence[Habit]) -> Optional[Insight]:
    categories = {h.category for h in habits}
    if len(categories) >= _BALANCED_CATEGORY_COUNT:
        return None
    missing = next((c for c in _DIVERSIFY_ORDER if c.value not in categories), None)
    if missing is None:
        return None
    return Insight(
        title="Diversify Your Habits",
        description=(
            f"Try adding a {missing.value} habit to create a more balanced wellness routine."
        ),
        type=InsightType.suggestion,
        priority=3,
    )


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def generate_insights(
    habits: Sequence[Habit],
    moods: Sequence[MoodEntry],
    rates: dict[int, int],
) -> list[Insight]:
    """
    Evaluate every rule against the given snapshot.

    `moods` must be in storage order; `rates` maps habit id to its 7-day
    completion rate.
    """
    if not habits:
        return [Insight(
            title="Get Started",
            description="Create your first habit to begin tracking your wellness journey.",
            type=InsightType.suggestion,
            priority=1,
        )]

    candidates = [
        _rule_consistency(habits),
        _rule_needs_attention(habits, rates),
        _rule_mood(moods),
        _rule_diversify(habits),
    ]
    insights = [i for i in candidates if i is not None]
    return sorted(insights, key=lambda i: i.priority)


def get_insights(db: Session, user_id: int, today: Optional[date] = None) -> list[Insight]:
    habits = get_habits(db, user_id)
    moods = get_moods(db, user_id)
    rates = habit_rates(db, user_id, habits, today)
    return generate_insights(habits, moods, rates)
