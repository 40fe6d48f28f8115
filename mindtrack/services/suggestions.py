"""
Suggestion engine — ranks candidate habits from a static catalog.

Scoring (bonuses add up)
------------------------
  +10  candidate category is not among the user's categories
  +5   mean 7-day completion rate of the user's habits < 50 and the candidate
       is "easy" (with no habits the mean is taken as 50: no bonus)
  +8   at least one mood entry, mean of the last 3 (storage order) < 3, and
       the candidate is a meditation habit
  +7   the user has no exercise habit and the candidate is an exercise habit

Candidates whose name matches an existing habit (case-insensitive) are
dropped first. Ties keep catalog order; nothing here is random, so equal
inputs give equal output.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from mindtrack.core.errors import InvalidArgumentError
from mindtrack.models.habit import Habit, HabitCategory
from mindtrack.models.mood import MoodEntry
from mindtrack.services.stats import habit_rates
from mindtrack.services.store import get_habits, get_moods


class Difficulty(str, enum.Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


@dataclass(frozen=True)
class HabitSuggestion:
    name: str
    category: str
    reason: str
    difficulty: Difficulty
    time_commitment: str


@dataclass(frozen=True)
class ScoredSuggestion:
    suggestion: HabitSuggestion
    score: int


D = Difficulty

CATALOG: tuple[HabitSuggestion, ...] = (
    HabitSuggestion("Morning Meditation", "meditation", "Starts your day with mindfulness and clarity", D.easy, "5-10 min"),
    HabitSuggestion("Gratitude Journaling", "journaling", "Increases positivity and self-awareness", D.easy, "5-10 min"),
    HabitSuggestion("Stretching Routine", "stretching", "Improves flexibility and reduces muscle tension", D.easy, "10-15 min"),
    HabitSuggestion("Evening Reflection", "meditation", "Helps process the day and prepare for sleep", D.easy, "5-10 min"),
    HabitSuggestion("Cold Water Shower", "exercise", "Boosts energy, resilience, and circulation", D.hard, "5 min"),
    HabitSuggestion("Breathing Exercises", "meditation", "Reduces stress, anxiety, and improves focus", D.easy, "5 min"),
    HabitSuggestion("Reading", "reading", "Expands knowledge and improves focus", D.easy, "20-30 min"),
    HabitSuggestion("Yoga Session", "exercise", "Combines strength, flexibility, and mindfulness", D.medium, "20-30 min"),
    HabitSuggestion("Meal Prep", "nutrition", "Supports healthy eating habits", D.medium, "30-45 min"),
    HabitSuggestion("Walk in Nature", "exercise", "Combines exercise with mental health benefits", D.easy, "20-30 min"),
    HabitSuggestion("Creative Writing", "journaling", "Enhances creativity and emotional expression", D.medium, "15-20 min"),
    HabitSuggestion("Hydration Tracking", "water", "Ensures proper hydration for health", D.easy, "1 min"),
    HabitSuggestion("Sleep Hygiene", "sleep", "Improves sleep quality and recovery", D.easy, "varies"),
    HabitSuggestion("Strength Training", "exercise", "Builds muscle and improves overall fitness", D.hard, "30-45 min"),
    HabitSuggestion("Mindful Eating", "nutrition", "Improves digestion and food awareness", D.medium, "varies"),
)

# Bonuses
_NEW_CATEGORY_BONUS = 10
_EASY_BONUS = 5
_MEDITATION_BONUS = 8
_EXERCISE_BONUS = 7

_LOW_COMPLETION_RATE = Decimal(50)
_LOW_MOOD = Decimal(3)
_MOOD_WINDOW = 3

# Tip lists keyed by a substring of the habit name; order decides ties
HABIT_TIPS: dict[str, list[str]] = {
    "meditation": [
        "Start with just 5 minutes and gradually increase",
        "Find a quiet, comfortable space",
        "Try different meditation styles to find what works",
        "Practice at the same time each day",
    ],
    "exercise": [
        "Start with low intensity and build up gradually",
        "Find an activity you enjoy",
        "Exercise with a friend for accountability",
        "Schedule it like any other appointment",
    ],
    "journaling": [
        "Write without judging your thoughts",
        "Set a specific time each day",
        "Use prompts if you're stuck",
        "Reflect on your entries weekly",
    ],
    "reading": [
        "Choose books that interest you",
        "Set a daily reading goal",
        "Create a comfortable reading space",
        "Join a book club for motivation",
    ],
    "nutrition": [
        "Plan meals ahead of time",
        "Start with small dietary changes",
        "Focus on whole foods",
        "Stay hydrated throughout the day",
    ],
}
GENERIC_TIPS = ["Be consistent", "Start small", "Track your progress", "Celebrate wins"]


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def _mean(values: Sequence[int], default: Decimal) -> Decimal:
    if not values:
        return default
    return Decimal(sum(values)) / Decimal(len(values))


def _score(
    candidate: HabitSuggestion,
    categories: set[str],
    avg_completion: Decimal,
    low_mood: bool,
) -> int:
    score = 0
    if candidate.category not in categories:
        score += _NEW_CATEGORY_BONUS
    if avg_completion < _LOW_COMPLETION_RATE and candidate.difficulty == Difficulty.easy:
        score += _EASY_BONUS
    if low_mood and candidate.category == HabitCategory.meditation.value:
        score += _MEDITATION_BONUS
    if HabitCategory.exercise.value not in categories and candidate.category == HabitCategory.exercise.value:
        score += _EXERCISE_BONUS
    return score


def generate_suggestions(
    existing_names: Iterable[str],
    habits: Sequence[Habit],
    rates: dict[int, int],
    moods: Sequence[MoodEntry],
    limit: int = 3,
) -> list[ScoredSuggestion]:
    """
    Rank catalog entries for a user. `moods` must be in storage order and
    `rates` maps habit id to its 7-day completion rate.
    """
    if limit < 1:
        raise InvalidArgumentError("limit", "limit must be a positive integer.")

    taken = {n.strip().lower() for n in existing_names}
    categories = {h.category for h in habits}
    avg_completion = _mean([rates.get(h.id, 0) for h in habits], default=_LOW_COMPLETION_RATE)
    low_mood = bool(moods) and _mean(
        [m.mood for m in moods[-_MOOD_WINDOW:]], default=_LOW_MOOD
    ) < _LOW_MOOD

    scored = [
        ScoredSuggestion(c, _score(c, categories, avg_completion, low_mood))
        for c in CATALOG
        if c.name.lower() not in taken
    ]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored[:limit]


def get_suggestions(
    db: Session,
    user_id: int,
    existing_names: Iterable[str] = (),
    limit: int = 3,
    today: Optional[date] = None,
) -> list[ScoredSuggestion]:
    """Suggestions for a stored user; their own habit names are always excluded."""
    habits = get_habits(db, user_id)
    moods = get_moods(db, user_id)
    rates = habit_rates(db, user_id, habits, today)
    names = [*existing_names, *(h.name for h in habits)]
    return generate_suggestions(names, habits, rates, moods, limit)


# ---------------------------------------------------------------------------
# Tips
# ---------------------------------------------------------------------------

def get_habit_tips(habit_name: str) -> list[str]:
    lowered = habit_name.lower()
    for key, tips in HABIT_TIPS.items():
        if key in lowered:
            return list(tips)
    return list(GENERIC_TIPS)
