"""
Tests for the suggestion engine and habit tips.
"""
from __future__ import annotations

import pytest
from datetime import date

from mindtrack.core.errors import InvalidArgumentError
from mindtrack.models.habit import Habit
from mindtrack.models.mood import MoodEntry
from mindtrack.services import store
from mindtrack.services.suggestions import (
    CATALOG,
    GENERIC_TIPS,
    HABIT_TIPS,
    generate_suggestions,
    get_habit_tips,
    get_suggestions,
)


def _names(ranked) -> list[str]:
    return [s.suggestion.name for s in ranked]


def _moods(*scores: int) -> list[MoodEntry]:
    return [MoodEntry(id=i, user_id=1, mood=s) for i, s in enumerate(scores, start=1)]


class TestGenerateSuggestions:
    def test_new_user_prefers_exercise(self):
        ranked = generate_suggestions([], [], {}, [])
        assert _names(ranked) == ["Cold Water Shower", "Yoga Session", "Walk in Nature"]
        assert [s.score for s in ranked] == [17, 17, 17]

    def test_no_easy_bonus_without_habits(self):
        ranked = generate_suggestions([], [], {}, [], limit=len(CATALOG))
        by_name = {s.suggestion.name: s.score for s in ranked}
        assert by_name["Morning Meditation"] == 10

    def test_low_mood_prefers_meditation(self):
        ranked = generate_suggestions([], [], {}, _moods(1))
        assert _names(ranked) == ["Morning Meditation", "Evening Reflection", "Breathing Exercises"]
        assert ranked[0].score == 18

    def test_only_last_three_moods_count(self):
        ranked = generate_suggestions([], [], {}, _moods(1, 1, 5, 5, 5))
        assert "Morning Meditation" not in _names(ranked)

    def test_low_completion_prefers_easy(self):
        habits = [Habit(id=1, user_id=1, name="Run", category="exercise", streak=0)]
        ranked = generate_suggestions(["Run"], habits, {1: 0}, [])
        assert _names(ranked) == ["Morning Meditation", "Gratitude Journaling", "Stretching Routine"]
        assert all(s.score == 15 for s in ranked)

    def test_existing_names_excluded_case_insensitive(self):
        ranked = generate_suggestions(["cold WATER shower", "YOGA SESSION"], [], {}, [], limit=len(CATALOG))
        names = {n.lower() for n in _names(ranked)}
        assert "cold water shower" not in names
        assert "yoga session" not in names
        assert len(ranked) == len(CATALOG) - 2

    def test_limit(self):
        assert len(generate_suggestions([], [], {}, [], limit=5)) == 5

    @pytest.mark.parametrize("limit", [0, -2])
    def test_non_positive_limit_rejected(self, limit):
        with pytest.raises(InvalidArgumentError):
            generate_suggestions([], [], {}, [], limit=limit)

    def test_deterministic(self):
        first = generate_suggestions(["Reading"], [], {}, _moods(2, 2), limit=10)
        second = generate_suggestions(["Reading"], [], {}, _moods(2, 2), limit=10)
        assert first == second


class TestGetSuggestions:
    def test_stored_habit_names_always_excluded(self, db, user_id):
        store.create_habit(db, user_id, "Yoga Session", "exercise")
        ranked = get_suggestions(db, user_id, [], limit=len(CATALOG), today=date(2024, 1, 3))
        assert "Yoga Session" not in _names(ranked)

    def test_identical_users_get_identical_output(self, db, make_user):
        results = []
        for _ in range(2):
            uid = make_user()
            store.create_habit(db, uid, "Morning Run", "exercise")
            store.save_mood(db, uid, 2, date(2024, 1, 2))
            ranked = get_suggestions(db, uid, ["Reading"], limit=5, today=date(2024, 1, 3))
            results.append([(s.suggestion, s.score) for s in ranked])
        assert results[0] == results[1]


class TestHabitTips:
    def test_substring_match(self):
        assert get_habit_tips("Morning Meditation") == HABIT_TIPS["meditation"]

    def test_case_insensitive(self):
        assert get_habit_tips("READING before bed") == HABIT_TIPS["reading"]

    def test_first_key_wins(self):
        assert get_habit_tips("exercise journaling") == HABIT_TIPS["exercise"]
        assert get_habit_tips("journaling meditation") == HABIT_TIPS["meditation"]

    def test_fallback(self):
        assert get_habit_tips("Yoga") == GENERIC_TIPS
        assert len(get_habit_tips("anything")) == 4

    def test_returns_copy(self):
        tips = get_habit_tips("Yoga")
        tips.append("mutated")
        assert get_habit_tips("Yoga") == GENERIC_TIPS
