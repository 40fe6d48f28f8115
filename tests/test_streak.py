"""
Tests for the pure streak transition.
"""
from datetime import date, timedelta

from mindtrack.services.streak import StreakState, advance_streak

D = date(2024, 1, 1)


class TestAdvanceStreak:
    def test_first_completion_starts_at_one(self):
        assert advance_streak(StreakState(), D) == StreakState(1, D)

    def test_consecutive_days_grow(self):
        state = StreakState()
        streaks = []
        for i in range(3):
            state = advance_streak(state, D + timedelta(days=i))
            streaks.append(state.streak)
        assert streaks == [1, 2, 3]
        assert state.last_completed == D + timedelta(days=2)

    def test_same_day_is_noop(self):
        state = StreakState(streak=4, last_completed=D)
        assert advance_streak(state, D) is state

    def test_gap_resets_to_one(self):
        state = StreakState(streak=3, last_completed=D)
        assert advance_streak(state, D + timedelta(days=2)) == StreakState(1, D + timedelta(days=2))

    def test_backfill_resets_and_overwrites_last_completed(self):
        state = StreakState(streak=5, last_completed=D)
        earlier = D - timedelta(days=3)
        assert advance_streak(state, earlier) == StreakState(1, earlier)

    def test_day_before_last_completed_does_not_extend(self):
        state = StreakState(streak=2, last_completed=D)
        assert advance_streak(state, D - timedelta(days=1)).streak == 1

    def test_month_and_year_boundaries(self):
        state = StreakState(streak=1, last_completed=date(2023, 12, 31))
        assert advance_streak(state, date(2024, 1, 1)).streak == 2
        leap = StreakState(streak=1, last_completed=date(2024, 2, 28))
        assert advance_streak(leap, date(2024, 2, 29)).streak == 2

    def test_state_is_immutable(self):
        state = StreakState(streak=1, last_completed=D)
        advance_streak(state, D + timedelta(days=1))
        assert state == StreakState(1, D)
