"""
Streak calculator — pure state transition for a habit's running streak.

    advance_streak(StreakState(streak, last_completed), day) -> StreakState

Rules
-----
  1. day == last_completed           → unchanged (already counted)
  2. day == last_completed + 1 day   → streak + 1
  3. anything else                   → streak = 1
     (first completion, skipped days, or a backfilled earlier date)
  4. last_completed = day            → always, even when day is older than
                                       the previous last_completed

Dates are naive calendar dates; no time-of-day or timezone enters the
arithmetic. No DB access here: the store applies the result atomically.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class StreakState:
    streak: int = 0
    last_completed: Optional[date] = None


def advance_streak(state: StreakState, day: date) -> StreakState:
    if day == state.last_completed:
        return state

    prev = state.last_completed
    if prev is not None and day - prev == _ONE_DAY:
        return StreakState(streak=state.streak + 1, last_completed=day)
    return StreakState(streak=1, last_completed=day)
