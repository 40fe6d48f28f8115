"""
Statistics engine — completion rates over time windows.

Definition
----------
Completion rate = completed days in the window / window size, as a whole
percentage rounded half-up.

The window for `habit_stats(..., window_days=N)` is [today - N, today]
inclusive, while the divisor (and `total_days`) is N itself. A completion on
each of the N+1 days therefore reads as slightly above 100; callers see the
raw figure.

Public API
----------
habit_stats(db, user_id, habit_id, window_days, today)      -> HabitStats
habit_rates(db, user_id, habits, today)                     -> dict[int, int]
category_stats(db, user_id, today)                          -> dict[str, CategoryStats]
category_breakdown(db, user_id, today)                      -> dict[str, CategoryBreakdown]
weekly_trend(db, user_id, habit_id, today)                  -> list[TrendDay]
completion_calendar(db, user_id, year, month, habit_id)     -> dict[date, bool]
"""
from __future__ import annotations

import calendar
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from mindtrack.core.errors import InvalidArgumentError
from mindtrack.models.completion import Completion
from mindtrack.models.habit import Habit
from mindtrack.services.store import get_habits

# Window used for per-habit rates inside category stats, insights and suggestions
WEEK_DAYS = 7

# Indexed by date.weekday(); independent of the process locale
WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


# ---------------------------------------------------------------------------
# Result types (plain dataclasses, no ORM)
# ---------------------------------------------------------------------------

@dataclass
class HabitStats:
    completed_days: int
    total_days: int          # always the requested window, never clipped
    completion_rate: int     # whole percent


@dataclass
class CategoryStats:
    count: int               # habits in this category
    completion_rate: int     # mean of the habits' 7-day rates


@dataclass
class CategoryBreakdown:
    total: int               # habits in this category
    completed: int           # completed days across those habits, last 7 days
    rate: int                # completed / (total * 7)


@dataclass
class TrendDay:
    day: date
    weekday: str             # "Mon", "Tue", ...
    completed: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent(part: int, whole: int) -> int:
    return round_half_up(Decimal(part) * 100 / Decimal(whole))


def mean_percent(rates: Iterable[int]) -> int:
    values = list(rates)
    return round_half_up(Decimal(sum(values)) / Decimal(len(values)))


def _count_completed(
    db: Session,
    user_id: int,
    habit_id: int,
    start: date,
    end: date,
) -> int:
    return (
        db.query(func.count(Completion.id))
        .filter(
            Completion.user_id == user_id,
            Completion.habit_id == habit_id,
            Completion.completed.is_(True),
            Completion.day >= start,
            Completion.day <= end,
        )
        .scalar()
        or 0
    )


# ---------------------------------------------------------------------------
# Public: single habit
# ---------------------------------------------------------------------------

def habit_stats(
    db: Session,
    user_id: int,
    habit_id: int,
    window_days: int,
    today: Optional[date] = None,
) -> HabitStats:
    """Completion rate of one habit over the last `window_days` days."""
    if window_days <= 0:
        raise InvalidArgumentError("window_days", "window_days must be a positive integer.")

    end = today or _today()
    start = end - timedelta(days=window_days)
    completed = _count_completed(db, user_id, habit_id, start, end)

    return HabitStats(
        completed_days=completed,
        total_days=window_days,
        completion_rate=percent(completed, window_days),
    )


def habit_rates(
    db: Session,
    user_id: int,
    habits: list[Habit],
    today: Optional[date] = None,
) -> dict[int, int]:
    """7-day completion rate keyed by habit id."""
    end = today or _today()
    return {
        h.id: habit_stats(db, user_id, h.id, WEEK_DAYS, end).completion_rate
        for h in habits
    }


# ---------------------------------------------------------------------------
# Public: per category
# ---------------------------------------------------------------------------

def category_stats(
    db: Session,
    user_id: int,
    today: Optional[date] = None,
) -> dict[str, CategoryStats]:
    """
    Habit count and mean 7-day completion rate per category.
    Only categories that hold at least one habit appear.
    """
    habits = get_habits(db, user_id)
    rates = habit_rates(db, user_id, habits, today)

    grouped: dict[str, list[int]] = defaultdict(list)
    for h in habits:
        grouped[h.category].append(rates[h.id])

    return {
        category: CategoryStats(count=len(values), completion_rate=mean_percent(values))
        for category, values in grouped.items()
    }


def category_breakdown(
    db: Session,
    user_id: int,
    today: Optional[date] = None,
) -> dict[str, CategoryBreakdown]:
    """Pooled 7-day completed days per category, rate over total * 7 slots."""
    end = today or _today()
    start = end - timedelta(days=WEEK_DAYS)

    totals: dict[str, int] = defaultdict(int)
    completed: dict[str, int] = defaultdict(int)
    for h in get_habits(db, user_id):
        totals[h.category] += 1
        completed[h.category] += _count_completed(db, user_id, h.id, start, end)

    return {
        category: CategoryBreakdown(
            total=total,
            completed=completed[category],
            rate=percent(completed[category], total * WEEK_DAYS),
        )
        for category, total in totals.items()
    }


# ---------------------------------------------------------------------------
# Public: calendar views
# ---------------------------------------------------------------------------

def weekly_trend(
    db: Session,
    user_id: int,
    habit_id: int,
    today: Optional[date] = None,
) -> list[TrendDay]:
    """The 7 days ending today, oldest first, flagged by completion."""
    end = today or _today()
    days = [end - timedelta(days=i) for i in range(WEEK_DAYS - 1, -1, -1)]

    done = {
        row.day
        for row in db.query(Completion.day).filter(
            Completion.user_id == user_id,
            Completion.habit_id == habit_id,
            Completion.completed.is_(True),
            Completion.day >= days[0],
            Completion.day <= end,
        )
    }
    return [TrendDay(day=d, weekday=WEEKDAY_LABELS[d.weekday()], completed=d in done) for d in days]


def completion_calendar(
    db: Session,
    user_id: int,
    year: int,
    month: int,
    habit_id: Optional[int] = None,
) -> dict[date, bool]:
    """Every date of the month mapped to whether anything was completed on it."""
    if not 1 <= month <= 12:
        raise InvalidArgumentError("month", "month must be between 1 and 12.")
    if not 1 <= year <= 9999:
        raise InvalidArgumentError("year", "year must be between 1 and 9999.")

    _, days_in_month = calendar.monthrange(year, month)
    first = date(year, month, 1)
    last = date(year, month, days_in_month)

    q = db.query(Completion.day).filter(
        Completion.user_id == user_id,
        Completion.completed.is_(True),
        Completion.day >= first,
        Completion.day <= last,
    )
    if habit_id is not None:
        q = q.filter(Completion.habit_id == habit_id)
    done = {row.day for row in q}

    return {
        first + timedelta(days=i): (first + timedelta(days=i)) in done
        for i in range(days_in_month)
    }
