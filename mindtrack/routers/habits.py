"""
Habits router.

GET    /habits                 — list a user's habits
POST   /habits                 — create a habit
PATCH  /habits/{id}            — rename / recategorize
DELETE /habits/{id}            — delete a habit and its completions
POST   /habits/{id}/complete   — record today's (or a given day's) completion
GET    /habits/{id}/stats      — completion rate over a window
GET    /habits/{id}/trend      — last 7 days, completed or not
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from mindtrack.core.config import settings
from mindtrack.db.base import get_db
from mindtrack.models.completion import Completion
from mindtrack.models.habit import Habit
from mindtrack.schemas.habits import (
    CompleteHabitRequest,
    CompleteHabitResponse,
    CompletionResponse,
    HabitCreateRequest,
    HabitListResponse,
    HabitResponse,
    HabitStatsResponse,
    HabitUpdateRequest,
    TrendDayResponse,
    WeeklyTrendResponse,
)
from mindtrack.services import store
from mindtrack.services.stats import habit_stats, weekly_trend

router = APIRouter(prefix="/habits", tags=["habits"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def habit_to_response(h: Habit) -> HabitResponse:
    return HabitResponse(
        id=h.id,
        user_id=h.user_id,
        name=h.name,
        category=h.category,
        streak=h.streak,
        last_completed=str(h.last_completed) if h.last_completed else None,
        created_at=h.created_at.isoformat() if h.created_at else "",
    )


def completion_to_response(c: Completion) -> CompletionResponse:
    return CompletionResponse(
        id=c.id,
        habit_id=c.habit_id,
        user_id=c.user_id,
        day=str(c.day),
        completed=c.completed,
    )


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@router.get("", response_model=HabitListResponse, summary="List a user's habits")
def list_habits(
    user_id: int = Query(description="Owner of the habits."),
    db: Session = Depends(get_db),
):
    store.get_user(db, user_id)
    habits = store.get_habits(db, user_id)
    return HabitListResponse(total=len(habits), items=[habit_to_response(h) for h in habits])


@router.post(
    "",
    response_model=HabitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a habit",
    responses={404: {"description": "Unknown user."}},
)
def create_habit(payload: HabitCreateRequest, db: Session = Depends(get_db)):
    habit = store.create_habit(db, payload.user_id, payload.name, payload.category)
    return habit_to_response(habit)


@router.patch(
    "/{habit_id}",
    response_model=HabitResponse,
    summary="Rename or recategorize a habit",
    responses={403: {"description": "Habit belongs to another user."}, 404: {"description": "Unknown habit."}},
)
def update_habit(habit_id: int, payload: HabitUpdateRequest, db: Session = Depends(get_db)):
    habit = store.update_habit(
        db, payload.user_id, habit_id, name=payload.name, category=payload.category
    )
    return habit_to_response(habit)


@router.delete(
    "/{habit_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a habit and its completions",
    responses={403: {"description": "Habit belongs to another user."}, 404: {"description": "Unknown habit."}},
)
def delete_habit(
    habit_id: int,
    user_id: int = Query(description="Owner of the habit."),
    db: Session = Depends(get_db),
):
    store.delete_habit(db, user_id, habit_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# POST /habits/{id}/complete
# ---------------------------------------------------------------------------

@router.post(
    "/{habit_id}/complete",
    response_model=CompleteHabitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Mark a habit done for a day",
    responses={
        201: {"description": "Completion recorded; habit streak updated."},
        403: {"description": "Habit belongs to another user."},
        404: {"description": "Unknown habit."},
        409: {"description": "Already completed on that day."},
    },
)
def complete_habit(habit_id: int, payload: CompleteHabitRequest, db: Session = Depends(get_db)):
    """
    Record a completion and advance the streak:
    - the day after `last_completed` → streak + 1
    - any other day → streak resets to 1

    Returns **409 ALREADY_COMPLETED** when the day is already recorded.
    """
    result = store.complete_habit(db, payload.user_id, habit_id, payload.day)
    return CompleteHabitResponse(
        completion=completion_to_response(result.completion),
        habit=habit_to_response(result.habit),
    )


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------

@router.get(
    "/{habit_id}/stats",
    response_model=HabitStatsResponse,
    summary="Completion rate of one habit",
)
def get_habit_stats(
    habit_id: int,
    user_id: int = Query(description="Owner of the habit."),
    window_days: Optional[int] = Query(
        default=None,
        description="Window size in days. Defaults to DEFAULT_STATS_WINDOW_DAYS.",
        examples=[7],
    ),
    db: Session = Depends(get_db),
):
    """
    Count completions within `[today - window_days, today]` and return
    `completion_rate = round(completed_days / window_days * 100)`.

    A non-positive window is rejected with **422 INVALID_ARGUMENT**.
    """
    store.get_owned_habit(db, user_id, habit_id)
    window = settings.DEFAULT_STATS_WINDOW_DAYS if window_days is None else window_days
    stats = habit_stats(db, user_id, habit_id, window)
    return HabitStatsResponse(
        habit_id=habit_id,
        completed_days=stats.completed_days,
        total_days=stats.total_days,
        completion_rate=stats.completion_rate,
    )


@router.get(
    "/{habit_id}/trend",
    response_model=WeeklyTrendResponse,
    summary="Last 7 days of one habit",
)
def get_habit_trend(
    habit_id: int,
    user_id: int = Query(description="Owner of the habit."),
    db: Session = Depends(get_db),
):
    store.get_owned_habit(db, user_id, habit_id)
    days = weekly_trend(db, user_id, habit_id)
    return WeeklyTrendResponse(
        habit_id=habit_id,
        days=[
            TrendDayResponse(day=str(d.day), weekday=d.weekday, completed=d.completed)
            for d in days
        ],
    )
