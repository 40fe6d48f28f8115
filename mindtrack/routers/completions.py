"""
Completions router.

GET /completions           — a user's completions, optionally per habit or day
GET /completions/calendar  — month grid of completed dates
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mindtrack.db.base import get_db
from mindtrack.routers.habits import completion_to_response
from mindtrack.schemas.habits import CompletionCalendarResponse, CompletionListResponse
from mindtrack.services import store
from mindtrack.services.stats import completion_calendar

router = APIRouter(prefix="/completions", tags=["completions"])


@router.get("", response_model=CompletionListResponse, summary="List completions")
def list_completions(
    user_id: int = Query(description="Owner of the completions."),
    habit_id: Optional[int] = Query(default=None, description="Only this habit."),
    day: Optional[date] = Query(default=None, description="Only this ISO date."),
    db: Session = Depends(get_db),
):
    store.get_user(db, user_id)
    if habit_id is not None:
        store.get_owned_habit(db, user_id, habit_id)

    if day is not None:
        items = store.get_completions_by_date(db, user_id, day)
        if habit_id is not None:
            items = [c for c in items if c.habit_id == habit_id]
    else:
        items = store.get_completions(db, user_id, habit_id)
    return CompletionListResponse(
        total=len(items),
        items=[completion_to_response(c) for c in items],
    )


@router.get(
    "/calendar",
    response_model=CompletionCalendarResponse,
    summary="Completed dates for one month",
)
def get_completion_calendar(
    user_id: int = Query(description="Owner of the completions."),
    year: int = Query(ge=1, le=9999, examples=[2024]),
    month: int = Query(ge=1, le=12, examples=[1]),
    habit_id: Optional[int] = Query(default=None, description="Only this habit; omit for any."),
    db: Session = Depends(get_db),
):
    store.get_user(db, user_id)
    if habit_id is not None:
        store.get_owned_habit(db, user_id, habit_id)
    days = completion_calendar(db, user_id, year, month, habit_id)
    return CompletionCalendarResponse(
        year=year,
        month=month,
        habit_id=habit_id,
        days={str(d): done for d, done in days.items()},
    )
