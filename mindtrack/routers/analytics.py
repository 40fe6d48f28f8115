"""
Analytics router.

GET /analytics            — one habit's stats (habit_id given) or per-category stats
GET /analytics/breakdown  — pooled per-category completions over the last 7 days
GET /insights             — prioritized observations
"""
from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mindtrack.core.config import settings
from mindtrack.db.base import get_db
from mindtrack.schemas.analytics import (
    CategoryBreakdownOut,
    CategoryBreakdownResponse,
    CategoryStatsOut,
    CategoryStatsResponse,
    InsightListResponse,
    InsightResponse,
)
from mindtrack.schemas.habits import HabitStatsResponse
from mindtrack.services import store
from mindtrack.services.insights import get_insights
from mindtrack.services.stats import category_breakdown, category_stats, habit_stats

router = APIRouter(tags=["analytics"])


@router.get(
    "/analytics",
    response_model=Union[HabitStatsResponse, CategoryStatsResponse],
    summary="Habit or category statistics",
)
def analytics(
    user_id: int = Query(description="Owner of the habits."),
    habit_id: Optional[int] = Query(
        default=None,
        description="When given, stats for this habit over DEFAULT_STATS_WINDOW_DAYS.",
    ),
    db: Session = Depends(get_db),
):
    """
    - With `habit_id`: completion rate of that habit over the default window.
    - Without: per-category habit count and mean 7-day completion rate.
      Categories with no habits never appear.
    """
    store.get_user(db, user_id)
    if habit_id is not None:
        store.get_owned_habit(db, user_id, habit_id)
        stats = habit_stats(db, user_id, habit_id, settings.DEFAULT_STATS_WINDOW_DAYS)
        return HabitStatsResponse(
            habit_id=habit_id,
            completed_days=stats.completed_days,
            total_days=stats.total_days,
            completion_rate=stats.completion_rate,
        )

    return CategoryStatsResponse(categories={
        category: CategoryStatsOut(count=s.count, completion_rate=s.completion_rate)
        for category, s in category_stats(db, user_id).items()
    })


@router.get(
    "/analytics/breakdown",
    response_model=CategoryBreakdownResponse,
    summary="Per-category completed days, last 7 days",
)
def analytics_breakdown(
    user_id: int = Query(description="Owner of the habits."),
    db: Session = Depends(get_db),
):
    store.get_user(db, user_id)
    return CategoryBreakdownResponse(categories={
        category: CategoryBreakdownOut(total=b.total, completed=b.completed, rate=b.rate)
        for category, b in category_breakdown(db, user_id).items()
    })


@router.get(
    "/insights",
    response_model=InsightListResponse,
    summary="Prioritized insights",
)
def insights(
    user_id: int = Query(description="Owner of the habits and moods."),
    db: Session = Depends(get_db),
):
    """
    Observations sorted by priority (1 first). A user with no habits gets
    exactly one: **Get Started**.
    """
    store.get_user(db, user_id)
    return InsightListResponse(items=[
        InsightResponse(
            title=i.title,
            description=i.description,
            type=i.type.value,
            priority=i.priority,
        )
        for i in get_insights(db, user_id)
    ])
