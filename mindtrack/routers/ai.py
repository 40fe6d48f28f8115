"""
Suggestions router.

POST /ai/suggestions  — ranked catalog habits for a user
GET  /ai/tips         — canned tips for a habit name
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mindtrack.core.config import settings
from mindtrack.db.base import get_db
from mindtrack.schemas.analytics import (
    SuggestionListResponse,
    SuggestionRequest,
    SuggestionResponse,
    TipsResponse,
)
from mindtrack.services import store
from mindtrack.services.suggestions import get_habit_tips, get_suggestions

router = APIRouter(prefix="/ai", tags=["suggestions"])


@router.post(
    "/suggestions",
    response_model=SuggestionListResponse,
    summary="Suggest new habits",
)
def suggestions(payload: SuggestionRequest, db: Session = Depends(get_db)):
    """
    Score the static catalog against the user's habits, completion rates and
    recent moods; return the top `limit` (default DEFAULT_SUGGESTION_LIMIT).
    Same state in, same list out.
    """
    store.get_user(db, payload.user_id)
    limit = payload.limit or settings.DEFAULT_SUGGESTION_LIMIT
    ranked = get_suggestions(db, payload.user_id, payload.existing_habits, limit)
    return SuggestionListResponse(items=[
        SuggestionResponse(
            name=s.suggestion.name,
            category=s.suggestion.category,
            reason=s.suggestion.reason,
            difficulty=s.suggestion.difficulty.value,
            time_commitment=s.suggestion.time_commitment,
            score=s.score,
        )
        for s in ranked
    ])


@router.get("/tips", response_model=TipsResponse, summary="Tips for a habit")
def tips(habit: str = Query(min_length=1, description="Habit name.", examples=["Morning Meditation"])):
    return TipsResponse(habit=habit, tips=get_habit_tips(habit))
