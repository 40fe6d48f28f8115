"""
Moods router.

GET  /moods  — a user's mood entries in storage order
POST /moods  — save (upsert by day) a mood entry
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mindtrack.db.base import get_db
from mindtrack.models.mood import MoodEntry
from mindtrack.schemas.moods import MoodListResponse, MoodRequest, MoodResponse
from mindtrack.services import store

router = APIRouter(prefix="/moods", tags=["moods"])


def _mood_to_response(m: MoodEntry) -> MoodResponse:
    return MoodResponse(id=m.id, user_id=m.user_id, mood=m.mood, day=str(m.day), note=m.note)


@router.get("", response_model=MoodListResponse, summary="List mood entries")
def list_moods(
    user_id: int = Query(description="Owner of the entries."),
    db: Session = Depends(get_db),
):
    store.get_user(db, user_id)
    moods = store.get_moods(db, user_id)
    return MoodListResponse(total=len(moods), items=[_mood_to_response(m) for m in moods])


@router.post(
    "",
    response_model=MoodResponse,
    summary="Save the mood for a day",
    responses={404: {"description": "Unknown user."}},
)
def save_mood(payload: MoodRequest, db: Session = Depends(get_db)):
    """Saving twice for the same day replaces the earlier score and note."""
    entry = store.save_mood(db, payload.user_id, payload.mood, payload.day, payload.note)
    return _mood_to_response(entry)
