"""
Analytics, insight and suggestion response schemas.

GET  /analytics            → HabitStatsResponse | CategoryStatsResponse
GET  /analytics/breakdown  → CategoryBreakdownResponse
GET  /insights             → InsightListResponse
POST /ai/suggestions       → SuggestionListResponse
GET  /ai/tips              → TipsResponse
"""
from typing import Annotated, Optional

from pydantic import BaseModel, Field


class CategoryStatsOut(BaseModel):
    count: int
    completion_rate: int


class CategoryStatsResponse(BaseModel):
    categories: dict[str, CategoryStatsOut]


class CategoryBreakdownOut(BaseModel):
    total: int
    completed: int
    rate: int


class CategoryBreakdownResponse(BaseModel):
    categories: dict[str, CategoryBreakdownOut]


class InsightResponse(BaseModel):
    title: str
    description: str
    type: str = Field(description='"success" | "warning" | "suggestion"')
    priority: int = Field(description="Smaller is more important.")


class InsightListResponse(BaseModel):
    items: list[InsightResponse]


class SuggestionRequest(BaseModel):
    user_id: int
    existing_habits: list[str] = Field(
        default_factory=list,
        description="Habit names to exclude (case-insensitive), in addition to "
                    "the user's stored habits.",
    )
    limit: Optional[Annotated[int, Field(ge=1, le=15)]] = None


class SuggestionResponse(BaseModel):
    name: str
    category: str
    reason: str
    difficulty: str
    time_commitment: str
    score: int


class SuggestionListResponse(BaseModel):
    items: list[SuggestionResponse]


class TipsResponse(BaseModel):
    habit: str
    tips: list[str]
