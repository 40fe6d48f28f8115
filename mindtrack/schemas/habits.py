"""
Habit request / response schemas.

POST  /habits                → HabitCreateRequest     → HabitResponse
PATCH /habits/{id}           → HabitUpdateRequest     → HabitResponse
POST  /habits/{id}/complete  → CompleteHabitRequest   → CompleteHabitResponse
GET   /habits/{id}/stats     → HabitStatsResponse
GET   /habits/{id}/trend     → WeeklyTrendResponse
"""
from __future__ import annotations

from datetime import date
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _strip_not_empty(v):
    stripped = v.strip() if isinstance(v, str) else v
    if not stripped:
        raise ValueError("must not be empty after stripping whitespace")
    return stripped


class HabitCreateRequest(BaseModel):
    user_id: int
    name: Annotated[str, Field(min_length=1, max_length=128, examples=["Yoga"])]
    category: Annotated[str, Field(
        min_length=1,
        max_length=64,
        description="Free-form tag. Known catalog categories: meditation, journaling, "
                    "reading, exercise, stretching, nutrition, water, sleep.",
        examples=["exercise"],
    )]

    @field_validator("name", "category", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        return _strip_not_empty(v)


class HabitUpdateRequest(BaseModel):
    user_id: int
    name: Optional[Annotated[str, Field(min_length=1, max_length=128)]] = None
    category: Optional[Annotated[str, Field(min_length=1, max_length=64)]] = None

    @field_validator("name", "category", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _strip_not_empty(v)


class HabitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    category: str
    streak: int = Field(description="Consecutive days completed, ending at last_completed.")
    last_completed: Optional[str] = Field(default=None, description="ISO date or null.")
    created_at: str


class HabitListResponse(BaseModel):
    total: int
    items: list[HabitResponse]


class CompleteHabitRequest(BaseModel):
    user_id: int
    day: Optional[date] = Field(
        default=None,
        description="ISO date of the completion. Defaults to today (UTC).",
        examples=["2024-01-03"],
    )


class CompletionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    habit_id: int
    user_id: int
    day: str
    completed: bool


class CompletionListResponse(BaseModel):
    total: int
    items: list[CompletionResponse]


class CompleteHabitResponse(BaseModel):
    completion: CompletionResponse
    habit: HabitResponse


class HabitStatsResponse(BaseModel):
    habit_id: int
    completed_days: int
    total_days: int = Field(description="Requested window size, never clipped to habit age.")
    completion_rate: int = Field(description="Whole percent, rounded half-up.", examples=[43])


class TrendDayResponse(BaseModel):
    day: str
    weekday: str = Field(examples=["Mon"])
    completed: bool


class WeeklyTrendResponse(BaseModel):
    habit_id: int
    days: list[TrendDayResponse] = Field(description="Last 7 days, oldest first.")


class CompletionCalendarResponse(BaseModel):
    year: int
    month: int
    habit_id: Optional[int] = None
    days: dict[str, bool] = Field(description="ISO date → completed on that date.")
