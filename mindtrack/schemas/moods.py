from datetime import date
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field


class MoodRequest(BaseModel):
    user_id: int
    mood: Annotated[int, Field(ge=1, le=5, description="1 = worst, 5 = best.")]
    day: Optional[date] = Field(default=None, description="Defaults to today (UTC).")
    note: Optional[Annotated[str, Field(max_length=2_000)]] = None


class MoodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    mood: int
    day: str
    note: Optional[str] = None


class MoodListResponse(BaseModel):
    total: int
    items: list[MoodResponse] = Field(description="Storage order, oldest entry first.")
