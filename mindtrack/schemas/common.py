"""
Error envelope shared by every MindTrack route.

    {"code": "ALREADY_COMPLETED", "message": "...", "details": {"habit_id": 3, "day": "2024-01-03"}}
"""
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """One entry of `details.errors` on a VALIDATION_ERROR response."""
    field: str = Field(description="Dotted location, e.g. `mood` or `query.user_id`.")
    message: str
    type: str


class ErrorResponse(BaseModel):
    code: str = Field(
        description="NOT_FOUND, FORBIDDEN, INVALID_ARGUMENT, VALIDATION_ERROR, "
                    "ALREADY_COMPLETED, EMAIL_ALREADY_EXISTS, INVALID_CREDENTIALS, "
                    "CONCURRENT_UPDATE or INTERNAL_ERROR.",
        examples=["NOT_FOUND"],
    )
    message: str
    details: Optional[dict[str, Any]] = Field(
        default=None,
        description="Entity and id for NOT_FOUND/FORBIDDEN, `field` for INVALID_ARGUMENT, "
                    "`errors` (list of ErrorDetail) for VALIDATION_ERROR.",
    )
