from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class CredentialsRequest(BaseModel):
    email: Annotated[str, Field(min_length=3, max_length=320, examples=["ana@example.com"])]
    password: Annotated[str, Field(min_length=1, max_length=72)]


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    created_at: str
