"""
Auth router.

POST /auth/signup  — register an email + password
POST /auth/login   — verify credentials, return the user

No sessions or tokens: callers pass the returned `id` as `user_id`.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mindtrack.db.base import get_db
from mindtrack.models.user import User
from mindtrack.schemas.auth import CredentialsRequest, UserResponse
from mindtrack.services.store import authenticate_user, create_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        created_at=user.created_at.isoformat() if user.created_at else "",
    )


@router.post(
    "/signup",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    responses={409: {"description": "Email already exists."}},
)
def signup(payload: CredentialsRequest, db: Session = Depends(get_db)):
    return _user_to_response(create_user(db, payload.email, payload.password))


@router.post(
    "/login",
    response_model=UserResponse,
    summary="Check credentials",
    responses={401: {"description": "Invalid email or password."}},
)
def login(payload: CredentialsRequest, db: Session = Depends(get_db)):
    return _user_to_response(authenticate_user(db, payload.email, payload.password))
