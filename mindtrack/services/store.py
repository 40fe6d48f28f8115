"""
Event store: users, habits, completions and mood entries.

Every function takes an explicit Session; there is no module-level store.
Read-by-id helpers raise NotFoundError, ownership checks raise ForbiddenError.

Public API
----------
create_user(db, email, password)                    -> User
get_user(db, user_id)                               -> User
get_user_by_email(db, email)                        -> User | None
authenticate_user(db, email, password)              -> User
create_habit(db, user_id, name, category)           -> Habit
get_habit(db, habit_id)                             -> Habit
get_owned_habit(db, user_id, habit_id)              -> Habit
get_habits(db, user_id)                             -> list[Habit]
update_habit(db, user_id, habit_id, name, category) -> Habit
delete_habit(db, user_id, habit_id)                 -> None
record_completion(db, habit_id, day)                -> Completion
complete_habit(db, user_id, habit_id, day)          -> CompletionResult
get_completions(db, user_id, habit_id)              -> list[Completion]
get_completions_by_date(db, user_id, day)           -> list[Completion]
save_mood(db, user_id, mood, day, note)             -> MoodEntry
get_moods(db, user_id)                              -> list[MoodEntry]
get_mood_by_date(db, user_id, day)                  -> MoodEntry | None
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional

import bcrypt
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mindtrack.core.config import settings
from mindtrack.core.errors import (
    AlreadyCompletedError,
    ConcurrentUpdateError,
    EmailAlreadyExistsError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidCredentialsError,
    NotFoundError,
)
from mindtrack.models.completion import Completion
from mindtrack.models.habit import Habit
from mindtrack.models.mood import MoodEntry, MOOD_MIN, MOOD_MAX
from mindtrack.models.user import User
from mindtrack.services.streak import StreakState, advance_streak

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class CompletionResult:
    """The inserted completion plus the habit as it stands afterwards."""
    completion: Completion
    habit: Habit


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _today() -> date:
    return datetime.now(tz=timezone.utc).date()


def _required(field: str, value: Optional[str]) -> str:
    stripped = value.strip() if isinstance(value, str) else ""
    if not stripped:
        raise InvalidArgumentError(field, f"{field} must not be empty.")
    return stripped


def _hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def _check_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def create_user(db: Session, email: str, password: str) -> User:
    email = _required("email", email).lower()
    if not password:
        raise InvalidArgumentError("password", "password must not be empty.")
    if get_user_by_email(db, email) is not None:
        raise EmailAlreadyExistsError(email)

    user = User(email=email, password_hash=_hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %d", user.id)
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("user", user_id)
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return (
        db.query(User)
        .filter(User.email == email.strip().lower())
        .first()
    )


def authenticate_user(db: Session, email: str, password: str) -> User:
    user = get_user_by_email(db, email or "")
    if user is None or not _check_password(password or "", user.password_hash):
        raise InvalidCredentialsError()
    return user


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------

def create_habit(db: Session, user_id: int, name: str, category: str) -> Habit:
    name = _required("name", name)
    category = _required("category", category)
    get_user(db, user_id)

    habit = Habit(user_id=user_id, name=name, category=category, streak=0, last_completed=None)
    db.add(habit)
    db.commit()
    db.refresh(habit)
    logger.info("Created habit %d (%s/%s) for user %d", habit.id, name, category, user_id)
    return habit


def get_habit(db: Session, habit_id: int) -> Habit:
    habit = db.get(Habit, habit_id)
    if habit is None:
        raise NotFoundError("habit", habit_id)
    return habit


def get_owned_habit(db: Session, user_id: int, habit_id: int) -> Habit:
    habit = get_habit(db, habit_id)
    if habit.user_id != user_id:
        raise ForbiddenError("habit", habit_id, user_id)
    return habit


def get_habits(db: Session, user_id: int) -> list[Habit]:
    return (
        db.query(Habit)
        .filter(Habit.user_id == user_id)
        .order_by(Habit.id)
        .all()
    )


def update_habit(
    db: Session,
    user_id: int,
    habit_id: int,
    name: Optional[str] = None,
    category: Optional[str] = None,
) -> Habit:
    """Rename / recategorize a habit. Streak fields are not editable here."""
    habit = get_owned_habit(db, user_id, habit_id)
    if name is not None:
        habit.name = _required("name", name)
    if category is not None:
        habit.category = _required("category", category)
    db.commit()
    db.refresh(habit)
    return habit


def delete_habit(db: Session, user_id: int, habit_id: int) -> None:
    habit = get_owned_habit(db, user_id, habit_id)
    db.query(Completion).filter(Completion.habit_id == habit.id).delete(
        synchronize_session=False
    )
    db.delete(habit)
    db.commit()
    logger.info("Deleted habit %d for user %d", habit_id, user_id)


# ---------------------------------------------------------------------------
# Completions
# ---------------------------------------------------------------------------

def _find_completion(db: Session, habit_id: int, day: date) -> Optional[Completion]:
    return (
        db.query(Completion)
        .filter(Completion.habit_id == habit_id, Completion.day == day)
        .first()
    )


def _swap_streak(db: Session, habit_id: int, old: StreakState, new: StreakState) -> bool:
    """
    Compare-and-swap the streak fields. Returns False when another writer
    changed them since `old` was read.
    """
    if old.last_completed is None:
        last_matches = Habit.last_completed.is_(None)
    else:
        last_matches = Habit.last_completed == old.last_completed

    result = db.execute(
        update(Habit)
        .where(Habit.id == habit_id, Habit.streak == old.streak, last_matches)
        .values(streak=new.streak, last_completed=new.last_completed)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _record(db: Session, habit_id: int, day: date) -> tuple[Completion, bool]:
    """
    Insert a completion for `day` and advance the habit's streak.

    Returns `(completion, created)`; `created` is False when the day was
    already recorded, whether found up front or lost to a concurrent insert.
    The streak update is a compare-and-swap retried up to
    STREAK_CAS_MAX_ATTEMPTS times; the insert and the update commit together.
    """
    habit = get_habit(db, habit_id)
    existing = _find_completion(db, habit_id, day)
    if existing is not None:
        return existing, False

    attempts = settings.STREAK_CAS_MAX_ATTEMPTS
    for _ in range(attempts):
        db.refresh(habit)
        old = StreakState(streak=habit.streak, last_completed=habit.last_completed)
        new = advance_streak(old, day)
        if new == old or _swap_streak(db, habit_id, old, new):
            break
    else:
        db.rollback()
        raise ConcurrentUpdateError(habit_id, attempts)

    completion = Completion(habit_id=habit_id, user_id=habit.user_id, day=day, completed=True)
    db.add(completion)
    try:
        db.commit()
    except IntegrityError:
        # Duplicate submission won the insert: its streak update stands, ours is rolled back
        db.rollback()
        return _find_completion(db, habit_id, day), False
    db.refresh(completion)
    db.refresh(habit)
    logger.info(
        "Recorded completion of habit %d on %s (streak=%d)",
        habit_id, day, habit.streak,
    )
    return completion, True


def record_completion(db: Session, habit_id: int, day: date) -> Completion:
    """
    Insert a completion for `day` and advance the habit's streak.

    Idempotent per (habit, day): a day that is already recorded returns the
    existing completion and leaves the streak untouched.
    """
    completion, _ = _record(db, habit_id, day)
    return completion


def complete_habit(
    db: Session,
    user_id: int,
    habit_id: int,
    day: Optional[date] = None,
) -> CompletionResult:
    """
    Mark a habit done for `day` (default: today UTC) on behalf of `user_id`.
    Rejects a day that is already recorded with AlreadyCompletedError.
    """
    habit = get_owned_habit(db, user_id, habit_id)
    target = day or _today()

    if habit.last_completed == target or _find_completion(db, habit_id, target) is not None:
        logger.warning("Habit %d already completed on %s", habit_id, target)
        raise AlreadyCompletedError(habit_id, target)

    completion, created = _record(db, habit_id, target)
    if not created:
        logger.warning("Habit %d completed concurrently on %s", habit_id, target)
        raise AlreadyCompletedError(habit_id, target)
    return CompletionResult(completion=completion, habit=habit)


def get_completions(
    db: Session,
    user_id: int,
    habit_id: Optional[int] = None,
) -> list[Completion]:
    q = db.query(Completion).filter(Completion.user_id == user_id)
    if habit_id is not None:
        q = q.filter(Completion.habit_id == habit_id)
    return q.order_by(Completion.id).all()


def get_completions_by_date(db: Session, user_id: int, day: date) -> list[Completion]:
    return (
        db.query(Completion)
        .filter(Completion.user_id == user_id, Completion.day == day)
        .order_by(Completion.id)
        .all()
    )


# ---------------------------------------------------------------------------
# Moods
# ---------------------------------------------------------------------------

def save_mood(
    db: Session,
    user_id: int,
    mood: int,
    day: Optional[date] = None,
    note: Optional[str] = None,
) -> MoodEntry:
    """Upsert the user's mood for `day` (default: today UTC)."""
    if isinstance(mood, bool) or not isinstance(mood, int) or not MOOD_MIN <= mood <= MOOD_MAX:
        raise InvalidArgumentError(
            "mood", f"mood must be an integer between {MOOD_MIN} and {MOOD_MAX}."
        )
    get_user(db, user_id)
    target = day or _today()

    entry = get_mood_by_date(db, user_id, target)
    if entry is None:
        entry = MoodEntry(user_id=user_id, mood=mood, day=target, note=note)
        db.add(entry)
        try:
            db.commit()
        except IntegrityError:
            # Another save for the same day inserted first: update that row
            db.rollback()
            entry = get_mood_by_date(db, user_id, target)
            entry.mood = mood
            entry.note = note
            db.commit()
    else:
        entry.mood = mood
        entry.note = note
        db.commit()
    db.refresh(entry)
    logger.info("Saved mood %d for user %d on %s", mood, user_id, target)
    return entry


def get_moods(db: Session, user_id: int) -> list[MoodEntry]:
    """All mood entries of a user in storage order (oldest row first)."""
    return (
        db.query(MoodEntry)
        .filter(MoodEntry.user_id == user_id)
        .order_by(MoodEntry.id)
        .all()
    )


def get_mood_by_date(db: Session, user_id: int, day: date) -> Optional[MoodEntry]:
    return (
        db.query(MoodEntry)
        .filter(MoodEntry.user_id == user_id, MoodEntry.day == day)
        .first()
    )
