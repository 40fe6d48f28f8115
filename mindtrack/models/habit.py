"""
Habit — a user-defined recurring action tracked daily.

`category` is an open string tag: users may type anything. `HabitCategory`
names the categories the insight and suggestion rules know about.

`streak` / `last_completed` are only written by the streak compare-and-swap
in mindtrack/services/store.py::record_completion.
"""
from datetime import datetime, date
from sqlalchemy import Integer, String, DateTime, Date, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column
import enum

from mindtrack.db.base import Base


class HabitCategory(str, enum.Enum):
    meditation = "meditation"
    journaling = "journaling"
    reading = "reading"
    exercise = "exercise"
    stretching = "stretching"
    nutrition = "nutrition"
    water = "water"
    sleep = "sleep"


class Habit(Base):
    __tablename__ = "habits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_completed: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
