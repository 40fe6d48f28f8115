"""
Completion — a habit marked done on a calendar day.

Immutable once written. One row per (habit_id, day): the unique constraint
keeps statistics from double counting duplicate submissions.
"""
from datetime import date
from sqlalchemy import Integer, Boolean, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mindtrack.db.base import Base


class Completion(Base):
    __tablename__ = "completions"
    __table_args__ = (
        UniqueConstraint("habit_id", "day", name="uq_completion_habit_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    habit_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("habits.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
