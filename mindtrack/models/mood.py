"""
MoodEntry — one mood score (1 = worst, 5 = best) per user per day.

Saving a mood for a day that already has one overwrites it in place, so the
row keeps its id and therefore its position in storage order.
"""
from datetime import date
from sqlalchemy import Integer, Text, Date, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mindtrack.db.base import Base

MOOD_MIN = 1
MOOD_MAX = 5


class MoodEntry(Base):
    __tablename__ = "moods"
    __table_args__ = (
        UniqueConstraint("user_id", "day", name="uq_mood_user_day"),
        CheckConstraint(f"mood BETWEEN {MOOD_MIN} AND {MOOD_MAX}", name="ck_mood_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    mood: Mapped[int] = mapped_column(Integer, nullable=False)
    day: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
