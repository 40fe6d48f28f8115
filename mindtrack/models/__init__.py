from .user import User
from .habit import Habit, HabitCategory
from .completion import Completion
from .mood import MoodEntry

__all__ = [
    "User",
    "Habit",
    "HabitCategory",
    "Completion",
    "MoodEntry",
]
