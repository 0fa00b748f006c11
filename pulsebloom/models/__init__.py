from .habit import Habit, HabitLog, HabitFrequency, HabitCategory
from .mood_entry import MoodEntry
from .insight_cache import InsightCache

__all__ = [
    "Habit",
    "HabitLog",
    "HabitFrequency",
    "HabitCategory",
    "MoodEntry",
    "InsightCache",
]
