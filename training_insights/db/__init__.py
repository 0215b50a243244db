"""Database module for the training insights engine."""

from .database import Database, get_db, close_db
from .models import (
    JournalEntryRecord,
    FitnessTestRecord,
    GoalRecord,
    GoalProgressRecord,
    PatternAnalysisRecord,
    AnalysisRunRecord,
)
from .store import SignalStore

__all__ = [
    "Database",
    "get_db",
    "close_db",
    "JournalEntryRecord",
    "FitnessTestRecord",
    "GoalRecord",
    "GoalProgressRecord",
    "PatternAnalysisRecord",
    "AnalysisRunRecord",
    "SignalStore",
]
