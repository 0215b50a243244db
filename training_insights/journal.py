"""Training journal: entry creation, search and retrieval."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from .analysis.pattern_analysis import PatternAnalysisService
from .db import Database, SignalStore
from .domain import JournalEntry
from .errors import InvalidEntryError


class TrainingJournal:
    """Journal operations for one store.

    Creating an entry triggers a pattern analysis run for its user, so new
    insights are available as soon as the write returns.
    """

    def __init__(
        self,
        store: Optional[SignalStore] = None,
        db: Optional[Database] = None,
        analysis: Optional[PatternAnalysisService] = None,
    ):
        self.store = store or SignalStore(db)
        self.analysis = analysis or PatternAnalysisService(store=self.store)
        self.logger = logging.getLogger(__name__)

    def create_entry(self, entry: JournalEntry, analyze: bool = True) -> JournalEntry:
        """Store a journal entry and re-run pattern analysis for its user.

        Raises:
            InvalidEntryError: missing user or date.
            PersistenceError: the entry could not be stored.
            AnalysisFailedError: the entry was stored but the follow-up run failed.
        """
        if not entry.user_id:
            raise InvalidEntryError("Journal entry needs a user_id")
        if entry.date is None:
            raise InvalidEntryError("Journal entry needs a date")

        stored = self.store.add_journal_entry(entry)
        self.logger.info(f"Stored journal entry {stored.id} for {stored.user_id}")

        if analyze:
            self.analysis.analyze_patterns(stored.user_id)
        return stored

    def get_entries(self, user_id: str, days: Optional[int] = None) -> List[JournalEntry]:
        """Entries for a user, newest first, optionally limited to the last ``days``."""
        start = datetime.utcnow() - timedelta(days=days) if days else None
        entries = self.store.list_journal_entries(user_id, window_start=start)
        return list(reversed(entries))

    def search_entries(
        self,
        user_id: str,
        keywords: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        date_range: Optional[Tuple[datetime, datetime]] = None,
        rpe_range: Optional[Tuple[float, float]] = None,
        mood_range: Optional[Tuple[float, float]] = None,
    ) -> List[JournalEntry]:
        """Entries matching every given filter, newest first.

        Keywords match title or content case-insensitively; all ``tags`` must be
        present. Range filters are inclusive and exclude entries lacking the value.
        """
        start, end = date_range if date_range else (None, None)
        entries = self.store.list_journal_entries(user_id, window_start=start, window_end=end)

        if keywords:
            needle = keywords.lower()
            entries = [
                e for e in entries
                if needle in (e.title or "").lower() or needle in (e.content or "").lower()
            ]

        if tags:
            wanted = set(tags)
            entries = [e for e in entries if wanted.issubset(e.tags or [])]

        if rpe_range:
            low, high = rpe_range
            entries = [
                e for e in entries
                if e.objective.workout is not None
                and e.objective.workout.rpe is not None
                and low <= e.objective.workout.rpe <= high
            ]

        if mood_range:
            low, high = mood_range
            entries = [
                e for e in entries
                if e.subjective.mood is not None and low <= e.subjective.mood <= high
            ]

        return list(reversed(entries))
