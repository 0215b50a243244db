"""Tests for the training journal service."""

from datetime import datetime, timedelta

import pytest

from training_insights.domain import (
    JournalEntry, ObjectiveMetrics, SleepData, SubjectiveMetrics, WorkoutData,
)
from training_insights.errors import InvalidEntryError
from training_insights.journal import TrainingJournal

START = datetime(2024, 1, 1, 18, 0)


class TestTrainingJournal:
    """Entry creation and search."""

    @pytest.fixture(autouse=True)
    def setup_services(self, store):
        self.store = store
        self.journal = TrainingJournal(store=store)

    def add(self, day, title, content="", tags=(), rpe=None, mood=None, analyze=False):
        return self.journal.create_entry(JournalEntry(
            user_id="athlete",
            date=START + timedelta(days=day),
            title=title,
            content=content,
            tags=list(tags),
            objective=ObjectiveMetrics(workout=WorkoutData(rpe=rpe) if rpe is not None else None),
            subjective=SubjectiveMetrics(mood=mood),
        ), analyze=analyze)

    def test_create_entry_validates(self):
        with pytest.raises(InvalidEntryError):
            self.journal.create_entry(JournalEntry(user_id="", date=START))
        with pytest.raises(InvalidEntryError):
            self.journal.create_entry(JournalEntry(user_id="athlete", date=None))

    def test_create_entry_runs_analysis(self):
        for day in range(12):
            self.journal.create_entry(JournalEntry(
                user_id="athlete",
                date=datetime.utcnow() - timedelta(days=12 - day),
                objective=ObjectiveMetrics(
                    workout=WorkoutData(average_intensity=50 + 5 * (day % 4)),
                    sleep=SleepData(quality=5 + (day % 4)),
                ),
            ))

        latest = self.journal.analysis.get_latest_patterns("athlete")

        assert any(p.variables == ("sleep_quality", "workout_intensity") for p in latest)

    def test_get_entries_newest_first(self):
        self.add(0, "Squats")
        self.add(1, "Bench")

        assert [e.title for e in self.journal.get_entries("athlete")] == ["Bench", "Squats"]

    def test_search_keywords_and_tags(self):
        self.add(0, "Heavy squats", tags=["strength", "legs"])
        self.add(1, "Easy run", content="Felt heavy legs", tags=["cardio"])
        self.add(2, "Bench", tags=["strength"])

        assert [e.title for e in self.journal.search_entries("athlete", keywords="HEAVY")] == \
            ["Easy run", "Heavy squats"]
        assert [e.title for e in self.journal.search_entries("athlete", tags=["strength"])] == \
            ["Bench", "Heavy squats"]
        assert [e.title for e in self.journal.search_entries("athlete", tags=["strength", "legs"])] == \
            ["Heavy squats"]

    def test_search_ranges(self):
        self.add(0, "Hard", rpe=9, mood=4)
        self.add(1, "Moderate", rpe=7, mood=7)
        self.add(2, "Rest day", mood=8)

        assert [e.title for e in self.journal.search_entries("athlete", rpe_range=(8, 10))] == ["Hard"]
        assert [e.title for e in self.journal.search_entries("athlete", mood_range=(6, 10))] == \
            ["Rest day", "Moderate"]

    def test_search_date_range(self):
        for day in range(5):
            self.add(day, f"Day {day}")

        found = self.journal.search_entries(
            "athlete", date_range=(START + timedelta(days=1), START + timedelta(days=2))
        )

        assert [e.title for e in found] == ["Day 2", "Day 1"]
