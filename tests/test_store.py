"""Tests for the SQLAlchemy-backed store."""

from datetime import datetime, timedelta

import pytest

from training_insights.domain import (
    FitnessTest, Goal, JournalEntry, ObjectiveMetrics, PatternAnalysis, Significance,
    SleepData, SubjectiveMetrics, WorkoutData,
)
from training_insights.errors import NotFoundError, PersistenceError

START = datetime(2024, 1, 1, 8, 0)


def make_entry(user_id, day, quality=7.0, intensity=70.0):
    return JournalEntry(
        user_id=user_id,
        date=START + timedelta(days=day),
        title=f"Day {day}",
        tags=["strength"],
        objective=ObjectiveMetrics(
            workout=WorkoutData(average_intensity=intensity, rpe=7),
            sleep=SleepData(quality=quality, duration=7.5),
        ),
        subjective=SubjectiveMetrics(mood=7, notes="ok"),
    )


def make_analysis(user_id, rank, insight="Insight", run_id="run-1"):
    return PatternAnalysis(
        user_id=user_id,
        analysis_type="correlation",
        variables=("sleep_quality", "energy"),
        correlation=0.6,
        confidence=70.0,
        significance=Significance.HIGH,
        sample_size=20,
        timeframe_start=START,
        timeframe_end=START + timedelta(days=90),
        insight=insight,
        recommendation="Sleep more",
        rank=rank,
        run_id=run_id,
    )


class TestJournalStorage:
    """Journal entries and signal reads."""

    def test_entry_round_trip(self, store):
        stored = store.add_journal_entry(make_entry("athlete", 0))

        assert stored.id is not None
        assert stored.created_at is not None
        [loaded] = store.list_journal_entries("athlete")
        assert loaded.title == "Day 0"
        assert loaded.tags == ["strength"]
        assert loaded.objective.workout.average_intensity == 70.0
        assert loaded.objective.nutrition is None
        assert loaded.subjective.mood == 7
        assert loaded.subjective.notes == "ok"

    def test_window_and_user_filters(self, store):
        for day in range(5):
            store.add_journal_entry(make_entry("athlete", day))
        store.add_journal_entry(make_entry("someone_else", 2))

        entries = store.list_journal_entries(
            "athlete", START + timedelta(days=1), START + timedelta(days=3)
        )

        assert [e.title for e in entries] == ["Day 1", "Day 2", "Day 3"]

    def test_list_signals(self, store):
        for day in range(3):
            store.add_journal_entry(make_entry("athlete", day, quality=5 + day))
        store.add_fitness_test(FitnessTest(
            user_id="athlete", date=START + timedelta(days=1), test_name="vertical_jump", primary_value=52,
        ))

        signals = store.list_signals(
            "athlete", ["sleep_quality", "test:vertical_jump"], START, START + timedelta(days=10)
        )

        assert [(s.variable, s.value) for s in signals] == [
            ("sleep_quality", 5.0),
            ("sleep_quality", 6.0),
            ("test:vertical_jump", 52.0),
            ("sleep_quality", 7.0),
        ]

    def test_fitness_test_secondary_metrics(self, store):
        store.add_fitness_test(FitnessTest(
            user_id="athlete", date=START, test_name="back_squat_1rm", primary_value=140,
            primary_unit="kg", secondary_metrics={"bar_speed": 0.45},
        ))
        [loaded] = store.list_fitness_tests("athlete", test_name="back_squat_1rm")
        assert loaded.primary_value == 140.0
        assert loaded.secondary_metrics == {"bar_speed": 0.45}


class TestGoalStorage:
    """Goals and progress history."""

    def make_goal(self):
        return Goal(
            user_id="athlete", title="Squat 150", target_value=150.0, current_value=120.0,
            deadline=START + timedelta(days=60), created_at=START, success_probability=95.0,
        )

    def test_add_goal_records_initial_progress(self, store):
        goal = store.add_goal(self.make_goal())

        assert store.get_goal(goal.id).title == "Squat 150"
        assert store.list_goal_history(goal.id) == [(START, 120.0)]

    def test_update_goal(self, store):
        goal = store.add_goal(self.make_goal())
        store.update_goal(goal.id, 130.0, 80.0)

        loaded = store.get_goal(goal.id)
        assert loaded.current_value == 130.0
        assert loaded.success_probability == 80.0

    def test_missing_goal(self, store):
        with pytest.raises(NotFoundError):
            store.get_goal(999)
        with pytest.raises(NotFoundError):
            store.append_goal_progress(999, START, 1.0)
        with pytest.raises(NotFoundError):
            store.update_goal(999, 1.0, 50.0)


class TestPatternStorage:
    """Append-only pattern analysis rows."""

    def test_append_and_latest_run(self, store):
        store.append_pattern_analyses("athlete", [make_analysis("athlete", 1, run_id="run-1")])
        store.append_pattern_analyses("athlete", [
            make_analysis("athlete", 2, run_id="run-2"),
            make_analysis("athlete", 1, run_id="run-2"),
        ])

        assert store.latest_run_id("athlete") == "run-2"
        assert [a.rank for a in store.list_pattern_analyses("athlete", run_id="run-2")] == [1, 2]
        assert len(store.list_pattern_analyses("athlete")) == 3
        assert store.latest_run_id("nobody") is None

    def test_batch_is_atomic(self, store):
        batch = [make_analysis("athlete", 1), make_analysis("athlete", 2, insight=None)]

        with pytest.raises(PersistenceError):
            store.append_pattern_analyses("athlete", batch)

        assert store.list_pattern_analyses("athlete") == []
        assert store.latest_run_id("athlete") is None

    def test_rejects_other_users_rows(self, store):
        with pytest.raises(ValueError):
            store.append_pattern_analyses("athlete", [make_analysis("someone_else", 1)])

    def test_round_trip(self, store):
        store.append_pattern_analyses("athlete", [make_analysis("athlete", 1)])
        [loaded] = store.list_pattern_analyses("athlete")

        assert loaded.variables == ("sleep_quality", "energy")
        assert loaded.significance is Significance.HIGH
        assert loaded.created_at is not None

    def test_empty_run_becomes_latest(self, store):
        store.append_pattern_analyses("athlete", [make_analysis("athlete", 1, run_id="run-1")])
        store.append_pattern_analyses(
            "athlete", [], run_id="run-2", timeframe_start=START, timeframe_end=START + timedelta(days=90),
        )

        assert store.latest_run_id("athlete") == "run-2"
        assert store.list_pattern_analyses("athlete", run_id="run-2") == []
        assert len(store.list_pattern_analyses("athlete")) == 1

    def test_empty_run_needs_run_id(self, store):
        with pytest.raises(ValueError):
            store.append_pattern_analyses("athlete", [])
