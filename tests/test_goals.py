"""Tests for goal management and fitness testing."""

from datetime import datetime, timedelta

import pytest

from training_insights.domain import FitnessTest, Goal
from training_insights.errors import InvalidEntryError, InvalidGoalStateError, NotFoundError
from training_insights.fitness_testing import FitnessTesting
from training_insights.goals import GoalManager

NOW = datetime(2024, 6, 1, 12, 0)


def make_goal(target=100.0, current=0.0, deadline=NOW + timedelta(days=60), **kwargs):
    return Goal(
        user_id="athlete",
        title="Squat 100kg",
        target_value=target,
        current_value=current,
        unit="kg",
        deadline=deadline,
        **kwargs,
    )


class TestGoalManager:
    """Goal creation and progress."""

    @pytest.fixture(autouse=True)
    def setup_services(self, store):
        self.store = store
        self.manager = GoalManager(store=store)

    def test_create_goal_sets_probability(self):
        goal = self.manager.create_goal(make_goal(current=50.0), now=NOW)

        assert goal.id is not None
        assert goal.created_at == NOW
        assert goal.success_probability == 95.0
        assert self.store.get_goal(goal.id).success_probability == 95.0

    def test_create_goal_at_zero_progress(self):
        goal = self.manager.create_goal(make_goal(), now=NOW)
        assert goal.success_probability == 70.0

    def test_create_goal_does_not_mutate_input(self):
        draft = make_goal()
        self.manager.create_goal(draft, now=NOW)
        assert draft.created_at is None
        assert draft.success_probability is None

    def test_zero_target_rejected(self):
        with pytest.raises(InvalidGoalStateError):
            self.manager.create_goal(make_goal(target=0.0), now=NOW)

    def test_past_deadline_rejected(self):
        with pytest.raises(InvalidGoalStateError):
            self.manager.create_goal(make_goal(deadline=NOW - timedelta(days=1)), now=NOW)
        with pytest.raises(InvalidGoalStateError):
            self.manager.create_goal(make_goal(deadline=NOW), now=NOW)

    def test_record_progress(self):
        goal = self.manager.create_goal(make_goal(), now=NOW)

        projection = self.manager.record_progress(goal.id, 50.0, now=NOW + timedelta(days=30))

        assert projection.success_probability == 70.0
        assert projection.daily_rate == pytest.approx(50.0 / 30)
        assert projection.projected_value == pytest.approx(100.0)
        stored = self.store.get_goal(goal.id)
        assert stored.current_value == 50.0
        assert stored.success_probability == 70.0
        assert len(self.store.list_goal_history(goal.id)) == 2

    def test_record_progress_behind(self):
        goal = self.manager.create_goal(make_goal(), now=NOW)

        projection = self.manager.record_progress(goal.id, 20.0, now=NOW + timedelta(days=45))

        assert projection.success_probability == pytest.approx(70 - (0.75 - 0.2) * 40)
        assert not projection.ahead_of_pace

    def test_record_progress_unknown_goal(self):
        with pytest.raises(NotFoundError):
            self.manager.record_progress(42, 10.0, now=NOW)

    def test_get_user_goals(self):
        first = self.manager.create_goal(make_goal(), now=NOW)
        second = self.manager.create_goal(make_goal(), now=NOW + timedelta(days=1))

        assert [g.id for g in self.manager.get_user_goals("athlete")] == [second.id, first.id]
        assert self.manager.get_user_goals("athlete", status="completed") == []

    def test_refresh_user_goals(self):
        goal = self.manager.create_goal(make_goal(current=50.0), now=NOW)

        [projection] = self.manager.refresh_user_goals("athlete", now=NOW + timedelta(days=30))

        assert projection.success_probability == 70.0
        assert self.store.get_goal(goal.id).success_probability == 70.0


class TestFitnessTesting:
    """Recording fitness tests."""

    @pytest.fixture(autouse=True)
    def setup_services(self, store):
        self.store = store
        self.testing = FitnessTesting(store=store)

    def record(self, name, value, day):
        return self.testing.record_test(FitnessTest(
            user_id="athlete",
            date=NOW + timedelta(days=day),
            test_name=name,
            primary_value=value,
            primary_unit="kg",
        ))

    def test_history_newest_first(self):
        self.record("back_squat_1rm", 130, 0)
        self.record("back_squat_1rm", 135, 7)
        self.record("bench_press_1rm", 95, 3)

        history = self.testing.get_test_history("athlete", test_name="back_squat_1rm")

        assert [t.primary_value for t in history] == [135.0, 130.0]
        assert len(self.testing.get_test_history("athlete")) == 3

    def test_requires_user(self):
        with pytest.raises(InvalidEntryError):
            self.testing.record_test(FitnessTest(user_id="", date=NOW, test_name="plank", primary_value=90))

    def test_recording_refreshes_active_goals(self):
        now = datetime.utcnow()
        goal = self.testing.goals.create_goal(
            make_goal(current=50.0, deadline=now + timedelta(days=10)),
            now=now - timedelta(days=10),
        )
        assert goal.success_probability == 95.0

        self.record("back_squat_1rm", 140, 0)

        assert self.store.get_goal(goal.id).success_probability == pytest.approx(70.0, abs=1.0)
