"""Tests for the goal pace heuristic."""

from datetime import datetime, timedelta

import numpy as np
import pytest

from training_insights.analysis.goal_projector import (
    GoalProgressProjector, daily_rate, success_probability, time_progress,
)
from training_insights.domain import Goal
from training_insights.errors import InvalidGoalStateError

NOW = datetime(2024, 6, 1, 12, 0)


def make_goal(target=100.0, current=50.0, elapsed_days=30, remaining_days=30):
    return Goal(
        user_id="athlete",
        title="Squat 100kg",
        target_value=target,
        current_value=current,
        unit="kg",
        created_at=NOW - timedelta(days=elapsed_days),
        deadline=NOW + timedelta(days=remaining_days),
    )


class TestSuccessProbability:
    """Pace formula."""

    def test_equal_progress_is_seventy(self):
        assert success_probability(0.5, 0.5) == 70.0
        assert success_probability(0.0, 0.0) == 70.0
        assert success_probability(1.0, 1.0) == 70.0

    def test_ahead_of_pace(self):
        assert success_probability(0.2, 0.6) == pytest.approx(90.0)
        assert success_probability(0.0, 1.0) == 95.0

    def test_behind_pace(self):
        assert success_probability(0.8, 0.3) == pytest.approx(50.0)
        assert success_probability(1.0, 0.0) == pytest.approx(30.0)
        assert success_probability(1.0, -1.0) == 10.0

    def test_always_within_bounds(self):
        for t in np.linspace(0, 1, 11):
            for v in np.linspace(-2, 3, 26):
                assert 10.0 <= success_probability(t, v) <= 95.0


class TestTimeProgress:
    """Elapsed share of the goal period."""

    def test_halfway(self):
        assert time_progress(NOW - timedelta(days=30), NOW + timedelta(days=30), NOW) == 0.5

    def test_clamped(self):
        created, deadline = NOW, NOW + timedelta(days=10)
        assert time_progress(created, deadline, NOW - timedelta(days=1)) == 0.0
        assert time_progress(created, deadline, NOW + timedelta(days=20)) == 1.0

    def test_zero_length_goal_is_elapsed(self):
        assert time_progress(NOW, NOW, NOW) == 1.0


class TestDailyRate:
    """Progress rate from history."""

    def test_needs_two_distinct_points(self):
        assert daily_rate([]) is None
        assert daily_rate([(NOW, 50.0)]) is None
        assert daily_rate([(NOW, 50.0), (NOW, 55.0)]) is None

    def test_linear_history(self):
        history = [(NOW + timedelta(days=d), 50.0 + 0.5 * d) for d in range(0, 20, 2)]
        assert daily_rate(history) == pytest.approx(0.5)


class TestGoalProgressProjector:
    """Projection of a stored goal."""

    def setup_method(self):
        self.projector = GoalProgressProjector()

    def test_boundary_scenario(self):
        projection = self.projector.project(make_goal(), now=NOW)

        assert projection.time_progress == 0.5
        assert projection.value_progress == 0.5
        assert projection.success_probability == 70.0
        assert not projection.ahead_of_pace

    def test_ahead(self):
        projection = self.projector.project(make_goal(current=80.0), now=NOW)
        assert projection.ahead_of_pace
        assert projection.success_probability == pytest.approx(85.0)

    def test_behind(self):
        projection = self.projector.project(make_goal(current=20.0), now=NOW)
        assert projection.success_probability == pytest.approx(58.0)

    def test_history_overrides_current_value(self):
        goal = make_goal(current=0.0)
        history = [
            (NOW - timedelta(days=30), 0.0),
            (NOW, 60.0),
            (NOW - timedelta(days=15), 30.0),
        ]

        projection = self.projector.project(goal, history, now=NOW)

        assert projection.current_value == 60.0
        assert projection.daily_rate == pytest.approx(2.0)
        assert projection.projected_value == pytest.approx(120.0)

    def test_zero_target_rejected(self):
        with pytest.raises(InvalidGoalStateError):
            self.projector.project(make_goal(target=0.0), now=NOW)
