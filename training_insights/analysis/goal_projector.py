"""Goal pace heuristic.

The success probability compares how much of the goal's time has elapsed with
how much of the target value has been reached:

    time_progress  = elapsed / total duration         (clamped to [0, 1])
    value_progress = current / target

    ahead  (value > time): min(95, 70 + (value - time) * 50)
    behind (value <= time): max(10, 70 - (time - value) * 40)

Equal progress gives exactly 70 from either side. This is an ahead/behind
pace indicator, not a calibrated probability.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from ..config import config
from ..domain import Goal
from ..errors import InvalidGoalStateError
from .correlation_engine import trend_slope

SECONDS_PER_DAY = 86400.0


@dataclass
class GoalProjection:
    success_probability: float
    time_progress: float
    value_progress: float
    current_value: float
    daily_rate: Optional[float] = None  # units/day from history
    projected_value: Optional[float] = None  # at the deadline, at daily_rate

    @property
    def ahead_of_pace(self) -> bool:
        return self.value_progress > self.time_progress


def success_probability(time_progress: float, value_progress: float) -> float:
    """Pace heuristic in [GOAL_MIN_PROBABILITY, GOAL_MAX_PROBABILITY]."""
    baseline = config.GOAL_BASELINE_PROBABILITY
    if value_progress > time_progress:
        lead = value_progress - time_progress
        return float(min(config.GOAL_MAX_PROBABILITY, baseline + lead * config.GOAL_AHEAD_GAIN))
    lag = time_progress - value_progress
    return float(max(config.GOAL_MIN_PROBABILITY, baseline - lag * config.GOAL_BEHIND_PENALTY))


def time_progress(created_at: datetime, deadline: datetime, now: datetime) -> float:
    """Elapsed share of the goal duration, clamped to [0, 1]."""
    total = (deadline - created_at).total_seconds()
    if total <= 0:
        return 1.0
    elapsed = (now - created_at).total_seconds()
    return min(1.0, max(0.0, elapsed / total))


def daily_rate(history: Sequence[Tuple[datetime, float]]) -> Optional[float]:
    """Least-squares rate of change in units per day, or None with fewer than two distinct times."""
    if len(history) < 2:
        return None
    origin = history[0][0]
    offsets = [(ts - origin).total_seconds() / SECONDS_PER_DAY for ts, _ in history]
    if max(offsets) == min(offsets):
        return None
    return trend_slope(offsets, [value for _, value in history])


class GoalProgressProjector:
    """Projects success probability for a goal from its pace."""

    def project(
        self,
        goal: Goal,
        history: Optional[List[Tuple[datetime, float]]] = None,
        now: Optional[datetime] = None,
    ) -> GoalProjection:
        """Project a goal's success probability.

        Args:
            goal: Goal with target, current value, creation time and deadline.
            history: ``(timestamp, value)`` points; the latest one is used as the
                current value when present.
            now: Evaluation time, defaults to ``datetime.utcnow()``.

        Raises:
            InvalidGoalStateError: target value of zero.
        """
        if not goal.target_value:
            raise InvalidGoalStateError(f"Goal '{goal.title}' has a zero target value")
        now = now or datetime.utcnow()
        created_at = goal.created_at or now
        history = sorted(history or [], key=lambda point: point[0])

        current = history[-1][1] if history else goal.current_value
        t_progress = time_progress(created_at, goal.deadline, now)
        v_progress = current / goal.target_value

        rate = daily_rate(history)
        projected = None
        if rate is not None:
            days_left = max(0.0, (goal.deadline - now).total_seconds() / SECONDS_PER_DAY)
            projected = current + rate * days_left

        return GoalProjection(
            success_probability=success_probability(t_progress, v_progress),
            time_progress=t_progress,
            value_progress=v_progress,
            current_value=current,
            daily_rate=rate,
            projected_value=projected,
        )
