"""Goal management: creation, progress recording and probability refresh."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from .analysis.goal_projector import GoalProgressProjector, GoalProjection
from .db import Database, SignalStore
from .domain import Goal
from .errors import InvalidGoalStateError


class GoalManager:
    """Goal operations. ``success_probability`` is always derived, never set by callers."""

    def __init__(
        self,
        store: Optional[SignalStore] = None,
        db: Optional[Database] = None,
        projector: Optional[GoalProgressProjector] = None,
    ):
        self.store = store or SignalStore(db)
        self.projector = projector or GoalProgressProjector()
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def validate_new_goal(goal: Goal, now: datetime) -> None:
        """Reject goals that the pace heuristic cannot evaluate."""
        if not goal.user_id:
            raise InvalidGoalStateError("Goal needs a user_id")
        if not goal.target_value:
            raise InvalidGoalStateError("Goal target value cannot be zero")
        if goal.deadline is None or goal.deadline <= now:
            raise InvalidGoalStateError(f"Goal deadline {goal.deadline} is not in the future")

    def create_goal(self, goal: Goal, now: Optional[datetime] = None) -> Goal:
        """Validate and store a goal with its initial success probability.

        Raises:
            InvalidGoalStateError: zero target or deadline not after ``now``.
        """
        now = now or datetime.utcnow()
        self.validate_new_goal(goal, now)

        goal = replace(goal, created_at=goal.created_at or now)
        goal.success_probability = self.projector.project(goal, now=now).success_probability
        stored = self.store.add_goal(goal)
        self.logger.info(
            f"Created goal {stored.id} '{stored.title}' (success probability {stored.success_probability:.0f}%)"
        )
        return stored

    def get_user_goals(self, user_id: str, status: Optional[str] = None) -> List[Goal]:
        return self.store.list_goals(user_id, status=status)

    def project(self, goal_id: int, now: Optional[datetime] = None) -> GoalProjection:
        goal = self.store.get_goal(goal_id)
        history = self.store.list_goal_history(goal_id)
        return self.projector.project(goal, history, now=now)

    def record_progress(self, goal_id: int, value: float, now: Optional[datetime] = None) -> GoalProjection:
        """Append a progress value and recompute the goal's success probability."""
        now = now or datetime.utcnow()
        self.store.append_goal_progress(goal_id, now, value)
        projection = self.project(goal_id, now=now)
        self.store.update_goal(goal_id, projection.current_value, projection.success_probability)
        return projection

    def refresh_user_goals(self, user_id: str, now: Optional[datetime] = None) -> List[GoalProjection]:
        """Recompute success probability for every active goal of a user."""
        projections = []
        for goal in self.store.list_goals(user_id, status="active"):
            projection = self.project(goal.id, now=now)
            self.store.update_goal(goal.id, projection.current_value, projection.success_probability)
            projections.append(projection)
        self.logger.debug(f"Refreshed {len(projections)} active goals for {user_id}")
        return projections
