"""Fitness test recording and history."""

import logging
from typing import List, Optional

from .db import Database, SignalStore
from .domain import FitnessTest
from .errors import InvalidEntryError
from .goals import GoalManager


class FitnessTesting:
    """Append-only fitness test log. Recording a test refreshes the user's active goals."""

    def __init__(
        self,
        store: Optional[SignalStore] = None,
        db: Optional[Database] = None,
        goals: Optional[GoalManager] = None,
    ):
        self.store = store or SignalStore(db)
        self.goals = goals or GoalManager(store=self.store)
        self.logger = logging.getLogger(__name__)

    def record_test(self, test: FitnessTest) -> FitnessTest:
        if not test.user_id:
            raise InvalidEntryError("Fitness test needs a user_id")
        stored = self.store.add_fitness_test(test)
        self.logger.info(f"Recorded {stored.test_name}={stored.primary_value}{stored.primary_unit} for {stored.user_id}")
        self.goals.refresh_user_goals(stored.user_id)
        return stored

    def get_test_history(self, user_id: str, test_name: Optional[str] = None) -> List[FitnessTest]:
        """Tests for a user, newest first, optionally for one test name."""
        return list(reversed(self.store.list_fitness_tests(user_id, test_name=test_name)))
