"""Store adapter: the persistence boundary used by the analysis engine and services."""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from ..domain import FitnessTest, Goal, JournalEntry, PatternAnalysis
from ..errors import NotFoundError, PersistenceError
from ..signals import Signal, extract_signals
from .database import Database, get_db
from .mappers import (
    fitness_test_from_row, fitness_test_to_row, goal_from_row, goal_to_row,
    journal_entry_from_row, journal_entry_to_row, pattern_analysis_from_row,
    pattern_analysis_to_row,
)
from .models import (
    AnalysisRunRecord, FitnessTestRecord, GoalProgressRecord, GoalRecord, JournalEntryRecord,
    PatternAnalysisRecord,
)


class SignalStore:
    """Filtered reads and batch writes against the relational store.

    Every method opens its own session; writes commit atomically or not at
    all. SQLAlchemy failures surface as ``PersistenceError``.
    """

    def __init__(self, db: Optional[Database] = None):
        self.db = db or get_db()
        self.logger = logging.getLogger(__name__)

    # ─── Signals ──────────────────────────────────────────────────────────

    def list_journal_entries(
        self,
        user_id: str,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
    ) -> List[JournalEntry]:
        """Journal entries for a user, oldest first, optionally bounded by date."""
        try:
            with self.db.get_session() as session:
                query = session.query(JournalEntryRecord).filter(JournalEntryRecord.user_id == user_id)
                if window_start is not None:
                    query = query.filter(JournalEntryRecord.date >= window_start)
                if window_end is not None:
                    query = query.filter(JournalEntryRecord.date <= window_end)
                rows = query.order_by(JournalEntryRecord.date.asc(), JournalEntryRecord.id.asc()).all()
                return [journal_entry_from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read journal entries: {e}") from e

    def list_fitness_tests(
        self,
        user_id: str,
        window_start: Optional[datetime] = None,
        window_end: Optional[datetime] = None,
        test_name: Optional[str] = None,
    ) -> List[FitnessTest]:
        """Fitness tests for a user, oldest first."""
        try:
            with self.db.get_session() as session:
                query = session.query(FitnessTestRecord).filter(FitnessTestRecord.user_id == user_id)
                if window_start is not None:
                    query = query.filter(FitnessTestRecord.date >= window_start)
                if window_end is not None:
                    query = query.filter(FitnessTestRecord.date <= window_end)
                if test_name:
                    query = query.filter(FitnessTestRecord.test_name == test_name)
                rows = query.order_by(FitnessTestRecord.date.asc(), FitnessTestRecord.id.asc()).all()
                return [fitness_test_from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read fitness tests: {e}") from e

    def list_signals(
        self,
        user_id: str,
        variable_names: Optional[Iterable[str]],
        window_start: datetime,
        window_end: datetime,
    ) -> List[Signal]:
        """Signals for a user within ``[window_start, window_end]``.

        ``variable_names=None`` returns every extractable variable.
        """
        entries = self.list_journal_entries(user_id, window_start, window_end)
        tests = self.list_fitness_tests(user_id, window_start, window_end)
        signals = extract_signals(entries, tests, variable_names)
        self.logger.debug(
            f"Loaded {len(signals)} signals for {user_id} from {len(entries)} entries and {len(tests)} tests"
        )
        return signals

    def add_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        try:
            with self.db.get_session() as session:
                row = journal_entry_to_row(entry)
                session.add(row)
                session.flush()
                return journal_entry_from_row(row)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to store journal entry: {e}") from e

    def add_fitness_test(self, test: FitnessTest) -> FitnessTest:
        try:
            with self.db.get_session() as session:
                row = fitness_test_to_row(test)
                session.add(row)
                session.flush()
                return fitness_test_from_row(row)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to store fitness test: {e}") from e

    # ─── Goals ────────────────────────────────────────────────────────────

    def add_goal(self, goal: Goal) -> Goal:
        try:
            with self.db.get_session() as session:
                row = goal_to_row(goal)
                session.add(row)
                session.flush()
                session.add(GoalProgressRecord(
                    goal_id=row.id, recorded_at=row.created_at, value=row.current_value
                ))
                return goal_from_row(row)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to store goal: {e}") from e

    def get_goal(self, goal_id: int) -> Goal:
        try:
            with self.db.get_session() as session:
                row = session.get(GoalRecord, goal_id)
                if row is None:
                    raise NotFoundError(f"Goal {goal_id} not found")
                return goal_from_row(row)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read goal {goal_id}: {e}") from e

    def list_goals(self, user_id: str, status: Optional[str] = None) -> List[Goal]:
        """Goals for a user, newest first."""
        try:
            with self.db.get_session() as session:
                query = session.query(GoalRecord).filter(GoalRecord.user_id == user_id)
                if status:
                    query = query.filter(GoalRecord.status == status)
                rows = query.order_by(GoalRecord.created_at.desc(), GoalRecord.id.desc()).all()
                return [goal_from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read goals: {e}") from e

    def list_goal_history(self, goal_id: int) -> List[Tuple[datetime, float]]:
        """``(timestamp, value)`` history of a goal, oldest first."""
        try:
            with self.db.get_session() as session:
                rows = (
                    session.query(GoalProgressRecord)
                    .filter(GoalProgressRecord.goal_id == goal_id)
                    .order_by(GoalProgressRecord.recorded_at.asc(), GoalProgressRecord.id.asc())
                    .all()
                )
                return [(row.recorded_at, row.value) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read history of goal {goal_id}: {e}") from e

    def append_goal_progress(self, goal_id: int, recorded_at: datetime, value: float) -> None:
        try:
            with self.db.get_session() as session:
                if session.get(GoalRecord, goal_id) is None:
                    raise NotFoundError(f"Goal {goal_id} not found")
                session.add(GoalProgressRecord(goal_id=goal_id, recorded_at=recorded_at, value=value))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to record progress for goal {goal_id}: {e}") from e

    def update_goal(self, goal_id: int, current_value: float, success_probability: float) -> None:
        try:
            with self.db.get_session() as session:
                row = session.get(GoalRecord, goal_id)
                if row is None:
                    raise NotFoundError(f"Goal {goal_id} not found")
                row.current_value = current_value
                row.success_probability = success_probability
                row.updated_at = datetime.utcnow()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update goal {goal_id}: {e}") from e

    # ─── Pattern analyses ─────────────────────────────────────────────────

    def append_pattern_analyses(
        self,
        user_id: str,
        analyses: List[PatternAnalysis],
        run_id: Optional[str] = None,
        timeframe_start: Optional[datetime] = None,
        timeframe_end: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
    ) -> None:
        """Record one run and its analyses in one transaction. Nothing is written on failure.

        ``run_id`` and the timeframe default to those of the analyses. The run
        row is written even when ``analyses`` is empty, so an empty run
        supersedes earlier ones; an empty batch needs an explicit ``run_id``.
        """
        if analyses:
            run_id = run_id or analyses[0].run_id
            timeframe_start = timeframe_start or analyses[0].timeframe_start
            timeframe_end = timeframe_end or analyses[0].timeframe_end
        if not run_id or timeframe_start is None or timeframe_end is None:
            raise ValueError("An analysis run needs a run_id and a timeframe")

        foreign = [a for a in analyses if a.user_id != user_id or a.run_id != run_id]
        if foreign:
            raise ValueError(f"{len(foreign)} analyses do not belong to run {run_id} of user {user_id}")

        created_at = created_at or datetime.utcnow()
        rows = [pattern_analysis_to_row(a) for a in analyses]
        for row in rows:
            if row.created_at is None:
                row.created_at = created_at
        try:
            with self.db.get_session() as session:
                session.add(AnalysisRunRecord(
                    run_id=run_id,
                    user_id=user_id,
                    timeframe_start=timeframe_start,
                    timeframe_end=timeframe_end,
                    pattern_count=len(rows),
                    created_at=created_at,
                ))
                session.add_all(rows)
        except SQLAlchemyError as e:
            self.logger.error(f"Rolled back run {run_id} ({len(analyses)} pattern analyses) for {user_id}: {e}")
            raise PersistenceError(f"Failed to store pattern analyses: {e}") from e

    def list_pattern_analyses(self, user_id: str, run_id: Optional[str] = None) -> List[PatternAnalysis]:
        """Stored analyses for a user, newest run first and ranked within a run."""
        try:
            with self.db.get_session() as session:
                query = session.query(PatternAnalysisRecord).filter(PatternAnalysisRecord.user_id == user_id)
                if run_id:
                    query = query.filter(PatternAnalysisRecord.run_id == run_id)
                rows = query.order_by(
                    PatternAnalysisRecord.created_at.desc(),
                    PatternAnalysisRecord.run_id,
                    PatternAnalysisRecord.rank.asc(),
                ).all()
                return [pattern_analysis_from_row(row) for row in rows]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read pattern analyses: {e}") from e

    def latest_run_id(self, user_id: str) -> Optional[str]:
        """Most recent run for a user, including runs that surfaced nothing."""
        try:
            with self.db.get_session() as session:
                row = (
                    session.query(AnalysisRunRecord)
                    .filter(AnalysisRunRecord.user_id == user_id)
                    .order_by(AnalysisRunRecord.created_at.desc(), AnalysisRunRecord.id.desc())
                    .first()
                )
                return row.run_id if row else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read analysis runs: {e}") from e
