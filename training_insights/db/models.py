"""Database models for journal entries, fitness tests, goals and pattern analyses."""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class JournalEntryRecord(Base):
    """Training journal entry."""

    __tablename__ = "training_journal_entries"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), nullable=False, index=True)
    date = Column(DateTime, nullable=False)
    title = Column(String(255))
    content = Column(Text)
    tags = Column(Text)  # JSON list of strings
    template_id = Column(String(50))
    objective_data = Column(Text)  # JSON: workout, nutrition, biometrics, sleep
    subjective_data = Column(Text)  # JSON: 1-10 scores and notes
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (Index("ix_journal_user_date", "user_id", "date"),)

    def __repr__(self):
        return f"<JournalEntryRecord(user_id={self.user_id}, date={self.date}, title={self.title})>"


class FitnessTestRecord(Base):
    """Point-in-time fitness test result. Rows are never updated."""

    __tablename__ = "fitness_tests"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), nullable=False, index=True)
    date = Column(DateTime, nullable=False)
    test_name = Column(String(100), nullable=False)  # e.g. "back_squat_1rm", "cooper_12min"
    category = Column(String(50))  # strength, power, endurance, body_composition, flexibility, balance
    protocol = Column(Text)
    primary_value = Column(Float, nullable=False)
    primary_unit = Column(String(20))
    secondary_metrics = Column(Text)  # JSON: {name: {"value": float, "unit": str}}
    conditions = Column(Text)  # JSON: temperature, time of day, sleep quality...
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<FitnessTestRecord(user_id={self.user_id}, test={self.test_name}, value={self.primary_value})>"


class GoalRecord(Base):
    """User goal with derived success probability."""

    __tablename__ = "goals"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), nullable=False, index=True)
    goal_type = Column(String(20), default="primary")  # primary, secondary, micro
    category = Column(String(50), default="performance")  # performance, body_composition, skill, competitive
    title = Column(String(255), nullable=False)
    description = Column(Text)
    target_value = Column(Float, nullable=False)
    current_value = Column(Float, nullable=False, default=0.0)
    unit = Column(String(20))
    deadline = Column(DateTime, nullable=False)
    priority = Column(Integer, default=1)
    parent_goal_id = Column(Integer, ForeignKey("goals.id"))
    status = Column(String(20), default="active")  # active, completed, paused, cancelled
    success_probability = Column(Float)  # 0-100, recomputed by the pace heuristic
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<GoalRecord(id={self.id}, title={self.title}, {self.current_value}/{self.target_value})>"


class GoalProgressRecord(Base):
    """Append-only history of goal values."""

    __tablename__ = "goal_progress"

    id = Column(Integer, primary_key=True)
    goal_id = Column(Integer, ForeignKey("goals.id"), nullable=False, index=True)
    recorded_at = Column(DateTime, nullable=False)
    value = Column(Float, nullable=False)

    def __repr__(self):
        return f"<GoalProgressRecord(goal_id={self.goal_id}, recorded_at={self.recorded_at}, value={self.value})>"


class PatternAnalysisRecord(Base):
    """Output of one analysis run. Never updated; later runs add new rows."""

    __tablename__ = "pattern_analyses"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(50), nullable=False, index=True)
    run_id = Column(String(36), nullable=False, index=True)
    analysis_type = Column(String(20), nullable=False)  # correlation, trend
    variable_1 = Column(String(100), nullable=False)
    variable_2 = Column(String(100))  # NULL for single-variable trends
    correlation = Column(Float, nullable=False)
    confidence = Column(Float, nullable=False)
    significance = Column(String(10), nullable=False)  # low, medium, high
    lag_days = Column(Integer, default=0)
    sample_size = Column(Integer, nullable=False)
    p_value = Column(Float)
    slope = Column(Float)  # units per day, trends only
    insight = Column(Text, nullable=False)
    recommendation = Column(Text, nullable=False)
    rank = Column(Integer, nullable=False)
    timeframe_start = Column(DateTime, nullable=False)
    timeframe_end = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return (f"<PatternAnalysisRecord(user_id={self.user_id}, variables=({self.variable_1}, "
                f"{self.variable_2}), r={self.correlation:.2f}, significance={self.significance})>")


class AnalysisRunRecord(Base):
    """One pattern analysis run, recorded even when it surfaced nothing."""

    __tablename__ = "analysis_runs"

    id = Column(Integer, primary_key=True)
    run_id = Column(String(36), nullable=False, unique=True)
    user_id = Column(String(50), nullable=False, index=True)
    timeframe_start = Column(DateTime, nullable=False)
    timeframe_end = Column(DateTime, nullable=False)
    pattern_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<AnalysisRunRecord(run_id={self.run_id}, user_id={self.user_id}, patterns={self.pattern_count})>"
