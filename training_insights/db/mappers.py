"""Conversion between ORM rows and domain dataclasses.

This is the only place that reads raw row columns or parses the JSON
sub-documents stored in Text columns.
"""

import json
from dataclasses import asdict
from typing import Any, Dict, Optional

from ..domain import (
    Biometrics, FitnessTest, Goal, JournalEntry, NutritionData,
    ObjectiveMetrics, PatternAnalysis, Significance, SleepData,
    SubjectiveMetrics, WorkoutData,
)
from ..errors import InvalidEntryError
from .models import FitnessTestRecord, GoalRecord, JournalEntryRecord, PatternAnalysisRecord


def _loads(raw: Optional[str], default):
    if not raw:
        return default
    try:
        return json.loads(raw)
    except ValueError as e:
        raise InvalidEntryError(f"Malformed JSON column: {e}") from e


def _section(cls, data: Optional[Dict[str, Any]]):
    """Build a metrics dataclass from a dict, ignoring unknown keys."""
    if not data:
        return None
    if not isinstance(data, dict):
        raise InvalidEntryError(f"{cls.__name__} must be an object, got {type(data).__name__}")
    fields = cls.__dataclass_fields__
    return cls(**{k: v for k, v in data.items() if k in fields})


def objective_from_dict(data: Optional[Dict[str, Any]]) -> ObjectiveMetrics:
    data = data or {}
    return ObjectiveMetrics(
        workout=_section(WorkoutData, data.get("workout")),
        nutrition=_section(NutritionData, data.get("nutrition")),
        biometrics=_section(Biometrics, data.get("biometrics")),
        sleep=_section(SleepData, data.get("sleep")),
    )


def subjective_from_dict(data: Optional[Dict[str, Any]]) -> SubjectiveMetrics:
    return _section(SubjectiveMetrics, data) or SubjectiveMetrics()


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def objective_to_dict(objective: ObjectiveMetrics) -> Dict[str, Any]:
    result = {}
    for name in ("workout", "nutrition", "biometrics", "sleep"):
        section = getattr(objective, name)
        if section is not None:
            result[name] = _drop_none(asdict(section))
    return result


def journal_entry_from_row(row: JournalEntryRecord) -> JournalEntry:
    return JournalEntry(
        id=row.id,
        user_id=row.user_id,
        date=row.date,
        title=row.title or "",
        content=row.content or "",
        tags=_loads(row.tags, []),
        template_id=row.template_id,
        objective=objective_from_dict(_loads(row.objective_data, {})),
        subjective=subjective_from_dict(_loads(row.subjective_data, {})),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def journal_entry_to_row(entry: JournalEntry) -> JournalEntryRecord:
    return JournalEntryRecord(
        user_id=entry.user_id,
        date=entry.date,
        title=entry.title,
        content=entry.content,
        tags=json.dumps(list(entry.tags)),
        template_id=entry.template_id,
        objective_data=json.dumps(objective_to_dict(entry.objective)),
        subjective_data=json.dumps(_drop_none(asdict(entry.subjective))),
    )


def _flatten_secondary(raw: Dict[str, Any]) -> Dict[str, float]:
    """Accept both ``{name: value}`` and ``{name: {"value": v, "unit": u}}``."""
    flat = {}
    for name, item in raw.items():
        if isinstance(item, dict):
            item = item.get("value")
        flat[name] = item
    return flat


def fitness_test_from_row(row: FitnessTestRecord) -> FitnessTest:
    return FitnessTest(
        id=row.id,
        user_id=row.user_id,
        date=row.date,
        test_name=row.test_name,
        category=row.category or "",
        protocol=row.protocol or "",
        primary_value=row.primary_value,
        primary_unit=row.primary_unit or "",
        secondary_metrics=_flatten_secondary(_loads(row.secondary_metrics, {})),
        conditions=_loads(row.conditions, {}),
        notes=row.notes or "",
    )


def fitness_test_to_row(test: FitnessTest) -> FitnessTestRecord:
    return FitnessTestRecord(
        user_id=test.user_id,
        date=test.date,
        test_name=test.test_name,
        category=test.category,
        protocol=test.protocol,
        primary_value=float(test.primary_value),
        primary_unit=test.primary_unit,
        secondary_metrics=json.dumps(test.secondary_metrics),
        conditions=json.dumps(test.conditions),
        notes=test.notes,
    )


def goal_from_row(row: GoalRecord) -> Goal:
    return Goal(
        id=row.id,
        user_id=row.user_id,
        goal_type=row.goal_type,
        category=row.category,
        title=row.title,
        description=row.description or "",
        target_value=row.target_value,
        current_value=row.current_value,
        unit=row.unit or "",
        deadline=row.deadline,
        priority=row.priority,
        parent_goal_id=row.parent_goal_id,
        status=row.status,
        success_probability=row.success_probability,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def goal_to_row(goal: Goal) -> GoalRecord:
    row = GoalRecord(
        user_id=goal.user_id,
        goal_type=goal.goal_type,
        category=goal.category,
        title=goal.title,
        description=goal.description,
        target_value=goal.target_value,
        current_value=goal.current_value,
        unit=goal.unit,
        deadline=goal.deadline,
        priority=goal.priority,
        parent_goal_id=goal.parent_goal_id,
        status=goal.status,
        success_probability=goal.success_probability,
    )
    if goal.created_at is not None:
        row.created_at = goal.created_at
    return row


def pattern_analysis_to_row(analysis: PatternAnalysis) -> PatternAnalysisRecord:
    variables = list(analysis.variables)
    row = PatternAnalysisRecord(
        user_id=analysis.user_id,
        run_id=analysis.run_id,
        analysis_type=analysis.analysis_type,
        variable_1=variables[0],
        variable_2=variables[1] if len(variables) > 1 else None,
        correlation=float(analysis.correlation),
        confidence=float(analysis.confidence),
        significance=analysis.significance.value,
        lag_days=analysis.lag_days,
        sample_size=analysis.sample_size,
        p_value=analysis.p_value,
        slope=analysis.slope,
        insight=analysis.insight,
        recommendation=analysis.recommendation,
        rank=analysis.rank,
        timeframe_start=analysis.timeframe_start,
        timeframe_end=analysis.timeframe_end,
    )
    if analysis.created_at is not None:
        row.created_at = analysis.created_at
    return row


def pattern_analysis_from_row(row: PatternAnalysisRecord) -> PatternAnalysis:
    variables = (row.variable_1,) if row.variable_2 is None else (row.variable_1, row.variable_2)
    return PatternAnalysis(
        id=row.id,
        user_id=row.user_id,
        run_id=row.run_id,
        analysis_type=row.analysis_type,
        variables=variables,
        correlation=row.correlation,
        confidence=row.confidence,
        significance=Significance(row.significance),
        lag_days=row.lag_days or 0,
        sample_size=row.sample_size,
        p_value=row.p_value,
        slope=row.slope,
        insight=row.insight,
        recommendation=row.recommendation,
        rank=row.rank,
        timeframe_start=row.timeframe_start,
        timeframe_end=row.timeframe_end,
        created_at=row.created_at,
    )
