"""Signal extraction from journal entries and fitness tests.

A signal is a single numeric ``(timestamp, variable, value)`` sample. Fields
that are missing, non-numeric, boolean or not finite are dropped, never
coerced to zero.
"""

import math
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Any

from .domain import JournalEntry, FitnessTest

logger = logging.getLogger(__name__)

TEST_PREFIX = "test:"


class AggregationPolicy(Enum):
    """How several same-day samples of one variable reduce to a daily value."""
    MEAN = "mean"  # rate-like: intensity, scores, sleep quality
    LAST = "last"  # state-like: body weight, test results
    SUM = "sum"  # daily totals: calories, training volume


@dataclass(frozen=True)
class Signal:
    timestamp: datetime
    variable: str
    value: float


@dataclass(frozen=True)
class VariableSpec:
    name: str
    policy: AggregationPolicy
    label: str
    extractor: Callable[[JournalEntry], Any]


def _get(obj, *path):
    for attr in path:
        if obj is None:
            return None
        obj = getattr(obj, attr, None)
    return obj


JOURNAL_VARIABLES: Dict[str, VariableSpec] = {
    spec.name: spec for spec in [
        # Workout
        VariableSpec("workout_intensity", AggregationPolicy.MEAN, "workout intensity",
                     lambda e: _get(e.objective, "workout", "average_intensity")),
        VariableSpec("workout_volume", AggregationPolicy.SUM, "training volume",
                     lambda e: _get(e.objective, "workout", "total_volume")),
        VariableSpec("workout_duration", AggregationPolicy.SUM, "training duration",
                     lambda e: _get(e.objective, "workout", "duration")),
        VariableSpec("workout_rpe", AggregationPolicy.MEAN, "session RPE",
                     lambda e: _get(e.objective, "workout", "rpe")),
        VariableSpec("workout_rir", AggregationPolicy.MEAN, "reps in reserve",
                     lambda e: _get(e.objective, "workout", "average_rir")),
        # Nutrition
        VariableSpec("caloric_intake", AggregationPolicy.SUM, "caloric intake",
                     lambda e: _get(e.objective, "nutrition", "calories")),
        VariableSpec("protein_intake", AggregationPolicy.SUM, "protein intake",
                     lambda e: _get(e.objective, "nutrition", "protein")),
        VariableSpec("carb_intake", AggregationPolicy.SUM, "carbohydrate intake",
                     lambda e: _get(e.objective, "nutrition", "carbs")),
        VariableSpec("fat_intake", AggregationPolicy.SUM, "fat intake",
                     lambda e: _get(e.objective, "nutrition", "fats")),
        VariableSpec("hydration", AggregationPolicy.SUM, "hydration",
                     lambda e: _get(e.objective, "nutrition", "hydration")),
        # Biometrics
        VariableSpec("body_weight", AggregationPolicy.LAST, "body weight",
                     lambda e: _get(e.objective, "biometrics", "weight")),
        VariableSpec("body_fat", AggregationPolicy.LAST, "body fat",
                     lambda e: _get(e.objective, "biometrics", "body_fat")),
        VariableSpec("resting_heart_rate", AggregationPolicy.MEAN, "resting heart rate",
                     lambda e: _get(e.objective, "biometrics", "heart_rate")),
        # Sleep
        VariableSpec("sleep_duration", AggregationPolicy.MEAN, "sleep duration",
                     lambda e: _get(e.objective, "sleep", "duration")),
        VariableSpec("sleep_quality", AggregationPolicy.MEAN, "sleep quality",
                     lambda e: _get(e.objective, "sleep", "quality")),
        VariableSpec("deep_sleep", AggregationPolicy.MEAN, "deep sleep",
                     lambda e: _get(e.objective, "sleep", "deep_sleep")),
        VariableSpec("sleep_efficiency", AggregationPolicy.MEAN, "sleep efficiency",
                     lambda e: _get(e.objective, "sleep", "sleep_efficiency")),
        # Subjective
        VariableSpec("mood", AggregationPolicy.MEAN, "mood",
                     lambda e: _get(e.subjective, "mood")),
        VariableSpec("energy", AggregationPolicy.MEAN, "energy levels",
                     lambda e: _get(e.subjective, "energy")),
        VariableSpec("motivation", AggregationPolicy.MEAN, "motivation",
                     lambda e: _get(e.subjective, "motivation")),
        VariableSpec("stress", AggregationPolicy.MEAN, "stress",
                     lambda e: _get(e.subjective, "stress")),
        VariableSpec("soreness", AggregationPolicy.MEAN, "muscle soreness",
                     lambda e: _get(e.subjective, "soreness")),
        VariableSpec("perceived_recovery", AggregationPolicy.MEAN, "perceived recovery",
                     lambda e: _get(e.subjective, "perceived_recovery")),
    ]
}


def is_numeric(value) -> bool:
    """True for finite int/float values that are not booleans."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def fitness_test_variable(test_name: str, metric: Optional[str] = None) -> str:
    """Variable name for a fitness test result (``test:<name>`` or ``test:<name>:<metric>``)."""
    if metric:
        return f"{TEST_PREFIX}{test_name}:{metric}"
    return f"{TEST_PREFIX}{test_name}"


def resolve_policy(variable: str) -> Optional[AggregationPolicy]:
    """Declared aggregation policy for a variable, or None if undeclared."""
    spec = JOURNAL_VARIABLES.get(variable)
    if spec is not None:
        return spec.policy
    if variable.startswith(TEST_PREFIX) and len(variable) > len(TEST_PREFIX):
        return AggregationPolicy.LAST
    return None


def variable_label(variable: str) -> str:
    """Human-readable name used in insight text."""
    spec = JOURNAL_VARIABLES.get(variable)
    if spec is not None:
        return spec.label
    if variable.startswith(TEST_PREFIX):
        return variable[len(TEST_PREFIX):].replace(":", " ").replace("_", " ") + " test result"
    return variable.replace("_", " ")


def extract_journal_signals(entry: JournalEntry) -> List[Signal]:
    """Extract every numeric signal carried by a journal entry."""
    signals = []
    for name, spec in JOURNAL_VARIABLES.items():
        value = spec.extractor(entry)
        if value is None:
            continue
        if not is_numeric(value):
            logger.debug(f"Dropping non-numeric {name}={value!r} from entry {entry.id}")
            continue
        signals.append(Signal(entry.date, name, float(value)))
    return signals


def extract_test_signals(test: FitnessTest) -> List[Signal]:
    """Extract the primary and secondary numeric results of a fitness test."""
    signals = []
    if is_numeric(test.primary_value):
        signals.append(Signal(test.date, fitness_test_variable(test.test_name), float(test.primary_value)))
    for metric, value in (test.secondary_metrics or {}).items():
        if is_numeric(value):
            signals.append(Signal(test.date, fitness_test_variable(test.test_name, metric), float(value)))
    return signals


def extract_signals(
    entries: Iterable[JournalEntry],
    tests: Iterable[FitnessTest] = (),
    variables: Optional[Iterable[str]] = None,
) -> List[Signal]:
    """Extract signals from entries and tests, optionally keeping only ``variables``."""
    wanted = set(variables) if variables is not None else None
    signals: List[Signal] = []
    for entry in entries:
        signals.extend(extract_journal_signals(entry))
    for test in tests:
        signals.extend(extract_test_signals(test))
    if wanted is not None:
        signals = [s for s in signals if s.variable in wanted]
    return sorted(signals, key=lambda s: s.timestamp)
