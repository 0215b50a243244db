"""Domain types shared by the store, the analysis engine and the services.

These are plain dataclasses. ORM rows are converted to and from them in
``db.mappers``; nothing outside the ``db`` package handles rows directly.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple, Any

from .errors import InvalidEntryError

SUBJECTIVE_MIN = 1
SUBJECTIVE_MAX = 10


def _check_score(name: str, value: Optional[float]) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidEntryError(f"{name} must be numeric, got {value!r}")
    if not SUBJECTIVE_MIN <= value <= SUBJECTIVE_MAX:
        raise InvalidEntryError(
            f"{name} must be between {SUBJECTIVE_MIN} and {SUBJECTIVE_MAX}, got {value}"
        )


@dataclass
class WorkoutData:
    total_volume: Optional[float] = None  # kg lifted
    average_intensity: Optional[float] = None  # % of 1RM or effort score
    duration: Optional[float] = None  # minutes
    rpe: Optional[float] = None
    average_rir: Optional[float] = None


@dataclass
class NutritionData:
    calories: Optional[float] = None
    protein: Optional[float] = None  # grams
    carbs: Optional[float] = None
    fats: Optional[float] = None
    hydration: Optional[float] = None  # litres


@dataclass
class Biometrics:
    weight: Optional[float] = None  # kg
    body_fat: Optional[float] = None  # percent
    heart_rate: Optional[float] = None  # resting bpm
    temperature: Optional[float] = None


@dataclass
class SleepData:
    duration: Optional[float] = None  # hours
    quality: Optional[float] = None  # 1-10
    deep_sleep: Optional[float] = None
    rem_sleep: Optional[float] = None
    sleep_efficiency: Optional[float] = None


@dataclass
class ObjectiveMetrics:
    workout: Optional[WorkoutData] = None
    nutrition: Optional[NutritionData] = None
    biometrics: Optional[Biometrics] = None
    sleep: Optional[SleepData] = None


@dataclass
class SubjectiveMetrics:
    """Self-reported scores, each on a 1-10 scale when present."""
    mood: Optional[float] = None
    energy: Optional[float] = None
    motivation: Optional[float] = None
    stress: Optional[float] = None
    soreness: Optional[float] = None
    perceived_recovery: Optional[float] = None
    notes: str = ""

    def __post_init__(self):
        for name in ("mood", "energy", "motivation", "stress", "soreness", "perceived_recovery"):
            _check_score(name, getattr(self, name))


@dataclass
class JournalEntry:
    user_id: str
    date: datetime
    title: str = ""
    content: str = ""
    tags: List[str] = field(default_factory=list)
    objective: ObjectiveMetrics = field(default_factory=ObjectiveMetrics)
    subjective: SubjectiveMetrics = field(default_factory=SubjectiveMetrics)
    template_id: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class FitnessTest:
    user_id: str
    date: datetime
    test_name: str
    primary_value: float
    primary_unit: str = ""
    category: str = "strength"
    protocol: str = ""
    secondary_metrics: Dict[str, float] = field(default_factory=dict)
    conditions: Dict[str, Any] = field(default_factory=dict)
    notes: str = ""
    id: Optional[int] = None

    def __post_init__(self):
        if not self.test_name:
            raise InvalidEntryError("Fitness test needs a test_name")
        if isinstance(self.primary_value, bool) or not isinstance(self.primary_value, (int, float)):
            raise InvalidEntryError(f"primary_value must be numeric, got {self.primary_value!r}")


@dataclass
class Goal:
    user_id: str
    title: str
    target_value: float
    current_value: float
    deadline: datetime
    unit: str = ""
    goal_type: str = "primary"
    category: str = "performance"
    description: str = ""
    priority: int = 1
    parent_goal_id: Optional[int] = None
    status: str = "active"
    success_probability: Optional[float] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Significance(Enum):
    """Tier of a surfaced relationship, ordered by strength."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def order(self) -> int:
        return {"low": 0, "medium": 1, "high": 2}[self.value]


@dataclass
class PatternAnalysis:
    """A surfaced relationship (or trend) with its insight and recommendation.

    Created by an analysis run and never modified afterwards; a later run
    produces new records instead.
    """
    user_id: str
    analysis_type: str  # "correlation" or "trend"
    variables: Tuple[str, ...]
    correlation: float
    confidence: float
    significance: Significance
    sample_size: int
    timeframe_start: datetime
    timeframe_end: datetime
    insight: str = ""
    recommendation: str = ""
    lag_days: int = 0
    p_value: Optional[float] = None
    slope: Optional[float] = None
    rank: int = 0
    run_id: str = ""
    id: Optional[int] = None
    created_at: Optional[datetime] = None
