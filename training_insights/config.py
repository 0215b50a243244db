"""Configuration management for the training insights engine."""

import os
from typing import List, Tuple
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./training_insights.db")

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Analysis window and sample gates
    ANALYSIS_WINDOW_DAYS: int = int(os.getenv("ANALYSIS_WINDOW_DAYS", "90"))
    MIN_PAIRED_OBSERVATIONS: int = int(os.getenv("MIN_PAIRED_OBSERVATIONS", "10"))

    # Lag correlation (delayed effects such as sleep -> next-day energy)
    ENABLE_LAG_CORRELATION: bool = os.getenv("ENABLE_LAG_CORRELATION", "true").lower() == "true"
    MAX_LAG_DAYS: int = int(os.getenv("MAX_LAG_DAYS", "3"))

    ENABLE_TREND_ANALYSIS: bool = os.getenv("ENABLE_TREND_ANALYSIS", "true").lower() == "true"

    # Correlate every pair of observed variables instead of the registered pairs only
    ANALYZE_ALL_PAIRS: bool = os.getenv("ANALYZE_ALL_PAIRS", "false").lower() == "true"

    # Significance tiers on |r|
    HIGH_SIGNIFICANCE_THRESHOLD: float = float(os.getenv("HIGH_SIGNIFICANCE_THRESHOLD", "0.5"))
    MEDIUM_SIGNIFICANCE_THRESHOLD: float = float(os.getenv("MEDIUM_SIGNIFICANCE_THRESHOLD", "0.3"))

    # Confidence = min(100, |r| * CORRELATION_WEIGHT + min(n / FULL_SAMPLE, 1) * SAMPLE_WEIGHT)
    CONFIDENCE_CORRELATION_WEIGHT: float = float(os.getenv("CONFIDENCE_CORRELATION_WEIGHT", "80"))
    CONFIDENCE_SAMPLE_WEIGHT: float = float(os.getenv("CONFIDENCE_SAMPLE_WEIGHT", "20"))
    CONFIDENCE_FULL_SAMPLE: int = int(os.getenv("CONFIDENCE_FULL_SAMPLE", "30"))

    # Goal pace heuristic
    GOAL_BASELINE_PROBABILITY: float = float(os.getenv("GOAL_BASELINE_PROBABILITY", "70"))
    GOAL_MAX_PROBABILITY: float = float(os.getenv("GOAL_MAX_PROBABILITY", "95"))
    GOAL_MIN_PROBABILITY: float = float(os.getenv("GOAL_MIN_PROBABILITY", "10"))
    GOAL_AHEAD_GAIN: float = float(os.getenv("GOAL_AHEAD_GAIN", "50"))
    GOAL_BEHIND_PENALTY: float = float(os.getenv("GOAL_BEHIND_PENALTY", "40"))

    # Variable pairs correlated on every run (order does not matter)
    ANALYSIS_PAIRS: List[Tuple[str, str]] = [
        ("sleep_quality", "workout_intensity"),
        ("caloric_intake", "energy"),
        ("sleep_quality", "energy"),
        ("sleep_duration", "perceived_recovery"),
        ("stress", "sleep_quality"),
        ("soreness", "workout_volume"),
        ("workout_rpe", "mood"),
        ("protein_intake", "perceived_recovery"),
        ("hydration", "energy"),
        ("motivation", "workout_intensity"),
    ]

    @classmethod
    def get_analysis_pairs(cls) -> List[Tuple[str, str]]:
        """Get the registered variable pairs, optionally extended from ANALYSIS_EXTRA_PAIRS.

        ANALYSIS_EXTRA_PAIRS is a comma-separated list of ``a:b`` pairs.
        """
        pairs = list(cls.ANALYSIS_PAIRS)
        extra = os.getenv("ANALYSIS_EXTRA_PAIRS", "")
        for item in extra.split(','):
            parts = [p.strip() for p in item.split(':')]
            if len(parts) == 2 and all(parts):
                pairs.append((parts[0], parts[1]))
        return pairs

    @classmethod
    def validate(cls) -> bool:
        """Validate analysis configuration."""
        if cls.MIN_PAIRED_OBSERVATIONS < 2:
            raise ValueError("MIN_PAIRED_OBSERVATIONS must be at least 2")
        if not 0 <= cls.MEDIUM_SIGNIFICANCE_THRESHOLD < cls.HIGH_SIGNIFICANCE_THRESHOLD <= 1:
            raise ValueError(
                "Significance thresholds must satisfy 0 <= MEDIUM < HIGH <= 1"
            )
        if cls.MAX_LAG_DAYS < 0:
            raise ValueError("MAX_LAG_DAYS cannot be negative")
        if not cls.GOAL_MIN_PROBABILITY <= cls.GOAL_BASELINE_PROBABILITY <= cls.GOAL_MAX_PROBABILITY:
            raise ValueError(
                "Goal probabilities must satisfy MIN <= BASELINE <= MAX"
            )
        return True


config = Config()
