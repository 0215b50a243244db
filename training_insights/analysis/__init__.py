"""Analysis module: series alignment, correlation, insights and goal projection."""

from .series_aligner import AlignedSeries, SeriesAligner
from .correlation_engine import CorrelationEngine, CorrelationResult, pearson_correlation, confidence_score
from .insight_synthesizer import InsightSynthesizer
from .goal_projector import GoalProgressProjector, GoalProjection
from .pattern_analysis import PatternAnalysisService

__all__ = [
    "AlignedSeries",
    "SeriesAligner",
    "CorrelationEngine",
    "CorrelationResult",
    "pearson_correlation",
    "confidence_score",
    "InsightSynthesizer",
    "GoalProgressProjector",
    "GoalProjection",
    "PatternAnalysisService",
]
