"""Turns surfaced correlation and trend results into insight records."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, List, Optional, Tuple

from ..domain import PatternAnalysis, Significance
from ..signals import variable_label
from .correlation_engine import TREND, CorrelationResult


@dataclass(frozen=True)
class InsightTemplate:
    """Text for one variable pair, split by the sign of r."""
    positive_insight: str
    negative_insight: str
    positive_recommendation: str
    negative_recommendation: str


PAIR_TEMPLATES: Dict[FrozenSet[str], InsightTemplate] = {
    frozenset(("sleep_quality", "workout_intensity")): InsightTemplate(
        "Better sleep quality correlates with higher workout intensity",
        "Poor sleep quality appears to go together with lower workout performance",
        "Prioritize sleep quality on days before important training sessions",
        "Consider adjusting training intensity based on sleep quality scores",
    ),
    frozenset(("caloric_intake", "energy")): InsightTemplate(
        "Higher caloric intake correlates with increased energy levels",
        "Caloric restriction may be impacting energy levels",
        "Maintain adequate caloric intake for sustained energy",
        "Consider adjusting caloric intake or timing for better energy management",
    ),
    frozenset(("sleep_quality", "energy")): InsightTemplate(
        "Nights with better sleep are followed by higher energy ratings",
        "Energy ratings run against sleep quality, which is unusual and worth reviewing",
        "Protect a consistent sleep window to keep energy up",
        "Check whether late training or stimulants distort your sleep ratings",
    ),
    frozenset(("sleep_duration", "perceived_recovery")): InsightTemplate(
        "Longer sleep goes together with feeling more recovered",
        "Longer sleep coincides with feeling less recovered",
        "Aim for the longer end of your usual sleep duration during hard blocks",
        "Look at sleep timing and quality rather than duration alone",
    ),
    frozenset(("stress", "sleep_quality")): InsightTemplate(
        "Higher stress coincides with better sleep quality",
        "Higher stress coincides with poorer sleep quality",
        "Keep tracking stress; the current routine seems to protect sleep",
        "Add a wind-down routine on high-stress days to protect sleep",
    ),
    frozenset(("soreness", "workout_volume")): InsightTemplate(
        "Muscle soreness rises with training volume",
        "Muscle soreness falls as training volume rises, suggesting good adaptation",
        "Progress volume gradually and schedule lighter days after high-volume sessions",
        "Current volume appears well tolerated; progress as planned",
    ),
    frozenset(("workout_rpe", "mood")): InsightTemplate(
        "Harder sessions (higher RPE) go together with better mood",
        "Harder sessions (higher RPE) go together with lower mood",
        "Hard sessions seem to lift your mood; keep them in the plan",
        "Balance high-RPE sessions with easier days to keep mood stable",
    ),
    frozenset(("protein_intake", "perceived_recovery")): InsightTemplate(
        "Higher protein intake goes together with better perceived recovery",
        "Higher protein intake coincides with lower perceived recovery",
        "Keep protein intake consistent, especially after demanding sessions",
        "Review protein timing and overall energy intake around training",
    ),
    frozenset(("hydration", "energy")): InsightTemplate(
        "Better hydration goes together with higher energy levels",
        "Higher fluid intake coincides with lower energy levels",
        "Keep a steady hydration routine through the day",
        "Check whether high fluid intake follows already tiring days",
    ),
    frozenset(("motivation", "workout_intensity")): InsightTemplate(
        "Higher motivation goes together with more intense workouts",
        "Higher motivation coincides with less intense workouts",
        "Schedule key sessions on days you typically feel motivated",
        "Channel high-motivation days into quality rather than extra volume",
    ),
}

TIER_PREFIX = {
    Significance.HIGH: "Strong pattern",
    Significance.MEDIUM: "Emerging pattern",
}


def template_for(var1: str, var2: str) -> Optional[InsightTemplate]:
    """Registered template for a pair, regardless of order."""
    return PAIR_TEMPLATES.get(frozenset((var1, var2)))


class InsightSynthesizer:
    """Maps correlation results to ranked, deduplicated PatternAnalysis records."""

    def __init__(self, templates: Optional[Dict[FrozenSet[str], InsightTemplate]] = None):
        self.templates = PAIR_TEMPLATES if templates is None else templates
        self.logger = logging.getLogger(__name__)

    def describe(self, result: CorrelationResult) -> Tuple[str, str]:
        """Insight and recommendation text for one result."""
        if result.kind == TREND:
            insight, recommendation = self._describe_trend(result)
        else:
            insight, recommendation = self._describe_pair(result)

        prefix = TIER_PREFIX.get(result.significance)
        if prefix:
            insight = f"{prefix}: {insight}"
        if result.lag_days:
            unit = "day" if result.lag_days == 1 else "days"
            insight = f"{insight} (effect appears {result.lag_days} {unit} later)"
        return insight, recommendation

    def _describe_pair(self, result: CorrelationResult) -> Tuple[str, str]:
        positive = result.correlation > 0
        template = self.templates.get(frozenset(result.variables))
        if template is not None:
            if positive:
                return template.positive_insight, template.positive_recommendation
            return template.negative_insight, template.negative_recommendation

        label_1 = variable_label(result.variable_1).capitalize()
        label_2 = variable_label(result.variable_2)
        if positive:
            insight = f"{label_1} correlates with {label_2} ({result.strength} positive relationship)"
        else:
            insight = f"{label_1} correlates inversely with {label_2} ({result.strength} negative relationship)"
        recommendation = (
            f"Keep logging {variable_label(result.variable_1)} and {label_2} "
            f"to confirm this relationship before changing your routine"
        )
        return insight, recommendation

    def _describe_trend(self, result: CorrelationResult) -> Tuple[str, str]:
        label = variable_label(result.variable_1)
        weekly = (result.slope or 0.0) * 7
        if result.correlation > 0:
            insight = f"{label.capitalize()} has been rising by about {abs(weekly):.2f} per week"
        else:
            insight = f"{label.capitalize()} has been falling by about {abs(weekly):.2f} per week"
        recommendation = f"Check that the {label} trend matches what your current plan intends"
        return insight, recommendation

    @staticmethod
    def _dedupe_key(result: CorrelationResult):
        return (result.kind, frozenset(result.variables), result.correlation > 0)

    @staticmethod
    def _sort_key(result: CorrelationResult):
        return (
            -result.significance.order,
            -result.confidence,
            result.kind,
            result.variables,
            result.lag_days,
        )

    def rank(self, results: List[CorrelationResult]) -> List[CorrelationResult]:
        """Drop low-tier results, keep the strongest per (pair, sign) and sort.

        Order: significance tier (high first), then confidence descending.
        """
        best = {}
        for result in sorted((r for r in results if r.is_surfaced), key=self._sort_key):
            key = self._dedupe_key(result)
            if key not in best:
                best[key] = result
            else:
                self.logger.debug(f"Dropping duplicate insight for {result.variables}")
        return sorted(best.values(), key=self._sort_key)

    def synthesize(
        self,
        user_id: str,
        results: List[CorrelationResult],
        timeframe_start: datetime,
        timeframe_end: datetime,
        run_id: str = "",
        created_at: Optional[datetime] = None,
    ) -> List[PatternAnalysis]:
        """One PatternAnalysis per surviving result, ranked from 1."""
        analyses = []
        for position, result in enumerate(self.rank(results), start=1):
            insight, recommendation = self.describe(result)
            analyses.append(PatternAnalysis(
                user_id=user_id,
                analysis_type=result.kind,
                variables=result.variables,
                correlation=result.correlation,
                confidence=result.confidence,
                significance=result.significance,
                sample_size=result.n_samples,
                timeframe_start=timeframe_start,
                timeframe_end=timeframe_end,
                insight=insight,
                recommendation=recommendation,
                lag_days=result.lag_days,
                p_value=result.p_value,
                slope=result.slope,
                rank=position,
                run_id=run_id,
                created_at=created_at,
            ))
        return analyses
