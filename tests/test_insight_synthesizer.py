"""Tests for insight text, deduplication and ranking."""

from datetime import datetime

from training_insights.analysis.correlation_engine import TREND, CorrelationResult
from training_insights.analysis.insight_synthesizer import PAIR_TEMPLATES, InsightSynthesizer, template_for
from training_insights.config import config
from training_insights.domain import Significance

WINDOW_START = datetime(2024, 1, 1)
WINDOW_END = datetime(2024, 3, 31)


def result(var1, var2, r, significance, confidence=80.0, lag_days=0, kind="correlation", slope=None):
    return CorrelationResult(
        variable_1=var1,
        variable_2=var2,
        correlation=r,
        n_samples=30,
        confidence=confidence,
        significance=significance,
        lag_days=lag_days,
        kind=kind,
        slope=slope,
    )


class TestDescribe:
    """Insight and recommendation text."""

    def setup_method(self):
        self.synthesizer = InsightSynthesizer()

    def test_every_configured_pair_has_a_template(self):
        for var1, var2 in config.ANALYSIS_PAIRS:
            assert template_for(var1, var2) is not None
            assert template_for(var2, var1) is template_for(var1, var2)
        assert len(PAIR_TEMPLATES) == len(config.ANALYSIS_PAIRS)

    def test_positive_template(self):
        insight, recommendation = self.synthesizer.describe(
            result("sleep_quality", "workout_intensity", 0.85, Significance.HIGH)
        )
        assert insight == "Strong pattern: Better sleep quality correlates with higher workout intensity"
        assert recommendation == "Prioritize sleep quality on days before important training sessions"

    def test_negative_template_in_either_order(self):
        insight, recommendation = self.synthesizer.describe(
            result("workout_intensity", "sleep_quality", -0.4, Significance.MEDIUM)
        )
        assert insight == "Emerging pattern: Poor sleep quality appears to go together with lower workout performance"
        assert recommendation == "Consider adjusting training intensity based on sleep quality scores"

    def test_generic_fallback(self):
        insight, recommendation = self.synthesizer.describe(
            result("body_weight", "mood", 0.45, Significance.MEDIUM)
        )
        assert insight == "Emerging pattern: Body weight correlates with mood (moderate positive relationship)"
        assert "body weight" in recommendation and "mood" in recommendation

    def test_generic_fallback_negative(self):
        insight, _ = self.synthesizer.describe(
            result("stress", "test:back_squat_1rm", -0.75, Significance.HIGH)
        )
        assert insight == (
            "Strong pattern: Stress correlates inversely with back squat 1rm test result "
            "(strong negative relationship)"
        )

    def test_lag_is_reported(self):
        insight, _ = self.synthesizer.describe(
            result("sleep_quality", "energy", 0.6, Significance.HIGH, lag_days=1)
        )
        assert insight.endswith("(effect appears 1 day later)")

        insight, _ = self.synthesizer.describe(
            result("sleep_quality", "energy", 0.6, Significance.HIGH, lag_days=2)
        )
        assert insight.endswith("(effect appears 2 days later)")

    def test_trend(self):
        insight, recommendation = self.synthesizer.describe(
            result("body_weight", None, -0.95, Significance.HIGH, kind=TREND, slope=-0.1)
        )
        assert insight == "Strong pattern: Body weight has been falling by about 0.70 per week"
        assert "body weight" in recommendation


class TestRanking:
    """Deduplication and ordering."""

    def setup_method(self):
        self.synthesizer = InsightSynthesizer()

    def test_low_results_are_dropped(self):
        ranked = self.synthesizer.rank([result("sleep_quality", "energy", 0.2, Significance.LOW)])
        assert ranked == []

    def test_high_before_medium_regardless_of_confidence(self):
        medium = result("stress", "sleep_quality", -0.45, Significance.MEDIUM, confidence=90)
        high = result("sleep_quality", "energy", 0.55, Significance.HIGH, confidence=60)

        assert self.synthesizer.rank([medium, high]) == [high, medium]

    def test_confidence_orders_within_tier(self):
        weaker = result("sleep_quality", "energy", 0.6, Significance.HIGH, confidence=65)
        stronger = result("caloric_intake", "energy", 0.7, Significance.HIGH, confidence=75)

        assert self.synthesizer.rank([weaker, stronger]) == [stronger, weaker]

    def test_duplicates_keep_strongest(self):
        same_day = result("sleep_quality", "energy", 0.55, Significance.HIGH, confidence=64)
        next_day = result("energy", "sleep_quality", 0.7, Significance.HIGH, confidence=76, lag_days=1)

        assert self.synthesizer.rank([same_day, next_day]) == [next_day]

    def test_opposite_signs_are_distinct(self):
        positive = result("sleep_quality", "energy", 0.55, Significance.HIGH)
        negative = result("sleep_quality", "energy", -0.55, Significance.HIGH)

        assert len(self.synthesizer.rank([positive, negative])) == 2

    def test_trend_and_pair_are_distinct(self):
        pair = result("body_weight", "mood", 0.6, Significance.HIGH)
        trend = result("body_weight", None, 0.6, Significance.HIGH, kind=TREND, slope=0.05)

        assert len(self.synthesizer.rank([pair, trend])) == 2

    def test_synthesize(self):
        results = [
            result("stress", "sleep_quality", -0.45, Significance.MEDIUM, confidence=50),
            result("sleep_quality", "workout_intensity", 0.9, Significance.HIGH, confidence=92),
            result("hydration", "energy", 0.1, Significance.LOW, confidence=10),
        ]

        analyses = self.synthesizer.synthesize(
            "athlete", results, WINDOW_START, WINDOW_END, run_id="run-1"
        )

        assert [a.rank for a in analyses] == [1, 2]
        assert analyses[0].variables == ("sleep_quality", "workout_intensity")
        assert analyses[0].significance is Significance.HIGH
        assert analyses[0].analysis_type == "correlation"
        assert analyses[1].insight.startswith("Emerging pattern: Higher stress coincides with poorer sleep quality")
        assert all(a.user_id == "athlete" and a.run_id == "run-1" for a in analyses)
        assert all(a.timeframe_start == WINDOW_START and a.timeframe_end == WINDOW_END for a in analyses)
        assert all(a.recommendation for a in analyses)
