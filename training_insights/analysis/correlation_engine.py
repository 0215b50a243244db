"""Correlation and trend statistics over aligned daily series.

Pearson correlation
    r = (nΣxy − ΣxΣy) / sqrt((nΣx² − (Σx)²)(nΣy² − (Σy)²))
    evaluated in the algebraically identical mean-centred form
    Σ(x−x̄)(y−ȳ) / sqrt(Σ(x−x̄)² Σ(y−ȳ)²), which avoids cancellation on large
    values. A constant series has no defined r; it is reported as 0.

Confidence (heuristic, not a statistical confidence level)
    min(100, |r| * 80 + min(n / 30, 1) * 20)
    Non-decreasing in |r| and in n. 80 points come from correlation
    magnitude, 20 from sample size saturating at 30 paired days. The weights
    are configurable (CONFIDENCE_* settings).

Significance tier
    high when |r| > 0.5, medium when |r| > 0.3, low otherwise. Low results
    are not surfaced.

The p-value (two-sided t test on r) is reported for context only; it does not
gate surfacing.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
from scipy import stats

from ..config import config
from ..domain import Significance
from ..errors import InsufficientDataError
from .series_aligner import AlignedSeries, SeriesAligner

CORRELATION = "correlation"
TREND = "trend"


def pearson_correlation(x, y) -> float:
    """Pearson r of two equal-length sequences; 0 for constant or empty input."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if x.shape != y.shape:
        raise ValueError(f"Length mismatch: {x.shape} vs {y.shape}")
    if x.size < 2 or np.ptp(x) == 0 or np.ptp(y) == 0:
        return 0.0

    dx = x - x.mean()
    dy = y - y.mean()
    denominator = np.sqrt(np.sum(dx * dx) * np.sum(dy * dy))
    if not np.isfinite(denominator) or denominator == 0:
        return 0.0

    r = float(np.sum(dx * dy) / denominator)
    return max(-1.0, min(1.0, r))


def correlation_p_value(r: float, n: int) -> Optional[float]:
    """Two-sided p-value for H0: rho = 0, or None when n < 3."""
    if n < 3:
        return None
    if abs(r) >= 1.0:
        return 0.0
    t_stat = r * np.sqrt((n - 2) / (1.0 - r * r))
    return float(2 * stats.t.sf(abs(t_stat), n - 2))


def confidence_score(
    r: float,
    n: int,
    correlation_weight: Optional[float] = None,
    sample_weight: Optional[float] = None,
    full_sample: Optional[int] = None,
) -> float:
    """Heuristic confidence in [0, 100] from correlation magnitude and sample size."""
    correlation_weight = config.CONFIDENCE_CORRELATION_WEIGHT if correlation_weight is None else correlation_weight
    sample_weight = config.CONFIDENCE_SAMPLE_WEIGHT if sample_weight is None else sample_weight
    full_sample = full_sample or config.CONFIDENCE_FULL_SAMPLE

    sample_factor = min(max(n, 0) / full_sample, 1.0)
    score = abs(r) * correlation_weight + sample_factor * sample_weight
    return float(min(100.0, max(0.0, score)))


def significance_tier(
    r: float,
    high: Optional[float] = None,
    medium: Optional[float] = None,
) -> Significance:
    high = config.HIGH_SIGNIFICANCE_THRESHOLD if high is None else high
    medium = config.MEDIUM_SIGNIFICANCE_THRESHOLD if medium is None else medium
    abs_r = abs(r)
    if abs_r > high:
        return Significance.HIGH
    if abs_r > medium:
        return Significance.MEDIUM
    return Significance.LOW


def trend_slope(offsets, values) -> float:
    """Least-squares slope of ``values`` against day ``offsets`` (units per day)."""
    x = np.asarray(offsets, dtype=float)
    y = np.asarray(values, dtype=float)
    dx = x - x.mean()
    denominator = np.sum(dx * dx)
    if denominator == 0:
        return 0.0
    return float(np.sum(dx * (y - y.mean())) / denominator)


@dataclass
class CorrelationResult:
    """Relationship between two variables, or the trend of one variable."""
    variable_1: str
    variable_2: Optional[str]
    correlation: float
    n_samples: int
    confidence: float
    significance: Significance
    lag_days: int = 0
    p_value: Optional[float] = None
    kind: str = CORRELATION
    slope: Optional[float] = None  # units per day, trends only

    @property
    def variables(self) -> Tuple[str, ...]:
        if self.variable_2 is None:
            return (self.variable_1,)
        return (self.variable_1, self.variable_2)

    @property
    def is_surfaced(self) -> bool:
        return self.significance is not Significance.LOW

    @property
    def strength(self) -> str:
        """Interpret correlation strength."""
        abs_corr = abs(self.correlation)
        if abs_corr >= 0.7:
            return "strong"
        elif abs_corr >= 0.4:
            return "moderate"
        elif abs_corr >= 0.2:
            return "weak"
        else:
            return "negligible"

    @property
    def direction(self) -> str:
        return "positive" if self.correlation > 0 else "negative"


class CorrelationEngine:
    """Computes pairwise correlations, lagged correlations and trends.

    Stateless apart from its settings; the same input always yields the same
    numbers.
    """

    def __init__(
        self,
        aligner: Optional[SeriesAligner] = None,
        enable_lag: Optional[bool] = None,
        max_lag_days: Optional[int] = None,
    ):
        self.aligner = aligner or SeriesAligner()
        self.enable_lag = config.ENABLE_LAG_CORRELATION if enable_lag is None else enable_lag
        self.max_lag_days = config.MAX_LAG_DAYS if max_lag_days is None else max_lag_days
        self.logger = logging.getLogger(__name__)

    def _result(self, var1, var2, r, n, lag_days=0, kind=CORRELATION, slope=None) -> CorrelationResult:
        return CorrelationResult(
            variable_1=var1,
            variable_2=var2,
            correlation=r,
            n_samples=n,
            confidence=confidence_score(r, n),
            significance=significance_tier(r),
            lag_days=lag_days,
            p_value=correlation_p_value(r, n),
            kind=kind,
            slope=slope,
        )

    def correlate(self, series_a: AlignedSeries, series_b: AlignedSeries, lag_days: int = 0) -> CorrelationResult:
        """Correlation of ``series_a`` on day d with ``series_b`` on day d + lag_days.

        Raises:
            InsufficientDataError: too few paired days.
        """
        x, y = self.aligner.paired(series_a, series_b, lag_days)
        r = pearson_correlation(x, y)
        return self._result(series_a.variable, series_b.variable, r, len(x), lag_days)

    def best_lag_correlation(self, series_a: AlignedSeries, series_b: AlignedSeries) -> CorrelationResult:
        """Strongest correlation over lags 0..max_lag_days (first variable leading).

        Ties keep the smaller lag.

        Raises:
            InsufficientDataError: no lag has enough paired days.
        """
        max_lag = self.max_lag_days if self.enable_lag else 0
        best: Optional[CorrelationResult] = None
        last_error: Optional[InsufficientDataError] = None
        for lag in range(max_lag + 1):
            try:
                result = self.correlate(series_a, series_b, lag)
            except InsufficientDataError as e:
                last_error = e
                continue
            if best is None or abs(result.correlation) > abs(best.correlation) + 1e-12:
                best = result
        if best is None:
            raise last_error
        return best

    def trend(self, series: AlignedSeries) -> CorrelationResult:
        """Linear trend of one series against time.

        Raises:
            InsufficientDataError: too few observed days.
        """
        offsets, values = self.aligner.require_observations(series)
        r = pearson_correlation(offsets, values)
        slope = trend_slope(offsets, values)
        return self._result(series.variable, None, r, len(values), kind=TREND, slope=slope)

    def analyze(
        self,
        aligned: Dict[str, AlignedSeries],
        pairs: Iterable[Tuple[str, str]],
        trend_variables: Iterable[str] = (),
    ) -> List[CorrelationResult]:
        """Surfaced (medium or high) results for the requested pairs and trends.

        Pairs with a missing series or too few paired days are skipped.
        """
        results = []
        for var1, var2 in pairs:
            if var1 == var2 or var1 not in aligned or var2 not in aligned:
                continue
            try:
                result = self.best_lag_correlation(aligned[var1], aligned[var2])
            except InsufficientDataError as e:
                self.logger.debug(f"Skipping pair: {e}")
                continue
            if result.is_surfaced:
                results.append(result)

        for variable in trend_variables:
            if variable not in aligned:
                continue
            try:
                result = self.trend(aligned[variable])
            except InsufficientDataError as e:
                self.logger.debug(f"Skipping trend: {e}")
                continue
            if result.is_surfaced:
                results.append(result)

        return results
